"""
Driver protocol used by :class:`zk_client.client.CoordinationClient`.

The client depends on this low-level request surface rather than on a
specific connection library, so the in-memory ensemble and the kazoo
adapter can be swapped without touching client code.

Every request returns a result mapping with an ``rc`` key. ``rc == 0`` means
success and the operation payload sits under ``path``, ``data``, ``stat``,
``children`` or ``acl``; any other value is a failure code for
:func:`zk_client.exceptions.translate`.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass
from typing import Any, Protocol

from .config import ACL
from .events import KeeperState, WatchEvent

Watcher = Callable[[WatchEvent], None]
ResultCallback = Callable[[dict[str, Any]], None]


@dataclass(frozen=True, slots=True)
class Stat:
    """Node metadata returned alongside reads and writes."""

    czxid: int = 0
    mzxid: int = 0
    ctime: int = 0
    mtime: int = 0
    version: int = 0
    cversion: int = 0
    aversion: int = 0
    ephemeral_owner: int = 0
    data_length: int = 0
    num_children: int = 0
    pzxid: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class CoordinationDriver(Protocol):
    """
    Behavioral contract for raw coordination-service drivers.

    Implementations deliver watch notifications and asynchronous results on
    their own thread. When ``callback`` is given, the request is queued, the
    call returns ``{"rc": 0}`` right away and ``callback`` later receives the
    full result mapping.
    """

    def create(
        self,
        path: str,
        data: bytes,
        *,
        acl: Sequence[ACL],
        ephemeral: bool,
        sequence: bool,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        """Create a node; payload key ``path`` holds the created path."""

    def get(
        self,
        path: str,
        *,
        watcher: Watcher | None = None,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        """Read a node; payload keys ``data`` and ``stat``."""

    def set(
        self,
        path: str,
        data: bytes,
        *,
        version: int = -1,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        """Write node data; payload key ``stat``."""

    def exists(
        self,
        path: str,
        *,
        watcher: Watcher | None = None,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        """
        Return node metadata under ``stat``.

        A watch is left even when the node is missing, so it fires on creation.
        """

    def delete(
        self,
        path: str,
        *,
        version: int = -1,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        """Delete a node; ``version == -1`` skips the version check."""

    def get_children(
        self,
        path: str,
        *,
        watcher: Watcher | None = None,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        """List child names under ``children``."""

    def get_acl(self, path: str, *, callback: ResultCallback | None = None) -> dict[str, Any]:
        """Return ``acl`` entries and ``stat``."""

    def set_acl(
        self,
        path: str,
        acl: Sequence[ACL],
        *,
        version: int = -1,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        """Replace node ACL; payload key ``stat``."""

    def state(self) -> KeeperState:
        """
        Return the session state.

        Raises :class:`zk_client.exceptions.HandleClosedError` once closed.
        """

    def close(self) -> None:
        """
        Close the session.

        Raises :class:`zk_client.exceptions.HandleClosedError` when already closed.
        """
