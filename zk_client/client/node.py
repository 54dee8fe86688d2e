"""
Coordination client facade.

This module provides the concrete ``CoordinationClient`` class while
delegating behavior to focused mixins.
"""

from __future__ import annotations

import threading
from typing import Any

from ..config import ClientConfig
from ..driver import CoordinationDriver
from ..watches import WatchDispatcher, WatchListener
from .blocking import BlockingWaitMixin
from .helpers import ClientHelperMixin
from .operations import NodeOperationsMixin
from .recursive import RecursiveOperationsMixin
from .state import ClientStateMixin


class CoordinationClient(
    ClientStateMixin,
    NodeOperationsMixin,
    RecursiveOperationsMixin,
    BlockingWaitMixin,
    ClientHelperMixin,
):
    """
    Higher-level client over a raw coordination-service driver.

    Result codes become typed exceptions, watch notifications are routed to
    one-shot listeners registered per path, and tree helpers
    (:meth:`ensure_path`, :meth:`remove_tree`, :meth:`wait_until_deleted`)
    are built on top of the single-node requests.
    """

    @classmethod
    def from_backend(
        cls,
        config: ClientConfig | None = None,
        *,
        backend: str = "memory",
        **backend_options: Any,
    ) -> "CoordinationClient":
        """
        Build a client with a named driver backend in one call.

        Examples
        --------
        In-memory backend (default)::

            zk = CoordinationClient.from_backend()

        Kazoo backend (optional dependency)::

            zk = CoordinationClient.from_backend(backend="kazoo", hosts="127.0.0.1:2181")
        """
        from ..backends import create_driver

        return cls(create_driver(backend=backend, **backend_options), config=config)

    def __init__(self, driver: CoordinationDriver, config: ClientConfig | None = None) -> None:
        """
        Parameters
        ----------
        driver:
            Connected low-level driver the client issues requests through.
        config:
            Client-wide defaults. ``ClientConfig()`` when omitted.
        """
        self.config = config or ClientConfig()
        self._driver = driver
        self._event_handler = WatchDispatcher()

        self._stats_lock = threading.Lock()
        self._stats: dict[str, int] = {
            "operations": 0,
            "operation_failures": 0,
            "watch_events": 0,
            "waits_started": 0,
            "waits_completed": 0,
        }

    @property
    def driver(self) -> CoordinationDriver:
        return self._driver

    @property
    def event_handler(self) -> WatchDispatcher:
        """Return the one-shot listener table fed by driver watch notifications."""
        return self._event_handler

    watcher = event_handler

    def register(self, path: str, listener: WatchListener) -> str:
        """
        Register ``listener`` for the next watch notification on ``path``.

        The listener only fires for notifications of watches armed through
        this client (``watch=True`` on :meth:`get`, :meth:`stat` or
        :meth:`children`).
        """
        return self._event_handler.register_one_shot(path, listener)

    def unregister(self, path: str, subscription_id: str) -> bool:
        """Drop a pending listener registration."""
        return self._event_handler.unregister(path, subscription_id)

    def __enter__(self) -> "CoordinationClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
