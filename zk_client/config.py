"""
Configuration models for coordination clients and the in-memory ensemble.

This module centralizes the tunable settings and the small value types the
client passes to drivers:

* node creation modes and their ephemeral/sequential flag pairs
* access control entries
* client-wide defaults for create calls
* threading knobs of the in-memory reference driver
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class CreateMode(str, Enum):
    """
    Supported node creation modes.

    PERSISTENT
        Survives the creating session.
    PERSISTENT_SEQUENTIAL
        Persistent, with a service-assigned sequence suffix.
    EPHEMERAL
        Removed automatically when the creating session ends.
    EPHEMERAL_SEQUENTIAL
        Ephemeral, with a service-assigned sequence suffix.
    """

    PERSISTENT = "persistent"
    PERSISTENT_SEQUENTIAL = "persistent_sequential"
    EPHEMERAL = "ephemeral"
    EPHEMERAL_SEQUENTIAL = "ephemeral_sequential"

    @property
    def ephemeral(self) -> bool:
        return _MODE_FLAGS[self][0]

    @property
    def sequential(self) -> bool:
        return _MODE_FLAGS[self][1]

    @classmethod
    def from_flags(cls, *, ephemeral: bool, sequential: bool) -> "CreateMode":
        """Return the mode matching one ``(ephemeral, sequential)`` pair."""
        for mode, flags in _MODE_FLAGS.items():
            if flags == (bool(ephemeral), bool(sequential)):
                return mode
        raise ValueError(f"No create mode for ephemeral={ephemeral!r} sequential={sequential!r}.")


_MODE_FLAGS: dict[CreateMode, tuple[bool, bool]] = {
    CreateMode.PERSISTENT: (False, False),
    CreateMode.PERSISTENT_SEQUENTIAL: (False, True),
    CreateMode.EPHEMERAL: (True, False),
    CreateMode.EPHEMERAL_SEQUENTIAL: (True, True),
}


class Perms:
    """Permission bits carried by :class:`ACL` entries."""

    READ = 1 << 0
    WRITE = 1 << 1
    CREATE = 1 << 2
    DELETE = 1 << 3
    ADMIN = 1 << 4
    ALL = READ | WRITE | CREATE | DELETE | ADMIN


@dataclass(frozen=True, slots=True)
class ACL:
    """
    One access control entry.

    Parameters
    ----------
    perms:
        Bitwise OR of :class:`Perms` values.
    scheme:
        Authentication scheme, for example ``world`` or ``digest``.
    id:
        Identity within the scheme, for example ``anyone``.
    """

    perms: int
    scheme: str
    id: str

    def __post_init__(self) -> None:
        """Validate permission bits at construction time."""
        if not (0 <= int(self.perms) <= Perms.ALL):
            raise ValueError(f"ACL.perms must be within 0..{Perms.ALL}.")
        if not self.scheme:
            raise ValueError("ACL.scheme must be a non-empty string.")

    def as_dict(self) -> dict[str, object]:
        """Convert the entry into a JSON-friendly dictionary."""
        return {"perms": self.perms, "scheme": self.scheme, "id": self.id}

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "ACL":
        """Create an entry from a dictionary with ``perms``/``scheme``/``id`` keys."""
        return cls(perms=int(payload["perms"]), scheme=str(payload["scheme"]), id=str(payload["id"]))


OPEN_ACL_UNSAFE: tuple[ACL, ...] = (ACL(Perms.ALL, "world", "anyone"),)
READ_ACL_UNSAFE: tuple[ACL, ...] = (ACL(Perms.READ, "world", "anyone"),)


@dataclass(slots=True)
class ClientConfig:
    """
    Client-wide defaults applied when callers omit an option.

    ``default_create_mode`` is ephemeral because the dominant use of the
    client is session-scoped membership; persistent nodes are opt-in.
    """

    default_create_mode: CreateMode = CreateMode.EPHEMERAL
    default_acl: tuple[ACL, ...] = field(default_factory=lambda: OPEN_ACL_UNSAFE)

    def __post_init__(self) -> None:
        self.default_create_mode = CreateMode(self.default_create_mode)
        self.default_acl = tuple(self.default_acl)
        if not self.default_acl:
            raise ValueError("ClientConfig.default_acl must contain at least one entry.")


@dataclass(slots=True)
class MemoryEnsembleConfig:
    """
    Settings for :class:`zk_client.memory.InMemoryEnsemble` sessions.

    Watch notifications are delivered on one daemon thread per session, the
    way a real driver delivers them off the caller's thread.
    """

    dispatch_thread_prefix: str = "zk-memory-dispatch"
    dispatch_join_timeout_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.dispatch_join_timeout_seconds < 0:
            raise ValueError("MemoryEnsembleConfig.dispatch_join_timeout_seconds must be >= 0.")
