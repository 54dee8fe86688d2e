"""
Watch notification and session state values.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EventType(str, Enum):
    """
    Kinds of change a watch notification can report.

    SESSION and NOTWATCHING carry connection news rather than node changes
    and usually arrive without a path.
    """

    CREATED = "created"
    DELETED = "deleted"
    CHANGED = "changed"
    CHILD = "child"
    SESSION = "session"
    NOTWATCHING = "notwatching"


class KeeperState(str, Enum):
    """Session states a driver can report."""

    CONNECTING = "connecting"
    ASSOCIATING = "associating"
    CONNECTED = "connected"
    CONNECTED_RO = "connected_ro"
    AUTH_FAILED = "auth_failed"
    EXPIRED_SESSION = "expired_session"


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """
    One delivered watch notification.

    Parameters
    ----------
    path:
        Node path the notification concerns, or ``None`` for session news.
    type:
        What happened to the node.
    state:
        Session state of the delivering driver at notification time.
    """

    path: str | None
    type: EventType
    state: KeeperState = KeeperState.CONNECTED

    def as_dict(self) -> dict[str, object]:
        return {"path": self.path, "type": self.type.value, "state": self.state.value}
