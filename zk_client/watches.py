"""
One-shot watch listener registry.

Drivers deliver change notifications on their own dispatch thread while
caller threads keep registering interest, so the registration table is the
one piece of shared mutable state in the client and is guarded by a lock.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable

from .events import WatchEvent

_LOGGER = logging.getLogger(__name__)

WatchListener = Callable[[WatchEvent], None]


class WatchDispatcher:
    """
    Path-keyed table of one-shot watch listeners.

    A registration is consumed by the first event delivered for its path.
    Listeners are invoked outside the lock, so a listener may register itself
    again without deadlocking.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._listeners: dict[str, dict[str, WatchListener]] = {}

    def register_one_shot(self, path: str, listener: WatchListener) -> str:
        """
        Register ``listener`` for the next event on ``path``.

        Returns
        -------
        str
            Subscription ID usable with :meth:`unregister`.
        """
        subscription_id = uuid.uuid4().hex
        with self._lock:
            self._listeners.setdefault(path, {})[subscription_id] = listener
        return subscription_id

    register = register_one_shot

    def unregister(self, path: str, subscription_id: str) -> bool:
        """Drop one pending registration; return false if it was already consumed."""
        with self._lock:
            listeners = self._listeners.get(path)
            if not listeners:
                return False
            removed = listeners.pop(subscription_id, None) is not None
            if not listeners:
                self._listeners.pop(path, None)
            return removed

    def dispatch(self, event: WatchEvent) -> int:
        """
        Deliver ``event`` to every listener pending on its path.

        Returns
        -------
        int
            Number of listeners invoked. Zero when nobody was waiting, which
            is normal: the registering caller may already have moved on.
        """
        if event.path is None:
            return 0
        with self._lock:
            listeners = self._listeners.pop(event.path, None)
        if not listeners:
            _LOGGER.debug("Dropping watch event with no listeners path=%s type=%s", event.path, event.type.value)
            return 0

        for subscription_id, listener in listeners.items():
            try:
                listener(event)
            except Exception:
                _LOGGER.exception(
                    "Watch listener failed path=%s subscription_id=%s",
                    event.path,
                    subscription_id,
                )
        return len(listeners)

    def pending(self, path: str | None = None) -> int:
        """Return the number of outstanding registrations, optionally for one path."""
        with self._lock:
            if path is not None:
                return len(self._listeners.get(path, {}))
            return sum(len(listeners) for listeners in self._listeners.values())
