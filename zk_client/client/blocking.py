from __future__ import annotations

import logging
import threading

from .. import paths
from ..events import WatchEvent
from ..exceptions import WaitTimeoutError, ZKClientError

_LOGGER = logging.getLogger(__name__)


class BlockingWaitMixin:
    """
    Blocking waits driven by one-shot watches.
    """

    def wait_until_deleted(self, path: str, *, timeout: float | None = None) -> None:
        """
        Block the calling thread until ``path`` is observed absent.

        Returns immediately when the node does not exist. Otherwise a check
        runs on every watch notification for ``path``; each check registers
        a fresh one-shot listener before re-reading the node with a watch, so
        a deletion between registration and check is never missed, even when
        the node is recreated several times first.

        Parameters
        ----------
        path:
            Node to wait on.
        timeout:
            Optional deadline in seconds. ``None`` waits forever.

        Raises
        ------
        WaitTimeoutError
            If ``timeout`` elapses first. A listener still pending at that
            point is dropped; a late notification is ignored.
        KeeperError
            If a check fails, for example because the session expired.
        """
        path = paths.normalize(path)
        deleted = threading.Event()
        abandoned = threading.Event()
        lock = threading.Lock()
        subscriptions: set[str] = set()
        failures: list[ZKClientError] = []

        def release_subscriptions() -> None:
            with lock:
                pending = list(subscriptions)
                subscriptions.clear()
            for subscription_id in pending:
                self.event_handler.unregister(path, subscription_id)

        def arm() -> bool:
            registration: dict[str, str] = {}

            def on_event(event: WatchEvent) -> None:
                with lock:
                    subscriptions.discard(registration["id"])
                check()

            with lock:
                if abandoned.is_set():
                    return False
                registration["id"] = self.event_handler.register_one_shot(path, on_event)
                subscriptions.add(registration["id"])
            return True

        def check() -> None:
            if deleted.is_set() or abandoned.is_set():
                return
            if not arm():
                return
            try:
                present = self.exists(path, watch=True) is not None
            except ZKClientError as exc:
                failures.append(exc)
                present = False
            if present:
                return
            release_subscriptions()
            deleted.set()

        self._inc_stat("waits_started")
        _LOGGER.debug("Waiting for node deletion path=%s", path)
        check()
        if not deleted.wait(timeout):
            with lock:
                abandoned.set()
            release_subscriptions()
            raise WaitTimeoutError(f"{path!r} still exists after {timeout} seconds")
        if failures:
            raise failures[0]
        self._inc_stat("waits_completed")
