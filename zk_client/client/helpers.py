from __future__ import annotations

import logging
from typing import Any

from ..driver import Watcher
from ..events import WatchEvent
from ..exceptions import ResultCode, translate

_LOGGER = logging.getLogger(__name__)


class ClientHelperMixin:
    """
    Low-level utility methods shared across mixins.
    """

    @staticmethod
    def _merge_options(defaults: dict[str, Any], **overrides: Any) -> dict[str, Any]:
        """
        Overlay caller options on method defaults.

        ``None`` means "not supplied" so the default stays in effect.
        """
        merged = dict(defaults)
        merged.update({key: value for key, value in overrides.items() if value is not None})
        return merged

    @staticmethod
    def _encode(data: bytes | str | None) -> bytes:
        if data is None:
            return b""
        if isinstance(data, str):
            return data.encode("utf-8")
        return bytes(data)

    def _check_rc(self, operation: str, path: str, result: dict[str, Any]) -> dict[str, Any]:
        """
        Return ``result`` unchanged when its result code is OK.

        Raises
        ------
        KeeperError
            Subclass matching the non-zero result code.
        """
        self._inc_stat("operations")
        code = result.get("rc", ResultCode.OK)
        if code == ResultCode.OK:
            return result
        self._inc_stat("operation_failures")
        error = translate(code, f"{operation} {path!r} failed with result code {code}")
        _LOGGER.debug("Keeper request failed op=%s path=%s error=%s", operation, path, type(error).__name__)
        raise error

    def _watcher_for(self, watch: bool) -> Watcher | None:
        """Return the driver watch callback when the caller asked for a watch."""
        return self._forward_watch_event if watch else None

    def _forward_watch_event(self, event: WatchEvent) -> None:
        """Hand one driver notification to the one-shot listener table."""
        self._inc_stat("watch_events")
        self.event_handler.dispatch(event)

    def _inc_stat(self, key: str, *, delta: int = 1) -> None:
        with self._stats_lock:
            self._stats[key] = self._stats.get(key, 0) + delta

    def stats(self) -> dict[str, int]:
        """Return a snapshot of client counters."""
        with self._stats_lock:
            return dict(self._stats)
