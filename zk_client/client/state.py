from __future__ import annotations

import logging

from ..events import KeeperState
from ..exceptions import HandleClosedError

_LOGGER = logging.getLogger(__name__)


class ClientStateMixin:
    """
    Connection-state queries and shutdown.

    A closed driver handle answers with :class:`HandleClosedError`. That is a
    normal terminal state, so these methods turn it into plain answers; any
    other exception from the driver propagates unchanged.
    """

    def state(self) -> KeeperState | None:
        """Return the driver session state, or ``None`` once the handle is closed."""
        try:
            return self._driver.state()
        except HandleClosedError:
            return None

    @property
    def closed(self) -> bool:
        return self.state() is None

    @property
    def connected(self) -> bool:
        return self.state() in {KeeperState.CONNECTED, KeeperState.CONNECTED_RO}

    @property
    def connecting(self) -> bool:
        return self.state() == KeeperState.CONNECTING

    @property
    def associating(self) -> bool:
        return self.state() == KeeperState.ASSOCIATING

    def close(self) -> bool:
        """
        Close the driver session.

        Returns ``False`` when the handle was already closed.
        """
        try:
            self._driver.close()
        except HandleClosedError:
            return False
        _LOGGER.debug("Coordination client closed pending_listeners=%s", self.event_handler.pending())
        return True
