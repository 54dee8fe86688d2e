"""
zk_client
=========

Higher-level client for hierarchical, watch-based coordination services.

The package sits above a raw driver that answers every request with a numeric
result code and reports changes through one-shot watches, and turns it into a
safer interface:

* :func:`zk_client.exceptions.translate` maps result codes to typed
  exceptions (``NoNodeError``, ``NodeExistsError``, ``BadVersionError``, ...)
* :class:`zk_client.watches.WatchDispatcher` routes watch notifications from
  the driver's dispatch thread to one-shot listeners registered per path
* :meth:`CoordinationClient.ensure_path` and
  :meth:`CoordinationClient.remove_tree` create and delete whole subtrees
  while other clients mutate them concurrently
* :meth:`CoordinationClient.wait_until_deleted` blocks until a node is gone
  without racing the check against the subscription

Drivers:

* :class:`zk_client.memory.InMemoryEnsemble` for tests and single-process use
* :class:`zk_client.kazoo_driver.KazooDriver` for a live ensemble (optional
  ``kazoo`` extra)

Typical usage::

    from zk_client import CreateMode, create_client

    zk = create_client(backend="kazoo", hosts="127.0.0.1:2181")
    zk.ensure_path("/app/members")
    me = zk.create("/app/members/m-", b"host-a", mode=CreateMode.EPHEMERAL_SEQUENTIAL)
    zk.wait_until_deleted("/app/leader")
    zk.close()
"""

from .backends import DriverBackend, available_backends, create_client, create_driver
from .client import CoordinationClient
from .config import (
    ACL,
    OPEN_ACL_UNSAFE,
    READ_ACL_UNSAFE,
    ClientConfig,
    CreateMode,
    MemoryEnsembleConfig,
    Perms,
)
from .driver import CoordinationDriver, Stat
from .events import EventType, KeeperState, WatchEvent
from .exceptions import (
    AuthFailedError,
    BadVersionError,
    ConnectionLossError,
    HandleClosedError,
    KeeperError,
    NodeExistsError,
    NoNodeError,
    NotEmptyError,
    ResultCode,
    SessionExpiredError,
    WaitTimeoutError,
    ZKClientError,
    translate,
)
from .memory import InMemoryDriver, InMemoryEnsemble
from .watches import WatchDispatcher

__all__ = [
    "ACL",
    "AuthFailedError",
    "BadVersionError",
    "ClientConfig",
    "ConnectionLossError",
    "CoordinationClient",
    "CoordinationDriver",
    "CreateMode",
    "DriverBackend",
    "EventType",
    "HandleClosedError",
    "InMemoryDriver",
    "InMemoryEnsemble",
    "KeeperError",
    "KeeperState",
    "MemoryEnsembleConfig",
    "NoNodeError",
    "NodeExistsError",
    "NotEmptyError",
    "OPEN_ACL_UNSAFE",
    "Perms",
    "READ_ACL_UNSAFE",
    "ResultCode",
    "SessionExpiredError",
    "Stat",
    "WaitTimeoutError",
    "WatchDispatcher",
    "WatchEvent",
    "ZKClientError",
    "available_backends",
    "create_client",
    "create_driver",
    "translate",
]
