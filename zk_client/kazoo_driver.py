"""
Driver adapter over a live kazoo ``KazooClient``.

kazoo raises exceptions where the client expects result codes, so every
request is wrapped: ``ZookeeperError.code`` becomes the ``rc`` of the result
mapping, kazoo stats and watch events are converted to the library's own
value types, and a closed client is reported as
:class:`zk_client.exceptions.HandleClosedError`.

Install with the ``kazoo`` extra::

    pip install "zk-client[kazoo]"
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from typing import Any

from kazoo.client import KazooClient
from kazoo.exceptions import ZookeeperError
from kazoo.protocol.states import WatchedEvent, ZnodeStat
from kazoo.security import ACL as KazooACL
from kazoo.security import Id

from .config import ACL
from .driver import ResultCallback, Stat, Watcher
from .events import EventType, KeeperState, WatchEvent
from .exceptions import HandleClosedError, ResultCode

_LOGGER = logging.getLogger(__name__)

_KAZOO_EVENT_TYPES = {
    "CREATED": EventType.CREATED,
    "DELETED": EventType.DELETED,
    "CHANGED": EventType.CHANGED,
    "CHILD": EventType.CHILD,
    "NONE": EventType.SESSION,
}


def _ok(**payload: Any) -> dict[str, Any]:
    return {"rc": int(ResultCode.OK), **payload}


def _to_stat(stat: ZnodeStat) -> Stat:
    return Stat(
        czxid=stat.czxid,
        mzxid=stat.mzxid,
        ctime=stat.ctime,
        mtime=stat.mtime,
        version=stat.version,
        cversion=stat.cversion,
        aversion=stat.aversion,
        ephemeral_owner=stat.ephemeralOwner,
        data_length=stat.dataLength,
        num_children=stat.numChildren,
        pzxid=stat.pzxid,
    )


def _to_kazoo_acl(entry: ACL) -> KazooACL:
    return KazooACL(entry.perms, Id(entry.scheme, entry.id))


def _from_kazoo_acl(entry: KazooACL) -> ACL:
    return ACL(perms=int(entry.perms), scheme=entry.id.scheme, id=entry.id.id)


def _keeper_state(value: Any) -> KeeperState | None:
    """Map a kazoo ``KeeperState`` string; ``None`` stands for CLOSED."""
    name = str(value).lower()
    if name == "closed":
        return None
    return KeeperState(name)


def _to_watch_event(event: WatchedEvent) -> WatchEvent:
    return WatchEvent(
        path=event.path,
        type=_KAZOO_EVENT_TYPES.get(str(event.type), EventType.SESSION),
        state=_keeper_state(event.state) or KeeperState.EXPIRED_SESSION,
    )


class KazooDriver:
    """
    :class:`zk_client.driver.CoordinationDriver` backed by kazoo.

    Parameters
    ----------
    client:
        Started ``KazooClient``. The driver stops and closes it on
        :meth:`close`.
    """

    def __init__(self, client: KazooClient) -> None:
        self._client = client
        self._lock = threading.RLock()
        self._closed = False
        self._watch_wrappers: dict[Watcher, Callable[[WatchedEvent], None]] = {}

    @classmethod
    def connect(
        cls,
        hosts: str = "127.0.0.1:2181",
        *,
        timeout: float = 10.0,
        **client_options: Any,
    ) -> "KazooDriver":
        """Start a ``KazooClient`` for ``hosts`` and wrap it."""
        client = KazooClient(hosts=hosts, **client_options)
        client.start(timeout=timeout)
        _LOGGER.debug("Kazoo client started hosts=%s", hosts)
        return cls(client)

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
        return self._request(
            "create",
            callback,
            lambda created: _ok(path=created),
            path,
            data,
            acl=[_to_kazoo_acl(entry) for entry in acl],
            ephemeral=ephemeral,
            sequence=sequence,
        )

    def get(
        self,
        path: str,
        *,
        watcher: Watcher | None = None,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        return self._request(
            "get",
            callback,
            lambda value: _ok(data=value[0], stat=_to_stat(value[1])),
            path,
            watch=self._wrap_watcher(watcher),
        )

    def set(
        self,
        path: str,
        data: bytes,
        *,
        version: int = -1,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        return self._request("set", callback, lambda stat: _ok(stat=_to_stat(stat)), path, data, version=version)

    def exists(
        self,
        path: str,
        *,
        watcher: Watcher | None = None,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        return self._request(
            "exists",
            callback,
            lambda stat: _ok(stat=_to_stat(stat)) if stat is not None else {"rc": int(ResultCode.NONODE)},
            path,
            watch=self._wrap_watcher(watcher),
        )

    def delete(
        self,
        path: str,
        *,
        version: int = -1,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        return self._request("delete", callback, lambda _: _ok(), path, version=version)

    def get_children(
        self,
        path: str,
        *,
        watcher: Watcher | None = None,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        return self._request(
            "get_children",
            callback,
            lambda children: _ok(children=list(children)),
            path,
            watch=self._wrap_watcher(watcher),
        )

    def get_acl(self, path: str, *, callback: ResultCallback | None = None) -> dict[str, Any]:
        return self._request(
            "get_acls",
            callback,
            lambda value: _ok(acl=[_from_kazoo_acl(entry) for entry in value[0]], stat=_to_stat(value[1])),
            path,
        )

    def set_acl(
        self,
        path: str,
        acl: Sequence[ACL],
        *,
        version: int = -1,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        return self._request(
            "set_acls",
            callback,
            lambda stat: _ok(stat=_to_stat(stat)),
            path,
            [_to_kazoo_acl(entry) for entry in acl],
            version=version,
        )

    def state(self) -> KeeperState:
        with self._lock:
            self._ensure_open()
            state = _keeper_state(self._client.client_state)
        if state is None:
            raise HandleClosedError("kazoo client handle is closed")
        return state

    def close(self) -> None:
        with self._lock:
            self._ensure_open()
            self._closed = True
        self._client.stop()
        self._client.close()
        _LOGGER.debug("Kazoo client closed")

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _ensure_open(self) -> None:
        if self._closed:
            raise HandleClosedError("kazoo client handle is closed")

    def _wrap_watcher(self, watcher: Watcher | None) -> Callable[[WatchedEvent], None] | None:
        """
        Return one stable kazoo watch function per client watcher.

        kazoo de-duplicates watch functions per path by identity, so reusing
        the wrapper keeps one notification per change.
        """
        if watcher is None:
            return None
        with self._lock:
            wrapper = self._watch_wrappers.get(watcher)
            if wrapper is None:

                def wrapper(event: WatchedEvent) -> None:
                    watcher(_to_watch_event(event))

                self._watch_wrappers[watcher] = wrapper
            return wrapper

    def _request(
        self,
        method: str,
        callback: ResultCallback | None,
        convert: Callable[[Any], dict[str, Any]],
        *args: Any,
        **kwargs: Any,
    ) -> dict[str, Any]:
        self._ensure_open()
        if callback is None:
            try:
                value = getattr(self._client, method)(*args, **kwargs)
            except ZookeeperError as exc:
                return {"rc": int(getattr(exc, "code", ResultCode.SYSTEMERROR))}
            return convert(value)

        async_result = getattr(self._client, f"{method}_async")(*args, **kwargs)
        async_result.rawlink(lambda completed: callback(self._complete(completed, convert)))
        return _ok()

    @staticmethod
    def _complete(async_result: Any, convert: Callable[[Any], dict[str, Any]]) -> dict[str, Any]:
        try:
            value = async_result.get()
        except ZookeeperError as exc:
            return {"rc": int(getattr(exc, "code", ResultCode.SYSTEMERROR))}
        return convert(value)
