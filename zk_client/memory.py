"""
Thread-safe in-memory coordination service used as the reference driver.

:class:`InMemoryEnsemble` owns one node tree shared by any number of
sessions. Each :class:`InMemoryDriver` is one session on that tree with its
own watch registrations, ephemeral nodes and notification thread, which
makes multi-client races reproducible inside a single process.

Notes
-----
* Watch notifications and asynchronous results are never delivered inline
  with the request that caused them; they go through the session's dispatch
  queue, as with a networked driver.
* ACLs are stored and returned but not enforced.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from . import paths
from .config import ACL, OPEN_ACL_UNSAFE, MemoryEnsembleConfig
from .driver import ResultCallback, Stat, Watcher
from .events import EventType, KeeperState, WatchEvent
from .exceptions import HandleClosedError, ResultCode

_LOGGER = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _valid_path(path: Any) -> bool:
    if not isinstance(path, str) or not path.startswith("/"):
        return False
    if path == "/":
        return True
    if path.endswith("/") or "\x00" in path:
        return False
    return all(segment not in {"", ".", ".."} for segment in path[1:].split("/"))


def _rc(code: ResultCode, **payload: Any) -> dict[str, Any]:
    return {"rc": int(code), **payload}


@dataclass(slots=True)
class _Node:
    data: bytes
    acl: tuple[ACL, ...]
    czxid: int
    ctime: int
    ephemeral_owner: int = 0
    mzxid: int = 0
    mtime: int = 0
    version: int = 0
    cversion: int = 0
    aversion: int = 0
    pzxid: int = 0
    children: set[str] = field(default_factory=set)

    def stat(self) -> Stat:
        return Stat(
            czxid=self.czxid,
            mzxid=self.mzxid,
            ctime=self.ctime,
            mtime=self.mtime,
            version=self.version,
            cversion=self.cversion,
            aversion=self.aversion,
            ephemeral_owner=self.ephemeral_owner,
            data_length=len(self.data),
            num_children=len(self.children),
            pzxid=self.pzxid,
        )


class InMemoryEnsemble:
    """
    Shared node tree standing in for a coordination-service ensemble.

    Use :meth:`connect` to open sessions. All tree mutations happen under one
    lock; watch notifications are queued to their sessions while the lock is
    held so every session observes changes in commit order.
    """

    def __init__(self, config: MemoryEnsembleConfig | None = None) -> None:
        self.config = config or MemoryEnsembleConfig()
        self._lock = threading.RLock()
        now = _now_ms()
        self._nodes: dict[str, _Node] = {
            "/": _Node(data=b"", acl=OPEN_ACL_UNSAFE, czxid=0, ctime=now, mtime=now),
        }
        self._zxid = 0
        self._next_session_id = 1
        self._sessions: dict[int, InMemoryDriver] = {}
        self._ephemerals: dict[int, set[str]] = {}
        self._data_watches: dict[str, dict[int, set[Watcher]]] = {}
        self._child_watches: dict[str, dict[int, set[Watcher]]] = {}

    def connect(self) -> "InMemoryDriver":
        """Open a new session on this ensemble."""
        with self._lock:
            session_id = self._next_session_id
            self._next_session_id += 1
            driver = InMemoryDriver(self, session_id)
            self._sessions[session_id] = driver
            self._ephemerals[session_id] = set()
        _LOGGER.debug("Memory session opened session_id=%s", session_id)
        return driver

    def paths(self) -> list[str]:
        """Return every node path currently in the tree, sorted."""
        with self._lock:
            return sorted(self._nodes)

    # ------------------------------------------------------------------ #
    # Requests (called by InMemoryDriver with the lock not held)
    # ------------------------------------------------------------------ #

    def create(
        self,
        session_id: int,
        path: str,
        data: bytes,
        acl: Sequence[ACL],
        ephemeral: bool,
        sequence: bool,
    ) -> dict[str, Any]:
        # A sequential path may end in "/"; the suffix completes the last segment.
        candidate = f"{path}0" if sequence and isinstance(path, str) else path
        if not _valid_path(candidate):
            return _rc(ResultCode.BADARGUMENTS)
        if not acl:
            return _rc(ResultCode.INVALIDACL)
        with self._lock:
            if candidate == "/":
                return _rc(ResultCode.NODEEXISTS)
            parent_path = paths.parent(candidate)
            parent = self._nodes.get(parent_path)
            if parent is None:
                return _rc(ResultCode.NONODE)
            if parent.ephemeral_owner:
                return _rc(ResultCode.NOCHILDRENFOREPHEMERALS)
            if sequence:
                path = f"{path}{parent.cversion:010d}"
            if path in self._nodes:
                return _rc(ResultCode.NODEEXISTS)

            zxid = self._next_zxid()
            now = _now_ms()
            self._nodes[path] = _Node(
                data=bytes(data or b""),
                acl=tuple(acl),
                czxid=zxid,
                ctime=now,
                mzxid=zxid,
                mtime=now,
                pzxid=zxid,
                ephemeral_owner=session_id if ephemeral else 0,
            )
            parent.children.add(paths.basename(path))
            parent.cversion += 1
            parent.pzxid = zxid
            if ephemeral:
                self._ephemerals.setdefault(session_id, set()).add(path)

            self._trigger(self._data_watches, path, EventType.CREATED)
            self._trigger(self._child_watches, parent_path, EventType.CHILD)
            return _rc(ResultCode.OK, path=path)

    def get(self, session_id: int, path: str, watcher: Watcher | None) -> dict[str, Any]:
        if not _valid_path(path):
            return _rc(ResultCode.BADARGUMENTS)
        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                return _rc(ResultCode.NONODE)
            if watcher is not None:
                self._add_watch(self._data_watches, path, session_id, watcher)
            return _rc(ResultCode.OK, data=node.data, stat=node.stat())

    def set(self, session_id: int, path: str, data: bytes, version: int) -> dict[str, Any]:
        if not _valid_path(path):
            return _rc(ResultCode.BADARGUMENTS)
        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                return _rc(ResultCode.NONODE)
            if version != -1 and version != node.version:
                return _rc(ResultCode.BADVERSION)
            node.data = bytes(data or b"")
            node.version += 1
            node.mzxid = self._next_zxid()
            node.mtime = _now_ms()
            self._trigger(self._data_watches, path, EventType.CHANGED)
            return _rc(ResultCode.OK, stat=node.stat())

    def exists(self, session_id: int, path: str, watcher: Watcher | None) -> dict[str, Any]:
        if not _valid_path(path):
            return _rc(ResultCode.BADARGUMENTS)
        with self._lock:
            if watcher is not None:
                self._add_watch(self._data_watches, path, session_id, watcher)
            node = self._nodes.get(path)
            if node is None:
                return _rc(ResultCode.NONODE)
            return _rc(ResultCode.OK, stat=node.stat())

    def delete(self, session_id: int, path: str, version: int) -> dict[str, Any]:
        if not _valid_path(path) or path == "/":
            return _rc(ResultCode.BADARGUMENTS)
        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                return _rc(ResultCode.NONODE)
            if version != -1 and version != node.version:
                return _rc(ResultCode.BADVERSION)
            if node.children:
                return _rc(ResultCode.NOTEMPTY)
            self._remove_node(path, node)
            return _rc(ResultCode.OK)

    def get_children(self, session_id: int, path: str, watcher: Watcher | None) -> dict[str, Any]:
        if not _valid_path(path):
            return _rc(ResultCode.BADARGUMENTS)
        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                return _rc(ResultCode.NONODE)
            if watcher is not None:
                self._add_watch(self._child_watches, path, session_id, watcher)
            return _rc(ResultCode.OK, children=sorted(node.children), stat=node.stat())

    def get_acl(self, session_id: int, path: str) -> dict[str, Any]:
        if not _valid_path(path):
            return _rc(ResultCode.BADARGUMENTS)
        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                return _rc(ResultCode.NONODE)
            return _rc(ResultCode.OK, acl=list(node.acl), stat=node.stat())

    def set_acl(self, session_id: int, path: str, acl: Sequence[ACL], version: int) -> dict[str, Any]:
        if not _valid_path(path):
            return _rc(ResultCode.BADARGUMENTS)
        if not acl:
            return _rc(ResultCode.INVALIDACL)
        with self._lock:
            node = self._nodes.get(path)
            if node is None:
                return _rc(ResultCode.NONODE)
            if version != -1 and version != node.aversion:
                return _rc(ResultCode.BADVERSION)
            node.acl = tuple(acl)
            node.aversion += 1
            return _rc(ResultCode.OK, stat=node.stat())

    def end_session(self, session_id: int) -> None:
        """Drop a session: delete its ephemeral nodes and forget its watches."""
        with self._lock:
            self._sessions.pop(session_id, None)
            for table in (self._data_watches, self._child_watches):
                for path in list(table):
                    table[path].pop(session_id, None)
                    if not table[path]:
                        del table[path]
            owned = sorted(self._ephemerals.pop(session_id, set()), reverse=True)
            for path in owned:
                node = self._nodes.get(path)
                if node is not None:
                    self._remove_node(path, node)
        if owned:
            _LOGGER.debug("Removed ephemeral nodes session_id=%s count=%s", session_id, len(owned))

    # ------------------------------------------------------------------ #
    # Internals (lock held)
    # ------------------------------------------------------------------ #

    def _next_zxid(self) -> int:
        self._zxid += 1
        return self._zxid

    def _remove_node(self, path: str, node: _Node) -> None:
        del self._nodes[path]
        if node.ephemeral_owner:
            self._ephemerals.get(node.ephemeral_owner, set()).discard(path)
        parent_path = paths.parent(path)
        parent = self._nodes.get(parent_path)
        if parent is not None:
            parent.children.discard(paths.basename(path))
            parent.cversion += 1
            parent.pzxid = self._next_zxid()
        self._trigger(self._data_watches, path, EventType.DELETED)
        self._trigger(self._child_watches, path, EventType.DELETED)
        self._trigger(self._child_watches, parent_path, EventType.CHILD)

    @staticmethod
    def _add_watch(
        table: dict[str, dict[int, set[Watcher]]],
        path: str,
        session_id: int,
        watcher: Watcher,
    ) -> None:
        table.setdefault(path, {}).setdefault(session_id, set()).add(watcher)

    def _trigger(
        self,
        table: dict[str, dict[int, set[Watcher]]],
        path: str,
        event_type: EventType,
    ) -> None:
        registered = table.pop(path, None)
        if not registered:
            return
        for session_id, watchers in registered.items():
            driver = self._sessions.get(session_id)
            if driver is None:
                continue
            event = WatchEvent(path=path, type=event_type, state=KeeperState.CONNECTED)
            for watcher in watchers:
                driver._enqueue(watcher, event)


class InMemoryDriver:
    """
    One session on an :class:`InMemoryEnsemble`.

    Implements :class:`zk_client.driver.CoordinationDriver`. Requests run
    synchronously against the shared tree; watch notifications and
    ``callback`` results are delivered on the session's dispatch thread.
    """

    def __init__(self, ensemble: InMemoryEnsemble, session_id: int) -> None:
        self._ensemble = ensemble
        self.session_id = session_id
        self._state_lock = threading.RLock()
        self._state = KeeperState.CONNECTED
        self._closed = False
        self._events: queue.Queue[tuple[Callable[[Any], None], Any] | None] = queue.Queue()
        self._dispatch_thread = threading.Thread(
            target=self._dispatch_loop,
            name=f"{ensemble.config.dispatch_thread_prefix}-{session_id}",
            daemon=True,
        )
        self._dispatch_thread.start()

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
            callback,
            lambda: self._ensemble.create(self.session_id, path, data, acl, ephemeral, sequence),
        )

    def get(
        self,
        path: str,
        *,
        watcher: Watcher | None = None,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        return self._request(callback, lambda: self._ensemble.get(self.session_id, path, watcher))

    def set(
        self,
        path: str,
        data: bytes,
        *,
        version: int = -1,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        return self._request(callback, lambda: self._ensemble.set(self.session_id, path, data, version))

    def exists(
        self,
        path: str,
        *,
        watcher: Watcher | None = None,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        return self._request(callback, lambda: self._ensemble.exists(self.session_id, path, watcher))

    def delete(
        self,
        path: str,
        *,
        version: int = -1,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        return self._request(callback, lambda: self._ensemble.delete(self.session_id, path, version))

    def get_children(
        self,
        path: str,
        *,
        watcher: Watcher | None = None,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        return self._request(callback, lambda: self._ensemble.get_children(self.session_id, path, watcher))

    def get_acl(self, path: str, *, callback: ResultCallback | None = None) -> dict[str, Any]:
        return self._request(callback, lambda: self._ensemble.get_acl(self.session_id, path))

    def set_acl(
        self,
        path: str,
        acl: Sequence[ACL],
        *,
        version: int = -1,
        callback: ResultCallback | None = None,
    ) -> dict[str, Any]:
        return self._request(callback, lambda: self._ensemble.set_acl(self.session_id, path, acl, version))

    def state(self) -> KeeperState:
        with self._state_lock:
            self._ensure_open()
            return self._state

    def expire(self) -> None:
        """
        Expire the session as the service would after a missed heartbeat.

        Ephemeral nodes are removed and later requests fail with
        ``SESSIONEXPIRED``; the handle stays open until :meth:`close`.
        """
        with self._state_lock:
            self._ensure_open()
            if self._state is KeeperState.EXPIRED_SESSION:
                return
            self._state = KeeperState.EXPIRED_SESSION
        self._ensemble.end_session(self.session_id)
        _LOGGER.debug("Memory session expired session_id=%s", self.session_id)

    def close(self) -> None:
        with self._state_lock:
            self._ensure_open()
            self._closed = True
            expired = self._state is KeeperState.EXPIRED_SESSION
        if not expired:
            self._ensemble.end_session(self.session_id)
        self._events.put(None)
        if threading.current_thread() is not self._dispatch_thread:
            self._dispatch_thread.join(timeout=self._ensemble.config.dispatch_join_timeout_seconds)
            if self._dispatch_thread.is_alive():
                _LOGGER.warning("Dispatch thread still busy after close session_id=%s", self.session_id)
        _LOGGER.debug("Memory session closed session_id=%s", self.session_id)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _ensure_open(self) -> None:
        if self._closed:
            raise HandleClosedError(f"memory session {self.session_id} handle is closed")

    def _request(
        self,
        callback: ResultCallback | None,
        operation: Callable[[], dict[str, Any]],
    ) -> dict[str, Any]:
        with self._state_lock:
            self._ensure_open()
            expired = self._state is KeeperState.EXPIRED_SESSION
        result = _rc(ResultCode.SESSIONEXPIRED) if expired else operation()
        if callback is None:
            return result
        self._enqueue(callback, result)
        return _rc(ResultCode.OK)

    def _enqueue(self, handler: Callable[[Any], None], payload: Any) -> None:
        self._events.put((handler, payload))

    def _dispatch_loop(self) -> None:
        while True:
            item = self._events.get()
            if item is None:
                return
            handler, payload = item
            try:
                handler(payload)
            except Exception:
                _LOGGER.exception("Memory dispatch handler failed session_id=%s", self.session_id)
