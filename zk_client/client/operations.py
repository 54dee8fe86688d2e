from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..config import ACL, CreateMode
from ..driver import ResultCallback, Stat
from ..exceptions import NoNodeError


class NodeOperationsMixin:
    """
    Single-node requests with option defaults and result-code checking.

    Every method accepts an optional ``callback``. With a callback the driver
    completes the request on its own thread and passes the raw result mapping
    to it; the method then returns the raw submission result instead of the
    unpacked payload.
    """

    def create(
        self,
        path: str,
        data: bytes | str = b"",
        *,
        mode: CreateMode | str | None = None,
        acl: Sequence[ACL] | None = None,
        callback: ResultCallback | None = None,
    ) -> Any:
        """
        Create a node and return its path.

        The default mode is ephemeral (see ``ClientConfig``). For sequential
        modes the returned path carries the service-assigned suffix and must
        be used instead of ``path`` for later requests.
        """
        options = self._merge_options(
            {"mode": self.config.default_create_mode, "acl": self.config.default_acl},
            mode=mode,
            acl=acl,
        )
        create_mode = CreateMode(options["mode"])
        result = self._check_rc(
            "create",
            path,
            self._driver.create(
                path,
                self._encode(data),
                acl=tuple(options["acl"]),
                ephemeral=create_mode.ephemeral,
                sequence=create_mode.sequential,
                callback=callback,
            ),
        )
        return result if callback else result["path"]

    def get(
        self,
        path: str,
        *,
        watch: bool = False,
        callback: ResultCallback | None = None,
    ) -> Any:
        """Return ``(data, stat)`` for ``path``."""
        result = self._check_rc(
            "get",
            path,
            self._driver.get(path, watcher=self._watcher_for(watch), callback=callback),
        )
        return result if callback else (result["data"], result["stat"])

    def set(
        self,
        path: str,
        data: bytes | str,
        *,
        version: int = -1,
        callback: ResultCallback | None = None,
    ) -> Any:
        """Replace node data and return the new stat."""
        result = self._check_rc(
            "set",
            path,
            self._driver.set(path, self._encode(data), version=version, callback=callback),
        )
        return result if callback else result["stat"]

    def stat(
        self,
        path: str,
        *,
        watch: bool = False,
        callback: ResultCallback | None = None,
    ) -> Stat | dict[str, Any] | None:
        """
        Return node metadata, or ``None`` when the node does not exist.

        With ``watch=True`` a watch is left even for a missing node, so the
        next creation of ``path`` is reported.
        """
        try:
            result = self._check_rc(
                "stat",
                path,
                self._driver.exists(path, watcher=self._watcher_for(watch), callback=callback),
            )
        except NoNodeError:
            return None
        return result if callback else result["stat"]

    exists = stat

    def delete(
        self,
        path: str,
        *,
        version: int = -1,
        callback: ResultCallback | None = None,
    ) -> Any:
        """
        Delete a node.

        ``version=-1`` deletes unconditionally; pass the expected version for
        compare-and-delete.
        """
        result = self._check_rc(
            "delete",
            path,
            self._driver.delete(path, version=version, callback=callback),
        )
        return result if callback else None

    def children(
        self,
        path: str,
        *,
        watch: bool = False,
        callback: ResultCallback | None = None,
    ) -> Any:
        """Return the child names of ``path``."""
        result = self._check_rc(
            "children",
            path,
            self._driver.get_children(path, watcher=self._watcher_for(watch), callback=callback),
        )
        return result if callback else list(result["children"])

    def get_acl(self, path: str, *, callback: ResultCallback | None = None) -> Any:
        """Return ``(acl, stat)`` for ``path``."""
        result = self._check_rc("get_acl", path, self._driver.get_acl(path, callback=callback))
        return result if callback else (list(result["acl"]), result["stat"])

    def set_acl(
        self,
        path: str,
        acl: Sequence[ACL],
        *,
        version: int = -1,
        callback: ResultCallback | None = None,
    ) -> Any:
        """Replace the ACL of ``path`` and return the new stat."""
        result = self._check_rc(
            "set_acl",
            path,
            self._driver.set_acl(path, tuple(acl), version=version, callback=callback),
        )
        return result if callback else result["stat"]
