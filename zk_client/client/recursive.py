from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence

from .. import paths
from ..config import ACL, CreateMode
from ..exceptions import KeeperError, NodeExistsError, NoNodeError, NotEmptyError

_LOGGER = logging.getLogger(__name__)


def _flatten(items: Iterable[str | Iterable]) -> Iterator[str]:
    for item in items:
        if isinstance(item, str):
            yield item
        else:
            yield from _flatten(item)


class RecursiveOperationsMixin:
    """
    ``mkdir -p`` and ``rm -rf`` style helpers built on single-node requests.

    Both tolerate other clients mutating the same subtree concurrently.
    """

    def ensure_path(self, path: str, *, acl: Sequence[ACL] | None = None) -> None:
        """
        Create ``path`` and every missing ancestor as empty persistent nodes.

        Already existing nodes count as success, so the call is idempotent and
        safe to race with other clients creating the same ancestors.

        Raises
        ------
        KeeperError
            If a direct child of ``/`` cannot be created because ``/`` itself
            is reported missing; the service is broken at that point.
        """
        pending = [paths.normalize(path)]
        while pending:
            target = pending[-1]
            try:
                self.create(target, b"", mode=CreateMode.PERSISTENT, acl=acl)
            except NodeExistsError:
                pass
            except NoNodeError as exc:
                parent = paths.parent(target)
                if parent == paths.ROOT:
                    raise KeeperError("could not create '/', something is wrong", code=exc.code) from exc
                pending.append(parent)
                continue
            pending.pop()

    def remove_tree(self, *targets: str | Iterable[str]) -> None:
        """
        Delete each target path together with all of its descendants.

        Accepts any mix of path strings and (nested) iterables of paths.
        Nodes that disappear underneath the walk are ignored; the root ``/``
        is emptied but never deleted itself.
        """
        for path in _flatten(targets):
            self._remove_subtree(paths.normalize(path))

    def _remove_subtree(self, path: str) -> None:
        while True:
            try:
                for child in self.children(path):
                    self._remove_subtree(paths.join(path, child))
                if path != paths.ROOT:
                    self.delete(path)
                return
            except NoNodeError:
                return
            except NotEmptyError:
                _LOGGER.debug("Node gained children during removal; listing again path=%s", path)
