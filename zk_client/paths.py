"""
Helpers for slash-delimited absolute node paths.
"""

from __future__ import annotations

ROOT = "/"


def normalize(path: str) -> str:
    """
    Return ``path`` with duplicate and trailing slashes removed.

    Raises
    ------
    ValueError
        If the path is not a string or is not absolute.
    """
    if not isinstance(path, str):
        raise ValueError(f"Node path must be a string, got {type(path).__name__}.")
    if not path.startswith(ROOT):
        raise ValueError(f"Node path must be absolute: {path!r}.")
    return ROOT + ROOT.join(segment for segment in path.split(ROOT) if segment)


def parent(path: str) -> str:
    """
    Return the parent of a non-root path.

    The root has no parent; asking for one is a programming error.
    """
    path = normalize(path)
    if path == ROOT:
        raise ValueError("The root path has no parent.")
    head = path.rsplit(ROOT, 1)[0]
    return head or ROOT


def join(path: str, child: str) -> str:
    """Return the path of ``child`` under ``path``."""
    if path == ROOT:
        return ROOT + child
    return f"{path}{ROOT}{child}"


def basename(path: str) -> str:
    """Return the last segment of ``path`` (empty for the root)."""
    return normalize(path).rsplit(ROOT, 1)[1]
