"""
Coordination client package.

The client is split into focused mixins while exporting one public
``CoordinationClient`` entrypoint.
"""

from .node import CoordinationClient

__all__ = ["CoordinationClient"]
