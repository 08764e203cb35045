"""tree-stream exception hierarchy.

All exceptions can be imported from this package:
    from treestream.exceptions import ConfigError, TreeStreamError
"""

from __future__ import annotations

# Base exception
from treestream.exceptions.base import TreeStreamError

# Configuration exceptions
from treestream.exceptions.config import ConfigError

# Document exceptions
from treestream.exceptions.document import DocumentError

# Streaming exceptions
from treestream.exceptions.stream import InvalidActionError, SchedulerClosedError

__all__ = [
    # Base
    "TreeStreamError",
    # Config
    "ConfigError",
    # Document
    "DocumentError",
    # Stream
    "InvalidActionError",
    "SchedulerClosedError",
]
