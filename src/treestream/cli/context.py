"""CLI context and utilities for tree-stream.

This module provides the typed CLI context and exit codes.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

from treestream.config import TreeStreamSettings

__all__ = [
    "ExitCode",
    "CLIContext",
]


class ExitCode(IntEnum):
    """Standard exit codes for the tree-stream CLI.

    - 0 for success
    - 1 for failure
    - 130 for keyboard interrupt (128 + SIGINT=2)
    """

    SUCCESS = 0
    FAILURE = 1
    INTERRUPTED = 130


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Type-safe CLI context containing global options and configuration.

    Attributes:
        config: Loaded settings.
        config_path: Path to config file (if specified via --config).
        verbosity: Verbosity level (0=default, 1=INFO, 2+=DEBUG).
        quiet: Suppress non-essential output.

    Example:
        >>> ctx = CLIContext(config=TreeStreamSettings(), verbosity=1)
        >>> ctx.config.stream.speed
        5
    """

    config: TreeStreamSettings
    config_path: Path | None = None
    verbosity: int = 0
    quiet: bool = False

    @property
    def is_tty(self) -> bool:
        return sys.stdin.isatty() and sys.stdout.isatty()
