"""Shared constants for tree-stream.

Defaults mirror the per-instance configuration knobs of a stream.
"""

from __future__ import annotations

from typing import Final

#: Tokens revealed per tick.
DEFAULT_SPEED: Final[int] = 5

#: Delay between ticks, in milliseconds.
DEFAULT_INTERVAL_MS: Final[float] = 50

#: Tokenization granularity used when none is configured.
DEFAULT_STREAM_BY: Final = "word"

DEFAULT_AUTO_START: Final[bool] = True

#: Name used for nested-stream detection when no capability marker is found.
STREAM_DISPLAY_NAME: Final[str] = "TreeStream"

#: Instance id of a root stream when the caller supplies none.
DEFAULT_INSTANCE_ID: Final[str] = "stream"

#: Project-level config file looked up in the working directory.
PROJECT_CONFIG_FILENAME: Final[str] = "treestream.yaml"
