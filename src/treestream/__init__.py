"""tree-stream: progressively reveal content trees, typewriter style.

Text is revealed token by token, other nodes render instantly, and nested
streams run to completion before their parent resumes.

Example:
    from treestream import StreamHost, TreeStream, element

    host = StreamHost(
        ["Hello world! ", element(TreeStream, {"speed": 1}, "nested")],
        speed=2,
        interval=30,
    )
    host.mount()
"""

from __future__ import annotations

from treestream.config import StreamConfig, TreeStreamSettings, load_config
from treestream.exceptions import TreeStreamError
from treestream.host import StreamHost, render_text
from treestream.nested import STREAMING_MARKER, is_stream_element
from treestream.nodes import (
    Element,
    Fragment,
    clone_element,
    element,
    forward_ref,
    memo,
)
from treestream.plan import (
    ExecutionUnit,
    InstantRender,
    NestedStream,
    TextStream,
    UnitKind,
    build_plan,
    plan_signature,
)
from treestream.scheduler import AsyncioClock, Clock, SequentialScheduler
from treestream.state import INITIAL_STREAM_STATE, StreamState, stream_reducer
from treestream.stream import StreamSnapshot, TreeStream
from treestream.tokenize import StreamBy, tokenize

__version__ = "0.1.0"

__all__ = [
    "AsyncioClock",
    "Clock",
    "Element",
    "ExecutionUnit",
    "Fragment",
    "INITIAL_STREAM_STATE",
    "InstantRender",
    "NestedStream",
    "STREAMING_MARKER",
    "SequentialScheduler",
    "StreamBy",
    "StreamConfig",
    "StreamHost",
    "StreamSnapshot",
    "StreamState",
    "TextStream",
    "TreeStream",
    "TreeStreamError",
    "TreeStreamSettings",
    "UnitKind",
    "__version__",
    "build_plan",
    "clone_element",
    "element",
    "forward_ref",
    "is_stream_element",
    "load_config",
    "memo",
    "plan_signature",
    "render_text",
    "stream_reducer",
    "tokenize",
]
