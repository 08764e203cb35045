"""Nested stream detection.

The canonical stream implementation carries a capability marker attribute so
elements whose type is that implementation, or a common composition wrapper
around it, are recognized as nested streams rather than instant content.
"""

from __future__ import annotations

from typing import Any, Final

from treestream.constants import STREAM_DISPLAY_NAME
from treestream.nodes import Element

__all__ = [
    "STREAMING_MARKER",
    "has_stream_marker",
    "is_stream_element",
    "resolve_stream_component",
]

#: Attribute set to ``True`` on the canonical stream implementation.
STREAMING_MARKER: Final[str] = "__tree_stream__"


def has_stream_marker(candidate: Any) -> bool:
    return getattr(candidate, STREAMING_MARKER, False) is True


def _display_name(candidate: Any) -> str | None:
    return getattr(candidate, "display_name", None) or getattr(
        candidate, "__name__", None
    )


def resolve_stream_component(component_type: Any) -> Any | None:
    """Return the canonical stream implementation behind ``component_type``.

    The lookup is finite: the type itself, one ``.type`` hop (memo-style
    wrapper), one ``.render`` hop (forward-ref-style wrapper), then the
    conventional display name on each of those.

    Args:
        component_type: The ``type`` of an element.

    Returns:
        The marked implementation, or ``None`` if this is not a stream.
    """
    candidates = [
        component_type,
        getattr(component_type, "type", None),
        getattr(component_type, "render", None),
    ]
    for candidate in candidates:
        if candidate is not None and has_stream_marker(candidate):
            return candidate
    for candidate in candidates:
        if candidate is not None and _display_name(candidate) == STREAM_DISPLAY_NAME:
            return candidate
    return None


def is_stream_element(el: Element) -> bool:
    """Detect whether ``el`` is a stream element, even if wrapped."""
    return resolve_stream_component(el.type) is not None
