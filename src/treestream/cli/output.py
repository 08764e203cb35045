"""Output formatting utilities for the tree-stream CLI."""

from __future__ import annotations

import json
from typing import Any

__all__ = [
    "format_error",
    "format_json",
]


def format_error(
    message: str, details: list[str] | None = None, suggestion: str | None = None
) -> str:
    """Format an error message with optional details and suggestion.

    Args:
        message: Primary error message.
        details: Optional list of detail lines to include.
        suggestion: Optional suggestion for resolving the error.

    Returns:
        Formatted error string with details and suggestion if provided.

    Example:
        >>> print(format_error("Cannot read doc.yaml", suggestion="Check the path"))
        Error: Cannot read doc.yaml
        Suggestion: Check the path
    """
    lines = [f"Error: {message}"]

    if details:
        for detail in details:
            lines.append(f"  {detail}")

    if suggestion:
        lines.append(f"Suggestion: {suggestion}")

    return "\n".join(lines)


def format_json(data: Any) -> str:
    """Format data as indented JSON.

    Args:
        data: Any JSON-serializable data structure.

    Returns:
        Formatted JSON string with 2-space indentation.

    Raises:
        TypeError: If data is not JSON-serializable.

    Example:
        >>> format_json({"index": 0, "kind": "text_stream"})
        '{\\n  "index": 0,\\n  "kind": "text_stream"\\n}'
    """
    return json.dumps(data, indent=2)
