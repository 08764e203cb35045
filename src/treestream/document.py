"""Tree documents.

A tree document describes a content tree in YAML:

- scalars are leaves (strings, numbers, booleans, null);
- sequences are ordered collections;
- ``{stream: {...}}`` is a nested stream; the mapping holds ``children`` and
  any of ``speed``, ``interval``, ``stream_by``, ``auto_start``. Anything
  that is not a mapping is shorthand for ``{children: ...}``;
- ``{fragment: ...}`` groups children without a wrapper;
- any other single-key mapping ``{tag: children}`` is an instant element.

Example:
    stream:
      speed: 2
      children:
        - "Streaming starts here. "
        - strong: "Bold renders at once."
        - stream: " This nested stream finishes before the parent resumes."
        - " The end."

Files that are not YAML (anything but ``.yaml``/``.yml``) are read as a
single text leaf.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from treestream.exceptions import DocumentError
from treestream.logging import get_logger
from treestream.nodes import Fragment, Node, element
from treestream.stream import TreeStream

__all__ = ["STREAM_OPTION_KEYS", "load_document", "parse_document"]

logger = get_logger(__name__)

STREAM_OPTION_KEYS = frozenset({"speed", "interval", "stream_by", "auto_start"})

_YAML_SUFFIXES = frozenset({".yaml", ".yml"})


def _child_path(path: str, key: str | int) -> str:
    if isinstance(key, int):
        return f"{path}[{key}]"
    return f"{path}.{key}"


def _parse_stream(value: Any, path: str) -> Node:
    if not isinstance(value, dict):
        return element(TreeStream, {"children": parse_document(value, path)})

    unknown = set(value) - STREAM_OPTION_KEYS - {"children"}
    if unknown:
        raise DocumentError(
            f"Unknown stream option(s): {', '.join(sorted(map(str, unknown)))}",
            path,
        )
    props = {key: value[key] for key in STREAM_OPTION_KEYS if key in value}
    props["children"] = parse_document(
        value.get("children"), _child_path(path, "children")
    )
    return element(TreeStream, props)


def parse_document(data: Any, path: str = "$") -> Node:
    """Convert loaded YAML data into a content tree.

    Args:
        data: Result of ``yaml.safe_load``.
        path: Location of ``data`` inside the document, for error messages.

    Returns:
        The content tree.

    Raises:
        DocumentError: If a node has an unsupported shape.
    """
    if data is None or isinstance(data, str | int | float | bool):
        return data
    if isinstance(data, list):
        return [
            parse_document(item, _child_path(path, i)) for i, item in enumerate(data)
        ]
    if isinstance(data, dict):
        if len(data) != 1:
            raise DocumentError(
                f"Element mappings must have exactly one key, got {len(data)}", path
            )
        ((tag, value),) = data.items()
        if not isinstance(tag, str) or not tag:
            raise DocumentError(
                f"Element tag must be a non-empty string: {tag!r}", path
            )
        child_path = _child_path(path, tag)
        if tag == "stream":
            return _parse_stream(value, child_path)
        if tag == "fragment":
            return element(Fragment, {"children": parse_document(value, child_path)})
        return element(tag, {"children": parse_document(value, child_path)})
    raise DocumentError(f"Unsupported node of type {type(data).__name__}", path)


def load_document(path: Path) -> Node:
    """Load a tree document from ``path``.

    Raises:
        DocumentError: If the file cannot be read or parsed.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentError(f"Cannot read {path}: {e.strerror or e}") from e
    except UnicodeDecodeError as e:
        raise DocumentError(f"Cannot decode {path} as UTF-8") from e

    if path.suffix.lower() not in _YAML_SUFFIXES:
        logger.debug("document_loaded_as_text", path=str(path), chars=len(raw))
        return raw

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise DocumentError(f"Invalid YAML in {path}: {e}") from e
    tree = parse_document(data)
    logger.debug("document_loaded", path=str(path))
    return tree
