"""Execution plans.

A plan is the flat, ordered list of execution units that drives a stream.
:func:`build_plan` walks a content tree depth-first in pre-order, flattening
collections and fragments, and :func:`plan_signature` fingerprints the result
so callers can tell structural/text changes apart from mere re-renders.

Rules:
- Strings become text units (strings without non-whitespace are skipped)
- Numbers become text units holding their string form
- Lists, tuples and fragments are flattened recursively
- Stream elements become nested units, left unexpanded
- All other elements are instant units
- ``None``, booleans and unrecognized values produce nothing
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from treestream.nested import is_stream_element
from treestream.nodes import Element, Fragment, Node

__all__ = [
    "ExecutionUnit",
    "InstantRender",
    "NestedStream",
    "Plan",
    "PlanSignature",
    "TextStream",
    "UnitKind",
    "build_plan",
    "describe_unit",
    "plan_signature",
]


class UnitKind(str, Enum):
    """Kind of an execution unit."""

    TEXT_STREAM = "text_stream"
    INSTANT_RENDER = "instant_render"
    NESTED_STREAM = "nested_stream"


@dataclass(frozen=True, slots=True)
class TextStream:
    """A span of text to tokenize and reveal incrementally."""

    content: str

    @property
    def kind(self) -> UnitKind:
        return UnitKind.TEXT_STREAM


@dataclass(frozen=True, slots=True)
class InstantRender:
    """A non-text node rendered in full immediately."""

    content: Element

    @property
    def kind(self) -> UnitKind:
        return UnitKind.INSTANT_RENDER


@dataclass(frozen=True, slots=True)
class NestedStream:
    """A nested stream element whose completion gates the parent."""

    component: Element

    @property
    def kind(self) -> UnitKind:
        return UnitKind.NESTED_STREAM


ExecutionUnit = TextStream | InstantRender | NestedStream
Plan = list[ExecutionUnit]
PlanSignature = tuple[tuple[str, ...], ...]

# Signature tags per unit kind
_SIGNATURE_TAGS: dict[UnitKind, str] = {
    UnitKind.TEXT_STREAM: "T",
    UnitKind.INSTANT_RENDER: "I",
    UnitKind.NESTED_STREAM: "N",
}


def build_plan(node: Node) -> Plan:
    """Convert an arbitrary content tree into a flat execution plan.

    Args:
        node: Any content tree value.

    Returns:
        Execution units in order of appearance in the tree.
    """
    if node is None or isinstance(node, bool):
        return []
    if isinstance(node, str):
        return [TextStream(node)] if node.strip() else []
    if isinstance(node, int | float):
        return [TextStream(str(node))]
    if isinstance(node, list | tuple):
        plan: Plan = []
        for child in node:
            plan.extend(build_plan(child))
        return plan
    if isinstance(node, Element):
        if node.type is Fragment:
            return build_plan(node.children)
        if is_stream_element(node):
            return [NestedStream(node)]
        return [InstantRender(node)]
    return []


def _signature_entry(unit: ExecutionUnit) -> tuple[str, ...]:
    tag = _SIGNATURE_TAGS[unit.kind]
    if isinstance(unit, TextStream):
        return (tag, unit.content)
    return (tag,)


def plan_signature(plan: Plan) -> PlanSignature:
    """Create a stable signature capturing plan shape and text content.

    Text units contribute their content so text edits re-run the stream;
    instant and nested units contribute only their kind, never their identity.

    Args:
        plan: The plan to fingerprint.

    Returns:
        A hashable, comparable tuple.
    """
    return tuple(_signature_entry(unit) for unit in plan)


def describe_unit(unit: ExecutionUnit, width: int = 40) -> str:
    """Short human-readable preview of a unit, for plan listings."""
    if isinstance(unit, TextStream):
        preview = unit.content
        if len(preview) > width:
            preview = preview[: width - 3] + "..."
        return repr(preview)
    target: Any = unit.content if isinstance(unit, InstantRender) else unit.component
    type_ = target.type
    return getattr(type_, "__name__", None) or str(type_)
