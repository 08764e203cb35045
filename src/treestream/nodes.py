"""Content tree node model.

A content tree is built from primitive leaves (``str``, numbers, ``bool``,
``None``), ordered collections (``list``/``tuple``) and :class:`Element`
nodes. Elements are immutable: rewriting one (for example to compose a
completion hook) always goes through :func:`clone_element`.

Example:
    tree = element(
        TreeStream,
        {"speed": 2},
        "Hello ",
        element("strong", None, "world"),
        element(TreeStream, None, "nested text"),
    )
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

__all__ = [
    "Element",
    "Fragment",
    "ForwardRef",
    "Memo",
    "Node",
    "clone_element",
    "element",
    "forward_ref",
    "is_element",
    "memo",
]

# Any value that may appear in a content tree.
Node = Any


class _FragmentType:
    """Sentinel type for grouping nodes that render no wrapper."""

    _instance: _FragmentType | None = None

    def __new__(cls) -> _FragmentType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Fragment"


Fragment = _FragmentType()


@dataclass(frozen=True, slots=True, eq=False)
class Element:
    """An opaque renderable node.

    Equality is identity: two elements built from the same arguments are
    still different nodes.

    Attributes:
        type: A tag name (``"strong"``), a component, a wrapper (:class:`Memo`,
            :class:`ForwardRef`) or :data:`Fragment`.
        props: Read-only properties; children live under ``"children"``.
        key: Optional caller-supplied identity hint.
    """

    type: Any
    props: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    key: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.props, MappingProxyType):
            object.__setattr__(self, "props", MappingProxyType(dict(self.props)))

    @property
    def children(self) -> Node:
        return self.props.get("children")

    def __repr__(self) -> str:
        type_name = getattr(self.type, "__name__", None) or repr(self.type)
        return f"Element({type_name}, keys={sorted(self.props)})"


@dataclass(frozen=True, slots=True)
class Memo:
    """Identity-preserving wrapper; ``.type`` points at the wrapped component."""

    type: Any


@dataclass(frozen=True, slots=True)
class ForwardRef:
    """Call-delegating wrapper; ``.render`` points at the wrapped callable."""

    render: Callable[..., Any]


def memo(component: Any) -> Memo:
    """Wrap ``component`` so that ``result.type is component``."""
    return Memo(component)


def forward_ref(render: Callable[..., Any]) -> ForwardRef:
    """Wrap ``render`` so that ``result.render is render``."""
    return ForwardRef(render)


def element(
    type: Any,
    props: Mapping[str, Any] | None = None,
    *children: Node,
    key: str | None = None,
) -> Element:
    """Create an :class:`Element`.

    A single positional child is stored as-is; several are stored as a tuple.
    Positional children override a ``"children"`` entry in ``props``.

    Args:
        type: Element type (tag, component, wrapper or :data:`Fragment`).
        props: Optional properties.
        *children: Child nodes.
        key: Optional identity hint.

    Returns:
        The new element.
    """
    merged = dict(props or {})
    if len(children) == 1:
        merged["children"] = children[0]
    elif children:
        merged["children"] = tuple(children)
    return Element(type=type, props=merged, key=key)


def clone_element(el: Element, **overrides: Any) -> Element:
    """Return a new element with ``overrides`` merged over ``el.props``."""
    return Element(type=el.type, props={**el.props, **overrides}, key=el.key)


def is_element(value: Any) -> bool:
    return isinstance(value, Element)
