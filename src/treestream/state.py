"""Stream state and its pure transition function.

:func:`stream_reducer` has no side effects and never sees the plan: the
orchestrator decides *what* happens and dispatches one of the nine actions
below; the reducer only records it. Every transition returns a new
:class:`StreamState`; ``Reset`` returns the shared initial state so nothing
from a previous run is carried over.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from treestream.exceptions import InvalidActionError

__all__ = [
    "INITIAL_STREAM_STATE",
    "Advance",
    "BeginText",
    "Complete",
    "EndText",
    "InstantRenderAction",
    "NestedDone",
    "NestedStart",
    "Reset",
    "StreamAction",
    "StreamState",
    "TextState",
    "TextTick",
    "stream_reducer",
]


def _frozen_mapping(data: dict[int, Any]) -> Mapping[int, Any]:
    # Ascending unit index order for iteration
    return MappingProxyType(dict(sorted(data.items())))


@dataclass(frozen=True, slots=True)
class TextState:
    """Progress of the text unit currently being revealed.

    Attributes:
        tokens: All tokens of the active text unit.
        index: Number of tokens revealed so far.
        active_unit: Plan index of the text unit, or None before any text.
        streaming: True while tokens are being revealed.
    """

    tokens: tuple[str, ...] = ()
    index: int = 0
    active_unit: int | None = None
    streaming: bool = False


@dataclass(frozen=True, slots=True)
class StreamState:
    """Run state of one stream instance.

    Attributes:
        unit_index: Cursor into the plan; never decreases within a run.
        waiting_nested: True while a nested stream has started but not completed.
        rendered: Produced content per unit index, iterated in index order.
        text: Substate of the active text unit.
        complete: True once the terminal unit boundary has been passed.
    """

    unit_index: int = 0
    waiting_nested: bool = False
    rendered: Mapping[int, Any] = field(default_factory=lambda: MappingProxyType({}))
    text: TextState = field(default_factory=TextState)
    complete: bool = False

    @property
    def streaming(self) -> bool:
        """True while text is being revealed or a nested stream is running."""
        return self.text.streaming or self.waiting_nested

    def with_rendered(self, unit_index: int, content: Any) -> Mapping[int, Any]:
        return _frozen_mapping({**self.rendered, unit_index: content})


INITIAL_STREAM_STATE = StreamState()


@dataclass(frozen=True, slots=True)
class Reset:
    pass


@dataclass(frozen=True, slots=True)
class BeginText:
    unit_index: int
    tokens: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class TextTick:
    next_index: int
    content: str


@dataclass(frozen=True, slots=True)
class EndText:
    pass


@dataclass(frozen=True, slots=True)
class Advance:
    pass


@dataclass(frozen=True, slots=True)
class InstantRenderAction:
    unit_index: int
    node: Any


@dataclass(frozen=True, slots=True)
class NestedStart:
    unit_index: int
    node: Any


@dataclass(frozen=True, slots=True)
class NestedDone:
    pass


@dataclass(frozen=True, slots=True)
class Complete:
    pass


StreamAction = (
    Reset
    | BeginText
    | TextTick
    | EndText
    | Advance
    | InstantRenderAction
    | NestedStart
    | NestedDone
    | Complete
)


def stream_reducer(state: StreamState, action: StreamAction) -> StreamState:
    """Apply ``action`` to ``state``.

    Args:
        state: Current state.
        action: One of the stream actions.

    Returns:
        The next state.

    Raises:
        InvalidActionError: If ``action`` is not a stream action.
    """
    if isinstance(action, Reset):
        return INITIAL_STREAM_STATE

    if isinstance(action, BeginText):
        rendered = state.rendered
        if action.unit_index not in rendered:
            rendered = state.with_rendered(action.unit_index, "")
        return replace(
            state,
            rendered=rendered,
            text=TextState(
                tokens=tuple(action.tokens),
                index=0,
                active_unit=action.unit_index,
                streaming=True,
            ),
        )

    if isinstance(action, TextTick):
        rendered = state.rendered
        if state.text.active_unit is not None:
            rendered = state.with_rendered(state.text.active_unit, action.content)
        return replace(
            state,
            rendered=rendered,
            text=replace(state.text, index=action.next_index),
        )

    if isinstance(action, EndText):
        return replace(state, text=replace(state.text, streaming=False))

    if isinstance(action, Advance):
        return replace(state, unit_index=state.unit_index + 1)

    if isinstance(action, InstantRenderAction):
        return replace(
            state, rendered=state.with_rendered(action.unit_index, action.node)
        )

    if isinstance(action, NestedStart):
        return replace(
            state,
            rendered=state.with_rendered(action.unit_index, action.node),
            waiting_nested=True,
        )

    if isinstance(action, NestedDone):
        return replace(state, waiting_nested=False)

    if isinstance(action, Complete):
        return replace(state, complete=True)

    raise InvalidActionError(action)
