"""TreeStream orchestrator.

A :class:`TreeStream` reveals its children incrementally over time. Children
are flattened into a plan of execution units:

- text units, tokenized by word or character and revealed ``speed`` tokens
  every ``interval`` milliseconds;
- instant units, rendered in full immediately;
- nested stream units (child ``TreeStream`` elements), which must complete
  before the parent resumes.

The orchestrator is the only place that issues timers. State changes go
through :func:`~treestream.state.stream_reducer`, and every run is fenced by
the scheduler's run token: resetting invalidates all callbacks of the prior
run at once.

Contract:
    - A run resets only when the plan signature or ``auto_start`` changes.
    - Units start strictly in plan order; unit ``i + 1`` never starts before
      unit ``i`` has finished.
    - ``on_complete`` fires at most once per run.
    - Nested stream elements get ``auto_start=True`` and a composed
      ``on_complete`` that runs their own hook first and then resumes the
      parent, even if that hook raises.
    - A nested stream that never completes blocks the parent indefinitely.

Example:
    stream = TreeStream(
        ["Hello world! ", element("strong", None, "Bold")],
        speed=2,
        interval=30,
        on_complete=lambda: print("done"),
    )
    stream.subscribe(lambda s: print(s.snapshot()))
    stream.mount()
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from treestream.config import StreamConfig
from treestream.constants import DEFAULT_INSTANCE_ID, STREAM_DISPLAY_NAME
from treestream.exceptions import ConfigError
from treestream.logging import get_logger
from treestream.nested import STREAMING_MARKER
from treestream.nodes import Node, clone_element
from treestream.plan import (
    InstantRender,
    Plan,
    PlanSignature,
    TextStream,
    build_plan,
    plan_signature,
)
from treestream.scheduler import Clock, SequentialScheduler
from treestream.state import (
    INITIAL_STREAM_STATE,
    Advance,
    BeginText,
    Complete,
    EndText,
    InstantRenderAction,
    NestedDone,
    NestedStart,
    Reset,
    StreamAction,
    StreamState,
    TextTick,
    stream_reducer,
)
from treestream.tokenize import StreamBy, tokenize

__all__ = ["StreamListener", "StreamSnapshot", "TreeStream"]

logger = get_logger(__name__)

StreamListener = Callable[["TreeStream"], None]

# Props consumed by the orchestrator; anything else is forwarded to the view.
_OWN_PROPS = frozenset(
    {"children", "speed", "interval", "stream_by", "auto_start", "on_complete"}
)


@dataclass(frozen=True, slots=True)
class StreamSnapshot:
    """Observable output of a stream for the view layer.

    Attributes:
        is_stream_root: True while the stream is mounted.
        is_streaming: True while text is streaming or a nested stream runs.
        is_complete: True once the terminal unit has been reached.
        rendered: ``(slot_key, content)`` pairs in unit order.
    """

    is_stream_root: bool
    is_streaming: bool
    is_complete: bool
    rendered: tuple[tuple[str, Any], ...] = ()

    def data_attributes(self) -> dict[str, bool]:
        """Observable flags under their host attribute names."""
        return {
            "data-tree-stream": self.is_stream_root,
            "data-streaming": self.is_streaming,
            "data-complete": self.is_complete,
        }


class TreeStream:
    """Incrementally reveal a content tree.

    Args:
        children: Content tree to stream.
        speed: Tokens per tick (values below 1 count as 1).
        interval: Milliseconds between ticks.
        stream_by: ``"word"`` or ``"character"``.
        auto_start: Start streaming whenever the run resets.
        on_complete: Called once after the final unit, nested ones included.
        instance_id: Stable identifier used for slot keys and logging.
        clock: Timer source; defaults to the running asyncio loop.
        config: Defaults for any option left as ``None``.
        **extra_props: Forwarded untouched to the view layer.
    """

    display_name = STREAM_DISPLAY_NAME

    def __init__(
        self,
        children: Node = None,
        *,
        speed: int | None = None,
        interval: float | None = None,
        stream_by: StreamBy | str | None = None,
        auto_start: bool | None = None,
        on_complete: Callable[[], None] | None = None,
        instance_id: str | None = None,
        clock: Clock | None = None,
        config: StreamConfig | None = None,
        **extra_props: Any,
    ) -> None:
        defaults = config or StreamConfig()
        self.instance_id = instance_id or DEFAULT_INSTANCE_ID
        self._scheduler = SequentialScheduler(clock, name=self.instance_id)
        self._log = logger.bind(instance_id=self.instance_id)
        self._state: StreamState = INITIAL_STREAM_STATE
        self._listeners: list[StreamListener] = []
        self._mounted = False
        self._completed_token: int | None = None
        self._started_token: int | None = None

        self._speed = defaults.speed
        self._interval = defaults.interval
        self._stream_by = StreamBy(defaults.stream_by)
        self._auto_start = defaults.auto_start
        self._on_complete: Callable[[], None] | None = None
        self.extra_props: dict[str, Any] = {}
        self._plan: Plan = []
        self._signature: PlanSignature = ()

        props: dict[str, Any] = {"children": children, **extra_props}
        for name, value in (
            ("speed", speed),
            ("interval", interval),
            ("stream_by", stream_by),
            ("auto_start", auto_start),
            ("on_complete", on_complete),
        ):
            if value is not None:
                props[name] = value
        self._apply_props(props)

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def plan(self) -> Plan:
        return self._plan

    @property
    def signature(self) -> PlanSignature:
        return self._signature

    @property
    def run_token(self) -> int:
        return self._scheduler.run_token

    @property
    def scheduler(self) -> SequentialScheduler:
        return self._scheduler

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def speed(self) -> int:
        return self._speed

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def stream_by(self) -> StreamBy:
        return self._stream_by

    @property
    def auto_start(self) -> bool:
        return self._auto_start

    def slot_key(self, unit_index: int) -> str:
        """Stable key of the rendered slot for ``unit_index``."""
        return f"{self.instance_id}:u{unit_index}"

    def snapshot(self) -> StreamSnapshot:
        state = self._state
        return StreamSnapshot(
            is_stream_root=self._mounted,
            is_streaming=state.streaming,
            is_complete=state.complete,
            rendered=tuple(
                (self.slot_key(index), content)
                for index, content in state.rendered.items()
            ),
        )

    def subscribe(self, listener: StreamListener) -> Callable[[], None]:
        """Call ``listener`` after every state change.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def mount(self) -> None:
        """Attach the stream and start a fresh run.

        A stream can be mounted again after :meth:`unmount`; the new run
        never sees callbacks from the previous mount.
        """
        if self._mounted:
            return
        self._mounted = True
        self._scheduler.reopen()
        self._reset()

    def update(self, **props: Any) -> None:
        """Apply new props.

        The run resets only when the plan signature or ``auto_start`` changed;
        other props (speed, interval, stream_by, on_complete) apply from the
        next scheduled step on.
        """
        previous = (self._signature, self._auto_start)
        self._apply_props(props)
        if not self._mounted:
            return
        if (self._signature, self._auto_start) != previous:
            self._reset()
        else:
            self._notify()

    def start(self) -> None:
        """Begin the current run if it has not started yet.

        Used with ``auto_start=False``; a no-op once the run is under way.
        """
        if not self._mounted or self._state.complete:
            return
        if self._started_token == self._scheduler.run_token:
            return
        self._started_token = self._scheduler.run_token
        self._run_unit(0)

    def restart(self) -> None:
        """Discard the current run and start a fresh one."""
        if self._mounted:
            self._reset()

    def unmount(self) -> None:
        """Cancel all pending work; nothing fires after this returns."""
        if not self._mounted:
            return
        self._mounted = False
        self._scheduler.close()
        self._log.debug("stream_unmounted")
        self._notify()

    # ------------------------------------------------------------------
    # Props and state plumbing
    # ------------------------------------------------------------------

    def _apply_props(self, props: dict[str, Any]) -> None:
        if "children" in props:
            self._plan = build_plan(props["children"])
            self._signature = plan_signature(self._plan)
        if "speed" in props:
            self._speed = int(props["speed"])
        if "interval" in props:
            self._interval = max(0.0, float(props["interval"]))
        if "stream_by" in props:
            try:
                self._stream_by = StreamBy(props["stream_by"])
            except ValueError as e:
                raise ConfigError(
                    "stream_by must be 'word' or 'character', "
                    f"got {props['stream_by']!r}",
                    field="stream_by",
                    value=props["stream_by"],
                ) from e
        if "auto_start" in props:
            self._auto_start = bool(props["auto_start"])
        if "on_complete" in props:
            self._on_complete = props["on_complete"]
        extra = {k: v for k, v in props.items() if k not in _OWN_PROPS}
        if extra:
            self.extra_props.update(extra)

    def _dispatch(self, action: StreamAction) -> None:
        self._state = stream_reducer(self._state, action)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        token = self._scheduler.next_run_token()
        self._completed_token = None
        self._started_token = None
        self._log.debug(
            "run_reset",
            run_token=token,
            units=len(self._plan),
            auto_start=self._auto_start,
        )
        self._dispatch(Reset())

        if not self._plan:
            self._finish()
            return
        if self._auto_start:
            self._started_token = token
            self._run_unit(0)

    def _finish(self) -> None:
        token = self._scheduler.run_token
        if self._completed_token == token:
            return
        self._completed_token = token
        self._dispatch(Complete())
        self._log.debug("run_complete", run_token=token)
        if self._on_complete is not None:
            self._on_complete()

    def _schedule_unit(self, unit_index: int) -> None:
        self._scheduler.schedule(lambda: self._run_unit(unit_index), 0)

    def _run_unit(self, unit_index: int) -> None:
        if unit_index >= len(self._plan):
            self._finish()
            return

        unit = self._plan[unit_index]
        self._log.debug("unit_started", unit=unit_index, kind=unit.kind.value)

        if isinstance(unit, TextStream):
            tokens = tokenize(unit.content, self._stream_by)
            self._dispatch(BeginText(unit_index, tuple(tokens)))
            self._pump_text()
        elif isinstance(unit, InstantRender):
            self._dispatch(InstantRenderAction(unit_index, unit.content))
            self._dispatch(Advance())
            self._schedule_unit(unit_index + 1)
        else:
            self._start_nested(unit_index, unit.component)

    # ------------------------------------------------------------------
    # Text tick loop
    # ------------------------------------------------------------------

    def _pump_text(self) -> None:
        text = self._state.text
        if not text.streaming or not text.tokens or text.active_unit is None:
            return
        if text.index >= len(text.tokens):
            self._dispatch(EndText())
            self._dispatch(Advance())
            self._schedule_unit(text.active_unit + 1)
            return
        self._scheduler.schedule(self._tick, self._interval)

    def _tick(self) -> None:
        text = self._state.text
        step = max(1, self._speed)
        next_index = min(text.index + step, len(text.tokens))
        # Cumulative content is recomputed from scratch on every tick
        content = "".join(text.tokens[:next_index])
        self._dispatch(TextTick(next_index, content))
        self._pump_text()

    # ------------------------------------------------------------------
    # Nested streams
    # ------------------------------------------------------------------

    def _start_nested(self, unit_index: int, child: Any) -> None:
        existing = child.props.get("on_complete")
        token = self._scheduler.run_token

        def composed() -> None:
            try:
                if existing is not None:
                    existing()
            except Exception:
                self._log.warning(
                    "nested_on_complete_failed", unit=unit_index, exc_info=True
                )
                raise
            finally:
                self._nested_done(token, unit_index)

        rewritten = clone_element(child, auto_start=True, on_complete=composed)
        self._dispatch(NestedStart(unit_index, rewritten))

    def _nested_done(self, token: int, unit_index: int) -> None:
        if not self._scheduler.is_current(token):
            self._log.debug("stale_nested_completion", unit=unit_index, token=token)
            return
        state = self._state
        if not state.waiting_nested or state.unit_index != unit_index:
            # Repeat completion from a child that re-ran; already advanced.
            self._log.debug("duplicate_nested_completion", unit=unit_index)
            return
        self._dispatch(NestedDone())
        self._dispatch(Advance())
        self._schedule_unit(unit_index + 1)

    def __repr__(self) -> str:
        return (
            f"TreeStream(instance_id={self.instance_id!r}, "
            f"units={len(self._plan)}, unit_index={self._state.unit_index}, "
            f"complete={self._state.complete})"
        )


# Mark the canonical implementation for wrapped nested-stream detection.
setattr(TreeStream, STREAMING_MARKER, True)
