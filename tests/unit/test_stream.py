"""Unit tests for the TreeStream orchestrator."""

from __future__ import annotations

import pytest

from tests.fixtures.clock import ManualClock
from treestream.config import StreamConfig
from treestream.exceptions import ConfigError
from treestream.nodes import Element, element
from treestream.stream import TreeStream


def rendered(stream: TreeStream) -> dict[int, object]:
    return dict(stream.state.rendered)


class Recorder:
    """Counts calls, for use as an ``on_complete`` hook."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


class TestTextTiming:
    """Tests for token-by-token reveal of text units."""

    def test_word_mode_timing(self, clock: ManualClock) -> None:
        stream = TreeStream("Hello world!", speed=2, interval=10, clock=clock)
        stream.mount()
        assert rendered(stream) == {0: ""}
        assert stream.state.streaming

        clock.advance(10)
        assert rendered(stream) == {0: "Hello "}

        clock.advance(10)
        assert rendered(stream) == {0: "Hello world!"}
        assert not stream.state.text.streaming
        assert not stream.state.complete

        # Completion lands on the following zero-delay cycle
        clock.advance(0)
        assert stream.state.complete
        assert not stream.state.streaming

    def test_character_mode_timing(self, clock: ManualClock) -> None:
        stream = TreeStream(
            "Hi!", speed=1, interval=10, stream_by="character", clock=clock
        )
        stream.mount()

        seen = []
        for _ in range(3):
            clock.advance(10)
            seen.append(stream.state.rendered[0])
        assert seen == ["H", "Hi", "Hi!"]

        clock.advance(0)
        assert stream.state.complete

    def test_leading_whitespace_costs_a_reveal_slot(self, clock: ManualClock) -> None:
        stream = TreeStream(" a b", speed=1, interval=10, clock=clock)
        stream.mount()

        seen = []
        for _ in range(3):
            clock.advance(10)
            seen.append(stream.state.rendered[0])
        assert seen == ["", " ", " a"]

    def test_speed_below_one_reveals_one_token(self, clock: ManualClock) -> None:
        stream = TreeStream("a b", speed=0, interval=10, clock=clock)
        stream.mount()
        clock.advance(10)
        assert stream.state.rendered[0] == "a"

    def test_zero_interval_runs_on_next_cycles(self, clock: ManualClock) -> None:
        stream = TreeStream("one two three", speed=1, interval=0, clock=clock)
        stream.mount()
        clock.run_until_idle()
        assert stream.state.rendered[0] == "one two three"
        assert stream.state.complete

    def test_speed_change_applies_without_reset(self, clock: ManualClock) -> None:
        stream = TreeStream("a b c d e", speed=1, interval=10, clock=clock)
        stream.mount()
        clock.advance(10)
        token = stream.run_token

        stream.update(speed=10)
        assert stream.run_token == token
        clock.advance(10)
        assert stream.state.rendered[0] == "a b c d e"


class TestUnitOrdering:
    """Tests for sequencing across units."""

    def test_instant_units_render_whole_node(self, clock: ManualClock) -> None:
        bold = element("strong", None, "Bold")
        stream = TreeStream(["Hi ", bold, "end"], speed=5, interval=10, clock=clock)
        stream.mount()

        clock.advance(10)
        assert rendered(stream) == {0: "Hi "}

        clock.advance(0)
        assert rendered(stream)[1] is bold
        assert 2 not in rendered(stream)

        clock.advance(0)
        assert rendered(stream)[2] == ""
        clock.run_until_idle()
        assert rendered(stream) == {0: "Hi ", 1: bold, 2: "end"}
        assert stream.state.unit_index == 3
        assert stream.state.complete

    def test_leading_instant_unit_renders_on_mount(self, clock: ManualClock) -> None:
        bold = element("b", None, "x")
        stream = TreeStream([bold, "after"], clock=clock)
        stream.mount()
        assert rendered(stream) == {0: bold}

    def test_unit_index_never_decreases(self, clock: ManualClock) -> None:
        stream = TreeStream(
            ["a b", element("i", None, "x"), "c d"], speed=1, interval=5, clock=clock
        )
        indices: list[int] = []
        stream.subscribe(lambda s: indices.append(s.state.unit_index))
        stream.mount()
        clock.run_until_idle()
        assert indices == sorted(indices)
        assert indices[-1] == 3


class TestNestedStreams:
    """Tests for nested stream coordination at the orchestrator level."""

    def test_parent_waits_for_nested_completion(self, clock: ManualClock) -> None:
        child = element(TreeStream, {"speed": 10}, "child text")
        stream = TreeStream(["A ", child, " B"], speed=5, interval=10, clock=clock)
        stream.mount()
        clock.run_until_idle()

        state = stream.state
        assert state.waiting_nested
        assert state.streaming
        assert state.unit_index == 1
        assert 2 not in state.rendered
        assert not state.complete

        rewritten = state.rendered[1]
        assert isinstance(rewritten, Element)
        assert rewritten is not child
        assert rewritten.props["auto_start"] is True
        assert rewritten.props["speed"] == 10
        assert rewritten.children == "child text"

        rewritten.props["on_complete"]()
        assert not stream.state.waiting_nested
        clock.run_until_idle()
        assert stream.state.rendered[2] == " B"
        assert stream.state.complete

    def test_existing_hook_runs_before_parent_resumes(
        self, clock: ManualClock
    ) -> None:
        order: list[str] = []
        stream = TreeStream(
            [element(TreeStream, {"on_complete": lambda: order.append("child")})],
            on_complete=lambda: order.append("parent"),
            clock=clock,
        )
        stream.mount()
        stream.state.rendered[0].props["on_complete"]()
        clock.run_until_idle()
        assert order == ["child", "parent"]

    def test_failing_hook_still_resumes_parent(self, clock: ManualClock) -> None:
        def boom() -> None:
            raise RuntimeError("hook failed")

        stream = TreeStream(
            [element(TreeStream, {"on_complete": boom}, "x"), "after"], clock=clock
        )
        stream.mount()

        with pytest.raises(RuntimeError, match="hook failed"):
            stream.state.rendered[0].props["on_complete"]()

        assert not stream.state.waiting_nested
        assert stream.state.unit_index == 1
        clock.run_until_idle()
        assert stream.state.complete

    def test_duplicate_nested_completion_is_ignored(self, clock: ManualClock) -> None:
        stream = TreeStream([element(TreeStream, None, "x"), "a b"], clock=clock)
        stream.mount()
        hook = stream.state.rendered[0].props["on_complete"]

        hook()
        hook()
        assert stream.state.unit_index == 1
        clock.run_until_idle()
        assert stream.state.unit_index == 2

    def test_stale_nested_completion_is_ignored(self, clock: ManualClock) -> None:
        stream = TreeStream([element(TreeStream, None, "x")], clock=clock)
        stream.mount()
        old_hook = stream.state.rendered[0].props["on_complete"]

        stream.restart()
        old_hook()
        assert stream.state.waiting_nested
        assert not stream.state.complete


class TestCompletion:
    """Tests for on_complete semantics."""

    def test_empty_plan_completes_immediately(self, clock: ManualClock) -> None:
        done = Recorder()
        stream = TreeStream([None, False, "  "], on_complete=done, clock=clock)
        stream.mount()
        assert stream.state.complete
        assert done.calls == 1
        assert clock.pending == []

    def test_on_complete_fires_once_per_run(self, clock: ManualClock) -> None:
        done = Recorder()
        stream = TreeStream("a b", interval=10, on_complete=done, clock=clock)
        stream.mount()
        clock.run_until_idle()
        stream.update(speed=1, interval=5, on_complete=done)
        clock.run_until_idle()
        assert done.calls == 1

        stream.restart()
        clock.run_until_idle()
        assert done.calls == 2

    def test_latest_on_complete_is_used(self, clock: ManualClock) -> None:
        first, second = Recorder(), Recorder()
        stream = TreeStream("a", interval=10, on_complete=first, clock=clock)
        stream.mount()
        stream.update(on_complete=second)
        clock.run_until_idle()
        assert (first.calls, second.calls) == (0, 1)


class TestReset:
    """Tests for run resets."""

    def test_identical_content_does_not_reset(self, clock: ManualClock) -> None:
        stream = TreeStream(
            ["Hello world", element("b", None, "x")], interval=10, clock=clock
        )
        stream.mount()
        clock.advance(10)
        token = stream.run_token

        stream.update(children=["Hello world", element("b", None, "other")])
        assert stream.run_token == token
        assert stream.state.rendered[0] == "Hello world"

    def test_text_change_resets_and_cancels(self, clock: ManualClock) -> None:
        stream = TreeStream("one two three", speed=1, interval=10, clock=clock)
        stream.mount()
        clock.advance(10)
        assert stream.state.rendered[0] == "one"

        stream.update(children="new text")
        assert rendered(stream) == {0: ""}
        clock.advance(10)
        assert rendered(stream) == {0: "new"}
        clock.run_until_idle()
        assert stream.state.rendered[0] == "new text"

    def test_reset_fences_uncancellable_timers(self) -> None:
        clock = ManualClock(honor_cancel=False)
        stream = TreeStream("one two", speed=1, interval=10, clock=clock)
        stream.mount()
        stream.update(children="alpha beta")

        clock.advance(10)
        assert stream.state.rendered[0] == "alpha"

    def test_auto_start_false_waits_for_start(self, clock: ManualClock) -> None:
        stream = TreeStream("Hi there", auto_start=False, interval=10, clock=clock)
        stream.mount()
        assert clock.pending == []
        assert rendered(stream) == {}
        assert not stream.state.complete

        stream.start()
        stream.start()
        clock.run_until_idle()
        assert stream.state.rendered[0] == "Hi there"
        assert stream.state.complete

    def test_enabling_auto_start_resets_and_runs(self, clock: ManualClock) -> None:
        stream = TreeStream("Hi", auto_start=False, interval=10, clock=clock)
        stream.mount()
        token = stream.run_token

        stream.update(auto_start=True)
        assert stream.run_token == token + 1
        clock.run_until_idle()
        assert stream.state.complete


class TestLifecycle:
    """Tests for mount, unmount and observation."""

    def test_unmount_stops_everything(self, clock: ManualClock) -> None:
        done = Recorder()
        stream = TreeStream(
            "a b c", speed=1, interval=10, on_complete=done, clock=clock
        )
        stream.mount()
        clock.advance(10)

        stream.unmount()
        clock.run_until_idle()
        assert stream.state.rendered[0] == "a"
        assert done.calls == 0
        assert stream.scheduler.closed
        assert not stream.snapshot().is_stream_root

    def test_remount_after_unmount_starts_fresh_run(
        self, clock: ManualClock
    ) -> None:
        done = Recorder()
        stream = TreeStream("a b", speed=1, interval=10, on_complete=done, clock=clock)
        stream.mount()
        clock.advance(10)
        stream.unmount()

        stream.mount()
        assert stream.mounted
        assert not stream.scheduler.closed
        assert stream.state.rendered[0] == ""
        clock.run_until_idle()
        assert stream.state.rendered[0] == "a b"
        assert stream.state.complete
        assert done.calls == 1

    def test_snapshot_flags_and_slot_keys(self, clock: ManualClock) -> None:
        stream = TreeStream("a", interval=10, instance_id="intro", clock=clock)
        assert not stream.snapshot().is_stream_root

        stream.mount()
        snap = stream.snapshot()
        assert snap.is_stream_root
        assert snap.is_streaming
        assert not snap.is_complete
        assert snap.rendered == (("intro:u0", ""),)

        clock.run_until_idle()
        assert stream.snapshot().data_attributes() == {
            "data-tree-stream": True,
            "data-streaming": False,
            "data-complete": True,
        }

    def test_subscribe_and_unsubscribe(self, clock: ManualClock) -> None:
        stream = TreeStream("a", interval=10, clock=clock)
        seen: list[bool] = []
        unsubscribe = stream.subscribe(lambda s: seen.append(s.state.complete))
        stream.mount()
        unsubscribe()
        clock.run_until_idle()
        assert seen
        assert not any(seen)

    def test_extra_props_are_forwarded(self) -> None:
        stream = TreeStream("a", title="greeting")
        assert stream.extra_props == {"title": "greeting"}


class TestOptions:
    """Tests for option defaults and validation."""

    def test_defaults(self) -> None:
        stream = TreeStream("a")
        assert (stream.speed, stream.interval, stream.stream_by.value) == (
            5,
            50,
            "word",
        )
        assert stream.auto_start is True

    def test_config_supplies_defaults(self) -> None:
        config = StreamConfig(speed=2, interval=15, stream_by="character")
        stream = TreeStream("a", config=config, speed=4)
        assert stream.speed == 4
        assert stream.interval == 15
        assert stream.stream_by.value == "character"

    def test_invalid_stream_by_raises_config_error(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            TreeStream("a", stream_by="sentence")
        assert exc_info.value.field == "stream_by"
