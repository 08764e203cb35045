"""Clock implementation backed by Textual widget timers."""

from __future__ import annotations

from collections.abc import Callable

from textual.timer import Timer
from textual.widget import Widget

from treestream.scheduler import TimerHandle

__all__ = ["WidgetClock"]


class _WidgetTimerHandle:
    """Adapts a Textual :class:`~textual.timer.Timer` to ``TimerHandle``."""

    def __init__(self, timer: Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()


class WidgetClock:
    """Issue stream timers through ``widget.set_timer``.

    Timers are owned by the widget, so Textual stops them when the widget is
    removed even if the stream was never unmounted.
    """

    def __init__(self, widget: Widget) -> None:
        self._widget = widget

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = self._widget.set_timer(delay, callback, name="tree-stream")
        return _WidgetTimerHandle(timer)
