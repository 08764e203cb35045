"""TUI test fixtures and utilities.

Test Pattern:
    1. Create a minimal test app that composes the widget under test
    2. Use ``async with app.run_test() as pilot`` to get a pilot instance
    3. Wait for the stream with :func:`wait_until`, then assert on state
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from textual.app import App, ComposeResult
from textual.pilot import Pilot

from treestream.nodes import Node
from treestream.tui.view import TreeStreamView


class StreamViewTestApp(App[None]):
    """Minimal app composing a single TreeStreamView.

    Records every ``Completed`` message the view posts.
    """

    CSS_PATH = None

    def __init__(self, content: Node, **props: Any) -> None:
        super().__init__()
        self._content = content
        self._props = props
        self.completed: list[TreeStreamView] = []

    def compose(self) -> ComposeResult:
        yield TreeStreamView(self._content, id="view", **self._props)

    def on_tree_stream_view_completed(self, message: TreeStreamView.Completed) -> None:
        self.completed.append(message.view)


async def wait_until(
    pilot: Pilot[Any],
    predicate: Callable[[], bool],
    *,
    timeout: float = 5.0,
    step: float = 0.02,
) -> None:
    """Let the app run until ``predicate()`` holds.

    Raises:
        AssertionError: If the condition is not met within ``timeout`` seconds.
    """
    waited = 0.0
    while not predicate():
        if waited >= timeout:
            raise AssertionError(f"Condition not met within {timeout}s")
        await pilot.pause(step)
        waited += step
