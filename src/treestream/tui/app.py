"""tree-stream TUI application.

A single-screen Textual app that streams one content tree, used by the
``treestream play`` command.
"""

from __future__ import annotations

from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import Footer, Header

from treestream.config import StreamConfig
from treestream.nodes import Node
from treestream.tui.view import TreeStreamView

__all__ = ["TreeStreamApp"]


class TreeStreamApp(App[None]):
    """Stream a content tree in the terminal.

    Args:
        content: Content tree, or a stream element.
        config: Defaults for every stream in the tree.
        title: Header title.
        exit_on_complete: Quit as soon as the root stream completes.
        **props: Root stream props.
    """

    TITLE = "tree-stream"

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("r", "restart", "Restart", show=True),
    ]

    def __init__(
        self,
        content: Node,
        *,
        config: StreamConfig | None = None,
        title: str | None = None,
        exit_on_complete: bool = False,
        **props: Any,
    ) -> None:
        super().__init__()
        self._content = content
        self._config = config
        self._exit_on_complete = exit_on_complete
        self._props = props
        if title:
            self.title = title

    def compose(self) -> ComposeResult:
        yield Header()
        with VerticalScroll(id="stream-area"):
            yield TreeStreamView(
                self._content,
                config=self._config,
                id="stream",
                **self._props,
            )
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = "streaming"

    def action_restart(self) -> None:
        self.sub_title = "streaming"
        self.query_one(TreeStreamView).restart()

    def on_tree_stream_view_completed(self, message: TreeStreamView.Completed) -> None:
        self.sub_title = "complete"
        if self._exit_on_complete:
            self.exit()
