"""TreeStreamView widget.

Binds a :class:`~treestream.host.StreamHost` to a Textual widget: every state
change re-renders the visible text, and the root stream's observable flags
are mirrored as reactive attributes and CSS classes.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from rich.text import Text
from textual.message import Message
from textual.reactive import reactive
from textual.widget import Widget

from treestream.config import StreamConfig
from treestream.host import StreamHost, render_text
from treestream.nodes import Element, Node
from treestream.stream import TreeStream
from treestream.tui.clock import WidgetClock

__all__ = ["TreeStreamView"]

# Rich style applied to instant elements per tag name.
# Tags not listed here render unstyled.
_TAG_STYLES: dict[str, str] = {
    "strong": "bold",
    "b": "bold",
    "em": "italic",
    "i": "italic",
    "u": "underline",
    "code": "bold cyan",
    "mark": "reverse",
    "del": "strike",
}


class TreeStreamView(Widget):
    """Widget that streams a content tree.

    Attributes:
        streaming: Mirrors the root stream's ``is_streaming`` flag.
        complete: Mirrors the root stream's ``is_complete`` flag.

    Example:
        yield TreeStreamView(
            ["Hello ", element("strong", None, "world")],
            speed=1,
            interval=80,
        )
    """

    DEFAULT_CSS = """
    TreeStreamView {
        height: auto;
        padding: 0 1;
    }

    TreeStreamView.-complete {
        color: $text;
    }

    TreeStreamView.-streaming {
        color: $text-muted;
    }
    """

    streaming: reactive[bool] = reactive(False)
    complete: reactive[bool] = reactive(False)

    class Completed(Message):
        """Posted when the root stream completes a run."""

        def __init__(self, view: TreeStreamView) -> None:
            self.view = view
            super().__init__()

    def __init__(
        self,
        content: Node,
        *,
        config: StreamConfig | None = None,
        on_complete: Callable[[], None] | None = None,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
        **props: Any,
    ) -> None:
        """Initialize the TreeStreamView.

        Args:
            content: Content tree, or a stream element.
            config: Defaults for every stream in the tree.
            on_complete: Called once per completed run of the root stream.
            name: The name of the widget.
            id: The ID of the widget in the DOM.
            classes: The CSS classes for the widget.
            **props: Root stream props (speed, interval, stream_by, ...).
        """
        super().__init__(name=name, id=id, classes=classes)
        self._content = content
        self._config = config
        if on_complete is None and isinstance(content, Element):
            on_complete = content.props.get("on_complete")
        self._on_complete = on_complete
        self._props = props
        self._host: StreamHost | None = None

    @property
    def host(self) -> StreamHost | None:
        return self._host

    def on_mount(self) -> None:
        self.add_class("-tree-stream")
        self._host = StreamHost(
            self._content,
            clock=WidgetClock(self),
            config=self._config,
            instance_id=self.id,
            **self._props,
            on_complete=self._handle_complete,
        )
        self._host.subscribe(self._on_stream_change)
        self._host.mount()

    def on_unmount(self) -> None:
        if self._host is not None:
            self._host.unmount()

    def restart(self) -> None:
        """Start the root stream over from the first unit."""
        if self._host is not None and self._host.mounted:
            self._host.root.restart()

    def plain_text(self) -> str:
        return self._host.text() if self._host is not None else ""

    def render(self) -> Text:
        text = Text()
        if self._host is not None and self._host.mounted:
            self._append_stream(text, self._host.root)
        return text

    def watch_streaming(self, streaming: bool) -> None:
        self.set_class(streaming, "-streaming")

    def watch_complete(self, complete: bool) -> None:
        self.set_class(complete, "-complete")

    def _handle_complete(self) -> None:
        if self._on_complete is not None:
            self._on_complete()
        self.post_message(self.Completed(self))

    def _on_stream_change(self, stream: TreeStream) -> None:
        host = self._host
        if host is None or not host.mounted:
            return
        snapshot = host.snapshot()
        self.streaming = snapshot.is_streaming
        self.complete = snapshot.is_complete
        self.refresh(layout=True)

    def _append_stream(self, text: Text, stream: TreeStream) -> None:
        assert self._host is not None
        for index, content in stream.state.rendered.items():
            child = self._host.get(stream.slot_key(index))
            if child is not None:
                self._append_stream(text, child)
            elif isinstance(content, Element) and isinstance(content.type, str):
                text.append(render_text(content), style=_TAG_STYLES.get(content.type))
            else:
                text.append(render_text(content))
