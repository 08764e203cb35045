"""Headless host for stream trees.

:class:`StreamHost` plays the part of the view layer: it mounts a root
:class:`~treestream.stream.TreeStream`, watches its rendered slots, and
mounts an independent child stream for every nested stream element that
appears there. Parent and child are coupled only through the composed
``on_complete`` prop the parent put on the element.

Child instance ids are derived from the parent's id and the unit index
(``"stream:u2"``, ``"stream:u2:u0"``), so the same tree always produces the
same keys.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

from treestream.config import StreamConfig
from treestream.constants import DEFAULT_INSTANCE_ID
from treestream.logging import get_logger
from treestream.nested import is_stream_element, resolve_stream_component
from treestream.nodes import Element, Node
from treestream.scheduler import Clock
from treestream.stream import StreamListener, StreamSnapshot, TreeStream

__all__ = ["StreamHost", "render_text"]

logger = get_logger(__name__)

# Props the host supplies itself when instantiating a stream.
_HOST_PROPS = frozenset({"instance_id", "clock", "config"})


def render_text(node: Node) -> str:
    """Render ``node`` to plain text immediately, without streaming.

    Stream elements found here (for example inside an instant element) show
    their children in full.
    """
    if node is None or isinstance(node, bool):
        return ""
    if isinstance(node, str):
        return node
    if isinstance(node, int | float):
        return str(node)
    if isinstance(node, list | tuple):
        return "".join(render_text(child) for child in node)
    if isinstance(node, Element):
        return render_text(node.children)
    return ""


def _stream_class(el: Element) -> type[TreeStream]:
    component = resolve_stream_component(el.type)
    if isinstance(component, type) and issubclass(component, TreeStream):
        return component
    return TreeStream


def _stream_props(el: Element) -> dict[str, Any]:
    return {k: v for k, v in el.props.items() if k not in _HOST_PROPS}


class StreamHost:
    """Mount a stream tree and keep nested streams in sync with their slots.

    Args:
        content: A stream element, or any content tree (wrapped in a root
            stream).
        clock: Timer source shared by every stream in the tree.
        config: Defaults applied to every stream in the tree.
        instance_id: Id of the root stream.
        **props: Root stream props, overriding those of ``content``.

    Example:
        host = StreamHost(["Hello ", element(TreeStream, None, "nested")])
        host.mount()
        ...
        print(host.text())
    """

    def __init__(
        self,
        content: Node,
        *,
        clock: Clock | None = None,
        config: StreamConfig | None = None,
        instance_id: str | None = None,
        **props: Any,
    ) -> None:
        if isinstance(content, Element) and is_stream_element(content):
            self._root_element = content
            self._root_props = {**_stream_props(content), **props}
        else:
            self._root_element = None
            self._root_props = {"children": content, **props}
        self._clock = clock
        self._config = config
        self._root_id = instance_id or DEFAULT_INSTANCE_ID
        self._streams: dict[str, TreeStream] = {}
        self._sources: dict[str, Element] = {}
        self._parents: dict[str, str] = {}
        self._unsubscribes: dict[str, Callable[[], None]] = {}
        self._listeners: list[StreamListener] = []

    @property
    def root(self) -> TreeStream:
        """The root stream; only available after :meth:`mount`."""
        return self._streams[self._root_id]

    @property
    def mounted(self) -> bool:
        return self._root_id in self._streams

    def get(self, instance_id: str) -> TreeStream | None:
        return self._streams.get(instance_id)

    def subscribe(self, listener: StreamListener) -> Callable[[], None]:
        """Call ``listener`` with any stream of the tree that changed."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def mount(self) -> TreeStream:
        if self.mounted:
            return self.root
        cls = (
            _stream_class(self._root_element)
            if self._root_element is not None
            else TreeStream
        )
        return self._mount_stream(cls, self._root_id, self._root_props, parent=None)

    def update(self, **props: Any) -> None:
        """Pass new props to the root stream."""
        self._root_props.update(props)
        self.root.update(**props)

    def unmount(self) -> None:
        if self.mounted:
            self._unmount_stream(self._root_id)

    def snapshot(self) -> StreamSnapshot:
        return self.root.snapshot()

    def streams(self) -> Iterator[TreeStream]:
        """Mounted streams in tree order, root first."""
        if not self.mounted:
            return
        yield from self._walk(self.root)

    def text(self, instance_id: str | None = None) -> str:
        """Text currently visible for a stream and its mounted descendants."""
        stream = self._streams.get(instance_id or self._root_id)
        if stream is None:
            return ""
        parts: list[str] = []
        for index, content in stream.state.rendered.items():
            key = stream.slot_key(index)
            if key in self._streams:
                parts.append(self.text(key))
            else:
                parts.append(render_text(content))
        return "".join(parts)

    # ------------------------------------------------------------------

    def _walk(self, stream: TreeStream) -> Iterator[TreeStream]:
        yield stream
        for index in stream.state.rendered:
            child = self._streams.get(stream.slot_key(index))
            if child is not None:
                yield from self._walk(child)

    def _mount_stream(
        self,
        cls: type[TreeStream],
        instance_id: str,
        props: dict[str, Any],
        parent: str | None,
    ) -> TreeStream:
        stream = cls(
            instance_id=instance_id,
            clock=self._clock,
            config=self._config,
            **props,
        )
        # Registered before mount: a child may complete (and re-enter the
        # parent's listener) synchronously while mounting.
        self._streams[instance_id] = stream
        if parent is not None:
            self._parents[instance_id] = parent
        self._unsubscribes[instance_id] = stream.subscribe(self._on_change)
        logger.debug("stream_mounted", instance_id=instance_id, parent=parent)
        stream.mount()
        return stream

    def _unmount_stream(self, instance_id: str) -> None:
        for child_id in [k for k, p in self._parents.items() if p == instance_id]:
            self._unmount_stream(child_id)
        stream = self._streams.pop(instance_id, None)
        self._sources.pop(instance_id, None)
        self._parents.pop(instance_id, None)
        unsubscribe = self._unsubscribes.pop(instance_id, None)
        if unsubscribe is not None:
            unsubscribe()
        if stream is not None:
            stream.unmount()
            self._emit(stream)

    def _on_change(self, stream: TreeStream) -> None:
        if stream.mounted:
            self._reconcile(stream)
        self._emit(stream)

    def _emit(self, stream: TreeStream) -> None:
        for listener in list(self._listeners):
            listener(stream)

    def _reconcile(self, stream: TreeStream) -> None:
        wanted: set[str] = set()
        for index, content in list(stream.state.rendered.items()):
            if not (isinstance(content, Element) and is_stream_element(content)):
                continue
            key = stream.slot_key(index)
            wanted.add(key)
            if self._sources.get(key) is content:
                continue
            self._sources[key] = content
            child = self._streams.get(key)
            if child is None:
                self._mount_stream(
                    _stream_class(content),
                    key,
                    _stream_props(content),
                    parent=stream.instance_id,
                )
            else:
                child.update(**_stream_props(content))

        for child_id in [
            k for k, p in self._parents.items() if p == stream.instance_id
        ]:
            if child_id not in wanted:
                self._unmount_stream(child_id)
