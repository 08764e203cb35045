"""Unit tests for nested stream detection."""

from __future__ import annotations

from treestream.nested import (
    STREAMING_MARKER,
    has_stream_marker,
    is_stream_element,
    resolve_stream_component,
)
from treestream.nodes import element, forward_ref, memo
from treestream.stream import TreeStream


class TestStreamMarker:
    """Tests for the capability marker on the canonical implementation."""

    def test_tree_stream_carries_marker(self) -> None:
        assert getattr(TreeStream, STREAMING_MARKER) is True
        assert has_stream_marker(TreeStream)

    def test_subclasses_inherit_marker(self) -> None:
        class FancyStream(TreeStream):
            pass

        assert is_stream_element(element(FancyStream))
        assert resolve_stream_component(FancyStream) is FancyStream


class TestIsStreamElement:
    """Tests for is_stream_element()."""

    def test_direct_type(self) -> None:
        assert is_stream_element(element(TreeStream, None, "x"))

    def test_through_memo(self) -> None:
        wrapped = memo(TreeStream)
        assert is_stream_element(element(wrapped))
        assert resolve_stream_component(wrapped) is TreeStream

    def test_through_forward_ref(self) -> None:
        wrapped = forward_ref(TreeStream)
        assert is_stream_element(element(wrapped))
        assert resolve_stream_component(wrapped) is TreeStream

    def test_only_one_hop_is_followed(self) -> None:
        assert not is_stream_element(element(memo(memo(TreeStream))))
        assert not is_stream_element(element(forward_ref(memo(TreeStream))))

    def test_name_fallback_for_duplicated_implementation(self) -> None:
        class TreeStream:  # noqa: F811 - unmarked copy from another bundle
            pass

        assert is_stream_element(element(TreeStream))
        assert is_stream_element(element(memo(TreeStream)))

    def test_display_name_fallback(self) -> None:
        def component() -> None: ...

        component.display_name = "TreeStream"  # type: ignore[attr-defined]
        assert is_stream_element(element(component))

    def test_plain_elements_are_not_streams(self) -> None:
        def Card() -> None: ...

        assert not is_stream_element(element("div"))
        assert not is_stream_element(element(Card))
        assert not is_stream_element(element(memo(Card)))
        assert resolve_stream_component("div") is None

    def test_false_marker_is_ignored(self) -> None:
        class Impostor:
            __tree_stream__ = False

        assert not is_stream_element(element(Impostor))
