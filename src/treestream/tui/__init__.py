"""Textual view layer for tree-stream."""

from __future__ import annotations

from treestream.tui.app import TreeStreamApp
from treestream.tui.clock import WidgetClock
from treestream.tui.view import TreeStreamView

__all__ = [
    "TreeStreamApp",
    "TreeStreamView",
    "WidgetClock",
]
