"""Textual tests for the tree-stream view layer.

Widgets and the app are driven with Textual's pilot (``App.run_test``) on
real widget timers, so these tests wait on state instead of a manual clock.
"""

from __future__ import annotations
