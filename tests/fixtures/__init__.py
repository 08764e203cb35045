"""Shared test fixtures for the tree-stream test suite.

Available Fixtures
==================

Clock (from tests/fixtures/clock.py)
------------------------------------

Classes:
    ManualClock: Virtual clock implementing the ``Clock`` protocol. Time only
        moves when the test calls ``advance()``; each call runs the timers
        that were due, in due-time order. Timers created while advancing wait
        for the next call, like callbacks queued during one event-loop turn.

Fixtures:
    clock: A fresh ManualClock per test.

Example:
    >>> def test_tick(clock):
    ...     stream = TreeStream("Hello world!", speed=2, interval=10, clock=clock)
    ...     stream.mount()
    ...     clock.advance(10)
    ...     assert stream.state.rendered[0] == "Hello "

Configuration (from tests/fixtures/config.py)
---------------------------------------------

Fixtures:
    project_config: Writes a treestream.yaml into a temporary working
        directory and returns its path.
"""

from __future__ import annotations

from tests.fixtures.clock import ManualClock, ManualTimer, clock
from tests.fixtures.config import project_config

__all__ = [
    "ManualClock",
    "ManualTimer",
    "clock",
    "project_config",
]
