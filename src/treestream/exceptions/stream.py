from __future__ import annotations

from typing import Any

from treestream.exceptions.base import TreeStreamError


class InvalidActionError(TreeStreamError):
    """Raised when the stream state machine receives an unknown action.

    The orchestrator only ever dispatches the defined transitions, so this
    signals a programming error in a caller driving the reducer directly.

    Attributes:
        action: The rejected action object.
    """

    def __init__(self, action: Any) -> None:
        self.action = action
        super().__init__(f"Unknown stream action: {action!r}")


class SchedulerClosedError(TreeStreamError):
    """Raised when a callback is scheduled on a scheduler after teardown."""

    def __init__(self, message: str = "Scheduler has been closed") -> None:
        super().__init__(message)
