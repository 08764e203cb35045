"""Sequential scheduler with run-token cancellation.

Centralizes timed callbacks for one stream instance with guarantees:
- Only callbacks scheduled under the latest run token execute
- ``next_run_token()`` invalidates every pending callback from earlier runs
- ``cancel_all()`` clears pending timers without changing the token
- ``close()`` tears everything down; nothing fires afterwards

The token fence is the only cancellation mechanism callers rely on: a
callback that slips past ``cancel_all()`` (a timer backend that cannot cancel,
or one that already queued the call) still checks the token before running.

Timers are issued through a :class:`Clock`, so the same scheduler runs on an
asyncio loop, on Textual widget timers, or on a manual clock under test.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from treestream.exceptions import SchedulerClosedError
from treestream.logging import get_logger, run_context

__all__ = [
    "AsyncioClock",
    "Clock",
    "SequentialScheduler",
    "TimerHandle",
]

logger = get_logger(__name__)


@runtime_checkable
class TimerHandle(Protocol):
    """Handle of a pending timer."""

    def cancel(self) -> None: ...


@runtime_checkable
class Clock(Protocol):
    """Source of delayed callbacks.

    ``delay`` is expressed in seconds, as with :meth:`asyncio.loop.call_later`.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioClock:
    """Clock backed by an asyncio event loop.

    The running loop is looked up when the first timer is scheduled unless
    one is given explicitly, so instances can be created outside a loop.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop.call_later(delay, callback)


class SequentialScheduler:
    """Run-token fenced scheduler for one stream instance.

    Attributes:
        name: Label used in log events (usually the owning instance id).

    Example:
        scheduler = SequentialScheduler(AsyncioClock(), name="stream")
        scheduler.schedule(lambda: print("tick"), delay=50)
        scheduler.next_run_token()  # the tick above will never print
    """

    def __init__(self, clock: Clock | None = None, *, name: str = "scheduler") -> None:
        self.name = name
        self._clock: Clock = clock if clock is not None else AsyncioClock()
        self._run_token = 0
        self._pending: dict[int, TimerHandle] = {}
        self._sequence = itertools.count()
        self._closed = False

    @property
    def run_token(self) -> int:
        """Token of the current run."""
        return self._run_token

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have neither fired nor been cancelled."""
        return len(self._pending)

    @property
    def closed(self) -> bool:
        return self._closed

    def schedule(self, fn: Callable[[], None], delay: float = 0) -> TimerHandle:
        """Schedule ``fn`` after ``delay`` milliseconds under the current token.

        Args:
            fn: Callback to run.
            delay: Delay in milliseconds; negative values are treated as 0.

        Returns:
            The clock's timer handle.

        Raises:
            SchedulerClosedError: If the scheduler has been closed.
        """
        if self._closed:
            raise SchedulerClosedError(f"Scheduler {self.name!r} has been closed")

        token = self._run_token
        seq = next(self._sequence)

        def fire() -> None:
            self._pending.pop(seq, None)
            if token != self._run_token:
                logger.debug(
                    "stale_callback_dropped",
                    scheduler=self.name,
                    token=token,
                    run_token=self._run_token,
                )
                return
            with run_context(scheduler=self.name, run_token=token):
                fn()

        handle = self._clock.call_later(max(0.0, delay) / 1000, fire)
        self._pending[seq] = handle
        return handle

    def cancel_all(self) -> None:
        """Cancel every pending callback, keeping the current token."""
        pending = list(self._pending.values())
        self._pending.clear()
        for handle in pending:
            handle.cancel()

    def next_run_token(self) -> int:
        """Start a new run: bump the token and clear pending callbacks.

        Returns:
            The new run token.
        """
        self._run_token += 1
        self.cancel_all()
        return self._run_token

    def is_current(self, token: int) -> bool:
        return token == self._run_token and not self._closed

    def close(self) -> None:
        """Tear down: cancel everything and fence any callback already queued."""
        if self._closed:
            return
        self._run_token += 1
        self.cancel_all()
        self._closed = True

    def reopen(self) -> None:
        """Accept new callbacks again after :meth:`close`.

        Callbacks from before the close stay fenced: the token bumped by
        ``close()`` is never reissued.
        """
        self._closed = False
