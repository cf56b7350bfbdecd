"""
Wait loop for pipeline runs: poll the timeline until every stage completes.

State Machine:
    POLLING --(all stages completed)--> COMPLETE

Each tick fetches a fresh timeline. If the run is not complete yet, the
progress callback is invoked and the loop sleeps for the current interval,
which then grows by a fixed increment up to a cap (5s, 10s, 15s ... 30s by
default). The interval never resets within one wait.

Cancelling the task running ``wait()`` interrupts the fetch or the sleep
immediately and propagates asyncio.CancelledError to the caller.

Usage:
    >>> from pipewatch.core.monitor import RunMonitor
    >>> monitor = RunMonitor()
    >>> result = await monitor.wait(lambda: client.get_timeline(org, project, 42))
    >>> if result.failed:
    ...     print(f"Run ended {result.label.value}")
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from pipewatch.core.timeline.models import RunTimeline, TimelineResult
from pipewatch.core.timeline.status import (
    StatusLabel,
    is_complete,
    is_failure,
    overall_label,
    worst_result,
)

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_INTERVAL = 5
DEFAULT_INTERVAL_INCREMENT = 5
DEFAULT_MAX_INTERVAL = 30

TimelineFetcher = Callable[[], Awaitable[RunTimeline]]
ProgressCallback = Callable[["PollProgress"], object]
Sleeper = Callable[[float], Awaitable[object]]


class MonitorState(str, Enum):
    """State machine states for the wait loop."""

    POLLING = "polling"
    COMPLETE = "complete"


@dataclass(frozen=True)
class PollProgress:
    """Snapshot handed to the progress callback after an incomplete poll."""

    timeline: RunTimeline
    poll_count: int
    elapsed_seconds: float
    next_interval: int


@dataclass(frozen=True)
class WaitResult:
    """Final state of a completed wait."""

    timeline: RunTimeline
    poll_count: int
    elapsed_seconds: float
    state: MonitorState = MonitorState.COMPLETE

    @property
    def worst_result(self) -> TimelineResult:
        """Most severe stage result of the finished run."""
        return worst_result(stage.result for stage in self.timeline.stages)

    @property
    def label(self) -> StatusLabel:
        """Overall label of the finished run."""
        return overall_label(self.timeline)

    @property
    def failed(self) -> bool:
        """Whether the run ended Failed or Canceled."""
        return is_failure(self.worst_result)


class BackoffSchedule:
    """
    Linear backoff with a cap.

    Example:
        >>> schedule = BackoffSchedule()
        >>> [schedule.advance() for _ in range(7)]
        [5, 10, 15, 20, 25, 30, 30]
    """

    def __init__(
        self,
        initial: int = DEFAULT_INITIAL_INTERVAL,
        increment: int = DEFAULT_INTERVAL_INCREMENT,
        maximum: int = DEFAULT_MAX_INTERVAL,
    ) -> None:
        if initial < 1:
            raise ValueError("initial interval must be positive")
        if increment < 0:
            raise ValueError("increment must be non-negative")
        if maximum < initial:
            raise ValueError("maximum interval must be >= initial interval")

        self._increment = increment
        self._maximum = maximum
        self._current = initial

    @property
    def current(self) -> int:
        """Interval the next sleep will use."""
        return self._current

    def advance(self) -> int:
        """Return the current interval and step to the next one."""
        interval = self._current
        self._current = min(self._current + self._increment, self._maximum)
        return interval


class RunMonitor:
    """
    Polls a run's timeline until all of its stages have completed.

    The fetcher and the sleep function are injected so the loop can be
    driven without a network or a real clock.

    Example:
        >>> monitor = RunMonitor(initial_interval=5, interval_increment=5, max_interval=30)
        >>> result = await monitor.wait(fetch, on_progress=print_progress)
        >>> result.poll_count
        3
    """

    def __init__(
        self,
        *,
        initial_interval: int = DEFAULT_INITIAL_INTERVAL,
        interval_increment: int = DEFAULT_INTERVAL_INCREMENT,
        max_interval: int = DEFAULT_MAX_INTERVAL,
        sleep: Sleeper = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._initial_interval = initial_interval
        self._interval_increment = interval_increment
        self._max_interval = max_interval
        self._sleep = sleep
        self._clock = clock
        self.state = MonitorState.POLLING

    def _new_schedule(self) -> BackoffSchedule:
        return BackoffSchedule(
            initial=self._initial_interval,
            increment=self._interval_increment,
            maximum=self._max_interval,
        )

    async def wait(
        self,
        fetch: TimelineFetcher,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> WaitResult:
        """
        Poll until the run is complete.

        Args:
            fetch: Coroutine factory returning a freshly built timeline
            on_progress: Optional callback(PollProgress) after each incomplete poll

        Returns:
            WaitResult for the completed run

        Raises:
            asyncio.CancelledError: If the waiting task is cancelled
            Exception: Whatever ``fetch`` raises, unchanged
        """
        schedule = self._new_schedule()
        started = self._clock()
        poll_count = 0
        self.state = MonitorState.POLLING

        while True:
            timeline = await fetch()
            poll_count += 1
            elapsed = self._clock() - started

            if is_complete(timeline):
                self.state = MonitorState.COMPLETE
                logger.info("Run complete after %d poll(s), %.0fs", poll_count, elapsed)
                return WaitResult(
                    timeline=timeline,
                    poll_count=poll_count,
                    elapsed_seconds=elapsed,
                )

            interval = schedule.advance()
            logger.debug("Run not complete (poll %d), sleeping %ds", poll_count, interval)
            if on_progress is not None:
                on_progress(
                    PollProgress(
                        timeline=timeline,
                        poll_count=poll_count,
                        elapsed_seconds=elapsed,
                        next_interval=interval,
                    )
                )

            await self._sleep(interval)
