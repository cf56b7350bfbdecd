"""
Tests for the wait loop and its backoff schedule.
"""

import asyncio

import pytest

from pipewatch.core.monitor import BackoffSchedule, MonitorState, RunMonitor
from pipewatch.core.timeline.models import RunTimeline, StageNode, TimelineResult, TimelineState

COMPLETED = TimelineState.COMPLETED
IN_PROGRESS = TimelineState.IN_PROGRESS
PENDING = TimelineState.PENDING


def snapshot(*states: TimelineState, result: TimelineResult = TimelineResult.SUCCEEDED):
    return RunTimeline(
        stages=tuple(
            StageNode(
                name=f"stage{i}",
                state=state,
                result=result if state is COMPLETED else TimelineResult.NONE,
            )
            for i, state in enumerate(states)
        )
    )


class ScriptedFetch:
    """Returns the given timelines in order, repeating the last one."""

    def __init__(self, *timelines: RunTimeline) -> None:
        self.timelines = list(timelines)
        self.calls = 0

    async def __call__(self) -> RunTimeline:
        timeline = self.timelines[min(self.calls, len(self.timelines) - 1)]
        self.calls += 1
        return timeline


class RecordingSleep:
    def __init__(self) -> None:
        self.intervals: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.intervals.append(seconds)


class TestBackoffSchedule:
    def test_default_sequence_caps_at_30(self):
        schedule = BackoffSchedule()
        assert [schedule.advance() for _ in range(8)] == [5, 10, 15, 20, 25, 30, 30, 30]

    def test_current_is_next_interval(self):
        schedule = BackoffSchedule()
        schedule.advance()
        assert schedule.current == 10

    def test_custom_schedule(self):
        schedule = BackoffSchedule(initial=2, increment=3, maximum=7)
        assert [schedule.advance() for _ in range(4)] == [2, 5, 7, 7]

    def test_zero_increment_is_constant(self):
        schedule = BackoffSchedule(initial=4, increment=0, maximum=4)
        assert [schedule.advance() for _ in range(3)] == [4, 4, 4]

    @pytest.mark.parametrize(
        ("initial", "increment", "maximum"),
        [(0, 5, 30), (5, -1, 30), (10, 5, 5)],
    )
    def test_invalid_bounds(self, initial, increment, maximum):
        with pytest.raises(ValueError):
            BackoffSchedule(initial=initial, increment=increment, maximum=maximum)


class TestRunMonitor:
    @pytest.mark.asyncio
    async def test_three_polls_until_complete(self):
        fetch = ScriptedFetch(
            snapshot(COMPLETED, PENDING, PENDING),
            snapshot(COMPLETED, IN_PROGRESS, PENDING),
            snapshot(COMPLETED, COMPLETED, COMPLETED),
        )
        sleep = RecordingSleep()
        progress = []
        monitor = RunMonitor(sleep=sleep)

        result = await monitor.wait(fetch, on_progress=progress.append)

        assert fetch.calls == 3
        assert result.poll_count == 3
        assert sleep.intervals == [5, 10]
        assert [p.next_interval for p in progress] == [5, 10]
        assert [p.poll_count for p in progress] == [1, 2]
        assert result.state is MonitorState.COMPLETE
        assert monitor.state is MonitorState.COMPLETE

    @pytest.mark.asyncio
    async def test_already_complete_does_not_sleep(self):
        fetch = ScriptedFetch(snapshot(COMPLETED))
        sleep = RecordingSleep()

        result = await RunMonitor(sleep=sleep).wait(fetch)

        assert result.poll_count == 1
        assert sleep.intervals == []

    @pytest.mark.asyncio
    async def test_interval_caps_and_never_resets(self):
        fetch = ScriptedFetch(*([snapshot(IN_PROGRESS)] * 8), snapshot(COMPLETED))
        sleep = RecordingSleep()

        await RunMonitor(sleep=sleep).wait(fetch)

        assert sleep.intervals == [5, 10, 15, 20, 25, 30, 30, 30]

    @pytest.mark.asyncio
    async def test_configured_intervals(self):
        fetch = ScriptedFetch(snapshot(PENDING), snapshot(PENDING), snapshot(COMPLETED))
        sleep = RecordingSleep()
        monitor = RunMonitor(initial_interval=1, interval_increment=2, max_interval=2, sleep=sleep)

        await monitor.wait(fetch)

        assert sleep.intervals == [1, 2]

    @pytest.mark.asyncio
    async def test_elapsed_uses_clock(self):
        ticks = iter([100.0, 103.0, 110.0])
        fetch = ScriptedFetch(snapshot(PENDING), snapshot(COMPLETED))
        progress = []
        monitor = RunMonitor(sleep=RecordingSleep(), clock=lambda: next(ticks))

        result = await monitor.wait(fetch, on_progress=progress.append)

        assert progress[0].elapsed_seconds == 3.0
        assert result.elapsed_seconds == 10.0

    @pytest.mark.asyncio
    async def test_failed_result(self):
        fetch = ScriptedFetch(snapshot(COMPLETED, COMPLETED, result=TimelineResult.FAILED))

        result = await RunMonitor(sleep=RecordingSleep()).wait(fetch)

        assert result.failed
        assert result.worst_result is TimelineResult.FAILED
        assert result.label.value == "Failed"

    @pytest.mark.asyncio
    async def test_canceled_counts_as_failed(self):
        fetch = ScriptedFetch(snapshot(COMPLETED, result=TimelineResult.CANCELED))

        result = await RunMonitor(sleep=RecordingSleep()).wait(fetch)

        assert result.failed

    @pytest.mark.asyncio
    async def test_partial_success_is_not_failed(self):
        fetch = ScriptedFetch(snapshot(COMPLETED, result=TimelineResult.PARTIALLY_SUCCEEDED))

        result = await RunMonitor(sleep=RecordingSleep()).wait(fetch)

        assert not result.failed

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate(self):
        async def fetch():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await RunMonitor(sleep=RecordingSleep()).wait(fetch)

    @pytest.mark.asyncio
    async def test_cancel_during_sleep(self):
        fetch = ScriptedFetch(snapshot(IN_PROGRESS))
        monitor = RunMonitor()

        task = asyncio.create_task(monitor.wait(fetch))
        while fetch.calls == 0:
            await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert fetch.calls == 1
        assert monitor.state is MonitorState.POLLING
