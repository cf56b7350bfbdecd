"""
Polling monitor for pipeline runs.

Usage:
    from pipewatch.core.monitor import RunMonitor

    result = await RunMonitor().wait(fetch_timeline)
"""

from pipewatch.core.monitor.wait import (
    BackoffSchedule,
    MonitorState,
    PollProgress,
    RunMonitor,
    WaitResult,
)

__all__ = [
    "BackoffSchedule",
    "MonitorState",
    "PollProgress",
    "RunMonitor",
    "WaitResult",
]
