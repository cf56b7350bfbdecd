"""
Run timeline model.

Turns the flat record list Azure DevOps returns for a run into a
Stage -> Job -> Task tree, and rolls status up across the tree.

Usage:
    from pipewatch.core.timeline import build_timeline, overall_label

    timeline = build_timeline(records)
    print(overall_label(timeline).value)
"""

from pipewatch.core.timeline.builder import build_timeline, find_descendants, sort_by_order
from pipewatch.core.timeline.models import (
    JobNode,
    RecordType,
    RunTimeline,
    StageNode,
    TaskNode,
    TimelineRecord,
    TimelineResult,
    TimelineState,
)
from pipewatch.core.timeline.status import (
    StatusLabel,
    completed_count,
    is_complete,
    is_failure,
    overall_label,
    progress,
    severity,
    state_counts,
    status_label,
    worst_result,
)

__all__ = [
    # Models
    "JobNode",
    "RecordType",
    "RunTimeline",
    "StageNode",
    "TaskNode",
    "TimelineRecord",
    "TimelineResult",
    "TimelineState",
    # Builder
    "build_timeline",
    "find_descendants",
    "sort_by_order",
    # Status
    "StatusLabel",
    "completed_count",
    "is_complete",
    "is_failure",
    "overall_label",
    "progress",
    "severity",
    "state_counts",
    "status_label",
    "worst_result",
]
