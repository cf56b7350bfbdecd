"""
Status labels and result rollups for run timelines.

State takes priority over result unless the node is Completed. The overall
run label uses a fixed severity order to find the worst stage result:

    Skipped(0) < Succeeded(1) < PartiallySucceeded(2) < Canceled(3) < Failed(4)

NONE has severity -1 and never wins. Skipped ranks below Succeeded, so a run
whose stages were all skipped reports Skipped, while one succeeded stage
among skipped ones reports Succeeded.
"""

from collections.abc import Iterable, Sequence
from enum import Enum

from pipewatch.core.timeline.models import (
    JobNode,
    RunTimeline,
    StageNode,
    TaskNode,
    TimelineResult,
    TimelineState,
)


class StatusLabel(str, Enum):
    """Display label for a node or a whole run."""

    SUCCEEDED = "Succeeded"
    PARTIALLY_SUCCEEDED = "Partially Succeeded"
    FAILED = "Failed"
    CANCELED = "Canceled"
    SKIPPED = "Skipped"
    COMPLETED = "Completed"
    RUNNING = "Running"
    PENDING = "Pending"
    UNKNOWN = "Unknown"


_SEVERITY: dict[TimelineResult, int] = {
    TimelineResult.SKIPPED: 0,
    TimelineResult.SUCCEEDED: 1,
    TimelineResult.PARTIALLY_SUCCEEDED: 2,
    TimelineResult.CANCELED: 3,
    TimelineResult.FAILED: 4,
}

_COMPLETED_LABELS: dict[TimelineResult, StatusLabel] = {
    TimelineResult.SUCCEEDED: StatusLabel.SUCCEEDED,
    TimelineResult.PARTIALLY_SUCCEEDED: StatusLabel.PARTIALLY_SUCCEEDED,
    TimelineResult.FAILED: StatusLabel.FAILED,
    TimelineResult.CANCELED: StatusLabel.CANCELED,
    TimelineResult.SKIPPED: StatusLabel.SKIPPED,
}

Node = StageNode | JobNode | TaskNode


def severity(result: TimelineResult) -> int:
    """Severity rank of a result; NONE is -1."""
    return _SEVERITY.get(result, -1)


def status_label(state: TimelineState, result: TimelineResult) -> StatusLabel:
    """
    Label for one node from its state and result.

    Example:
        >>> status_label(TimelineState.COMPLETED, TimelineResult.PARTIALLY_SUCCEEDED)
        <StatusLabel.PARTIALLY_SUCCEEDED: 'Partially Succeeded'>
        >>> status_label(TimelineState.IN_PROGRESS, TimelineResult.FAILED)
        <StatusLabel.RUNNING: 'Running'>
    """
    if state is TimelineState.COMPLETED:
        return _COMPLETED_LABELS.get(result, StatusLabel.COMPLETED)
    if state is TimelineState.IN_PROGRESS:
        return StatusLabel.RUNNING
    if state is TimelineState.PENDING:
        return StatusLabel.PENDING
    return StatusLabel.UNKNOWN


def worst_result(results: Iterable[TimelineResult]) -> TimelineResult:
    """
    Most severe result in ``results``, or NONE if none ranks above -1.

    Ties keep the earlier result.
    """
    worst = TimelineResult.NONE
    for result in results:
        if severity(result) > severity(worst):
            worst = result
    return worst


def is_failure(result: TimelineResult) -> bool:
    """Whether a rolled-up result should fail a wait (Failed or Canceled)."""
    return result in (TimelineResult.FAILED, TimelineResult.CANCELED)


def is_complete(timeline: RunTimeline) -> bool:
    """Whether every stage of the run has completed."""
    return all(stage.state is TimelineState.COMPLETED for stage in timeline.stages)


def overall_label(timeline: RunTimeline) -> StatusLabel:
    """
    Label for the whole run.

    Running if any stage is in progress, Pending if any stage is not yet
    completed, otherwise the label of the worst stage result.
    """
    if any(stage.state is TimelineState.IN_PROGRESS for stage in timeline.stages):
        return StatusLabel.RUNNING
    if not is_complete(timeline):
        return StatusLabel.PENDING
    worst = worst_result(stage.result for stage in timeline.stages)
    return status_label(TimelineState.COMPLETED, worst)


def completed_count(nodes: Sequence[Node]) -> int:
    """Number of nodes whose state is Completed."""
    return sum(1 for node in nodes if node.state is TimelineState.COMPLETED)


def progress(nodes: Sequence[Node]) -> tuple[int, int]:
    """(completed, total) for a list of sibling nodes."""
    return completed_count(nodes), len(nodes)


def state_counts(nodes: Iterable[Node]) -> dict[TimelineState, int]:
    """Count nodes per state, in first-seen order."""
    counts: dict[TimelineState, int] = {}
    for node in nodes:
        counts[node.state] = counts.get(node.state, 0) + 1
    return counts
