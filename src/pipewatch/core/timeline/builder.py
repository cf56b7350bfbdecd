"""
Reconstruct a run's Stage -> Job -> Task tree from flat timeline records.

Azure DevOps returns timeline records as a flat list linked by parent id.
Between a Stage and its Jobs (and between a Job and its Tasks) there may be
any number of other record types, such as Phase or Checkpoint. Those are
walked through transparently: a Job is placed directly under the Stage it
descends from, however deep the chain.

Records whose parent is missing from the fetch are treated as roots. Only
Stage roots appear in the tree; other orphans are dropped.

Usage:
    from pipewatch.core.timeline.builder import build_timeline

    timeline = build_timeline(records)
    for stage in timeline.stages:
        print(stage.name, len(stage.jobs))
"""

from collections import defaultdict
from collections.abc import Iterable, Iterator

from pipewatch.core.timeline.models import (
    JobNode,
    RecordType,
    RunTimeline,
    StageNode,
    TaskNode,
    TimelineRecord,
)

ChildIndex = dict[str, list[TimelineRecord]]


def build_timeline(records: Iterable[TimelineRecord]) -> RunTimeline:
    """
    Build the run tree from one complete fetch of timeline records.

    Args:
        records: Every record of one run, in the order received

    Returns:
        RunTimeline with stages, jobs and tasks sorted by order. Empty
        input gives an empty timeline; this function never raises.
    """
    records = list(records)
    children_of = _index_children(records)

    stages = [
        _build_stage(stage, children_of)
        for stage in sort_by_order(r for r in records if r.record_type is RecordType.STAGE)
    ]
    return RunTimeline(stages=tuple(stages))


def sort_by_order(records: Iterable[TimelineRecord]) -> list[TimelineRecord]:
    """Sort records by order ascending, missing orders last, stable otherwise."""
    return sorted(records, key=lambda r: (r.order is None, r.order or 0))


def find_descendants(
    parent_id: str,
    children_of: ChildIndex,
    target: RecordType,
) -> list[TimelineRecord]:
    """
    Collect descendants of ``parent_id`` of type ``target``.

    Walks depth-first with an explicit stack and descends only through
    RecordType.OTHER records, so intermediate records are skipped while
    Stage, Job and Task boundaries are respected. A record is visited at
    most once, which keeps malformed parent cycles finite.

    Args:
        parent_id: Record to search under
        children_of: Parent id -> ordered children, from _index_children
        target: Record type to collect

    Returns:
        Matching records in depth-first (pre-order) discovery order
    """
    found: list[TimelineRecord] = []
    visited: set[str] = {parent_id}
    stack: list[Iterator[TimelineRecord]] = [iter(children_of.get(parent_id, ()))]

    while stack:
        child = next(stack[-1], None)
        if child is None:
            stack.pop()
            continue
        if child.id in visited:
            continue
        visited.add(child.id)

        if child.record_type is target:
            found.append(child)
        elif child.record_type is RecordType.OTHER:
            stack.append(iter(children_of.get(child.id, ())))

    return found


def _index_children(records: list[TimelineRecord]) -> ChildIndex:
    """Map each known parent id to its direct children, sorted by order."""
    known_ids = {r.id for r in records}
    grouped: defaultdict[str, list[TimelineRecord]] = defaultdict(list)

    for record in records:
        # Orphans (parent not in this fetch) are roots and get no entry
        if record.parent_id is not None and record.parent_id in known_ids:
            grouped[record.parent_id].append(record)

    return {parent: sort_by_order(children) for parent, children in grouped.items()}


def _build_stage(stage: TimelineRecord, children_of: ChildIndex) -> StageNode:
    jobs = sort_by_order(find_descendants(stage.id, children_of, RecordType.JOB))
    return StageNode(
        name=stage.name,
        state=stage.state,
        result=stage.result,
        order=stage.order,
        log_id=stage.log_id,
        jobs=tuple(_build_job(job, children_of) for job in jobs),
    )


def _build_job(job: TimelineRecord, children_of: ChildIndex) -> JobNode:
    tasks = sort_by_order(find_descendants(job.id, children_of, RecordType.TASK))
    return JobNode(
        name=job.name,
        state=job.state,
        result=job.result,
        order=job.order,
        log_id=job.log_id,
        tasks=tuple(
            TaskNode(
                name=task.name,
                state=task.state,
                result=task.result,
                order=task.order,
                log_id=task.log_id,
            )
            for task in tasks
        ),
    )
