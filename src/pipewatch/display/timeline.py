"""
Rich rendering for run timelines.

Used by the status and wait commands:

    Running Build #42 | ci | 1/3 Stages
    ├── Succeeded Stage #3 | Build | 2/2 Jobs
    │   ├── Succeeded Job #5 | Linux | 4/4 Tasks
    │   └── Succeeded Job #6 | Windows | 4/4 Tasks
    ├── Running Stage #9 | Test | 0/1 Jobs
    └── Pending Stage | Deploy | 0/0 Jobs

The plain-string formatters are kept separate from the rich renderables so
the text can be asserted on without a console.
"""

from collections.abc import Iterable

from rich.text import Text
from rich.tree import Tree

from pipewatch.core.timeline.models import (
    JobNode,
    RunTimeline,
    StageNode,
    TaskNode,
    TimelineState,
)
from pipewatch.core.timeline.status import (
    StatusLabel,
    overall_label,
    progress,
    state_counts,
    status_label,
)

MIN_DEPTH = 1
MAX_DEPTH = 3

LABEL_STYLES: dict[StatusLabel, str] = {
    StatusLabel.SUCCEEDED: "green",
    StatusLabel.PARTIALLY_SUCCEEDED: "yellow",
    StatusLabel.FAILED: "bold red",
    StatusLabel.CANCELED: "magenta",
    StatusLabel.SKIPPED: "dim",
    StatusLabel.COMPLETED: "green",
    StatusLabel.RUNNING: "cyan",
    StatusLabel.PENDING: "blue",
    StatusLabel.UNKNOWN: "dim",
}

_COUNTED_STATES: tuple[tuple[TimelineState, str], ...] = (
    (TimelineState.COMPLETED, "completed"),
    (TimelineState.IN_PROGRESS, "in progress"),
    (TimelineState.PENDING, "pending"),
)


def label_style(label: StatusLabel) -> str:
    """Rich style used to color a status label."""
    return LABEL_STYLES.get(label, "")


def format_elapsed(seconds: float) -> str:
    """
    Format a duration for progress output.

    Example:
        >>> format_elapsed(3723)
        '1h 2m 3s'
        >>> format_elapsed(123)
        '2m 3s'
        >>> format_elapsed(3.9)
        '3s'
    """
    total = int(max(seconds, 0))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_summary_line(pipeline_name: str, build_id: int, timeline: RunTimeline) -> str:
    """One-line summary of a run: label, build id, pipeline, and stage progress."""
    completed, total = progress(timeline.stages)
    label = overall_label(timeline).value
    return f"{label} Build #{build_id} | {pipeline_name} | {completed}/{total} Stages"


def format_status_counts(label: str, nodes: Iterable[StageNode | JobNode | TaskNode]) -> str:
    """
    Count nodes by state, e.g. ``Stages: 1 completed, 1 in progress, 2 pending``.

    States with no nodes are left out. Unknown states are not counted.
    """
    counts = state_counts(nodes)
    parts = [f"{counts[state]} {text}" for state, text in _COUNTED_STATES if state in counts]
    return f"{label}: {', '.join(parts)}"


def _log_prefix(log_id: int | None) -> str:
    return f" #{log_id}" if log_id is not None else ""


def format_stage(stage: StageNode) -> str:
    completed, total = progress(stage.jobs)
    label = status_label(stage.state, stage.result).value
    return f"{label} Stage{_log_prefix(stage.log_id)} | {stage.name} | {completed}/{total} Jobs"


def format_job(job: JobNode) -> str:
    completed, total = progress(job.tasks)
    label = status_label(job.state, job.result).value
    return f"{label} Job{_log_prefix(job.log_id)} | {job.name} | {completed}/{total} Tasks"


def format_task(task: TaskNode) -> str:
    label = status_label(task.state, task.result).value
    return f"{label} Task{_log_prefix(task.log_id)} | {task.name}"


def _styled(text: str, label: StatusLabel) -> Text:
    """Color only the leading status label of a formatted line."""
    styled = Text(text)
    styled.stylize(label_style(label), 0, len(label.value))
    return styled


def build_summary_text(pipeline_name: str, build_id: int, timeline: RunTimeline) -> Text:
    """Summary line as a rich Text with the overall label colored."""
    return _styled(
        format_summary_line(pipeline_name, build_id, timeline), overall_label(timeline)
    )


def build_stage_tree(
    timeline: RunTimeline,
    depth: int = MIN_DEPTH,
    *,
    title: Text | str | None = None,
) -> Tree:
    """
    Build a rich Tree of the run.

    Args:
        timeline: Run timeline to render
        depth: 1 for stages only, 2 to include jobs, 3 to include tasks
        title: Root label of the tree (defaults to "Stages")

    Raises:
        ValueError: If depth is outside 1..3
    """
    if not MIN_DEPTH <= depth <= MAX_DEPTH:
        raise ValueError(f"depth must be between {MIN_DEPTH} and {MAX_DEPTH}, got {depth}")

    tree = Tree(title if title is not None else "Stages", guide_style="dim")
    for stage in timeline.stages:
        stage_branch = tree.add(
            _styled(format_stage(stage), status_label(stage.state, stage.result))
        )
        if depth < 2:
            continue
        for job in stage.jobs:
            job_branch = stage_branch.add(
                _styled(format_job(job), status_label(job.state, job.result))
            )
            if depth < 3:
                continue
            for task in job.tasks:
                job_branch.add(_styled(format_task(task), status_label(task.state, task.result)))
    return tree

