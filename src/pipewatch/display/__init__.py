"""
Terminal rendering for pipewatch.
"""

from pipewatch.display.timeline import (
    build_stage_tree,
    build_summary_text,
    format_elapsed,
    format_job,
    format_stage,
    format_status_counts,
    format_summary_line,
    format_task,
    label_style,
)

__all__ = [
    "build_stage_tree",
    "build_summary_text",
    "format_elapsed",
    "format_job",
    "format_stage",
    "format_status_counts",
    "format_summary_line",
    "format_task",
    "label_style",
]
