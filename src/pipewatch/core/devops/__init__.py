"""
Azure DevOps access: REST client, run references, and entity models.
"""

from pipewatch.core.devops.client import PipelinesClient
from pipewatch.core.devops.models import BuildSummary, PipelineInfo, QueuedRun, RunReference
from pipewatch.core.devops.refs import parse_run_reference

__all__ = [
    "BuildSummary",
    "PipelineInfo",
    "PipelinesClient",
    "QueuedRun",
    "RunReference",
    "parse_run_reference",
]
