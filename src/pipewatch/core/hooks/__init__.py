"""
Lifecycle hooks for pipeline runs.

Hooks are external programs configured in the ``hooks`` section of the
pipewatch config. Each receives a JSON HookContext on stdin.

Key Models:
    HookConfig: One hook (command, args, timeout, failure policy)
    HooksConfig: Hooks grouped by lifecycle point
    HookContext: Context passed to hooks
    HookResponse: Verdict expected from pipeline_queue hooks

Key Classes:
    HookProcessRunner: Runs one hook as a subprocess
    HookService: Runs all hooks for a lifecycle point

Usage:
    from pipewatch.core.hooks import HookContext, HookService

    service = HookService(config.hooks)
    await service.run_pipeline_queue_hooks(
        HookContext(org="acme", project="widgets", pipeline_id=12, pipeline_name="ci")
    )
"""

from pipewatch.core.hooks.models import (
    HookConfig,
    HookContext,
    HookFailurePolicy,
    HookPoint,
    HookResponse,
    HooksConfig,
    ProcessOutput,
)
from pipewatch.core.hooks.policy import (
    ActionKind,
    HookAction,
    HookOutcome,
    OutcomeKind,
    classify_outcome,
    decide,
    parse_hook_response,
)
from pipewatch.core.hooks.runner import HookProcessRunner, ProcessRunner
from pipewatch.core.hooks.service import HookService

__all__ = [
    # Models
    "HookConfig",
    "HookContext",
    "HookFailurePolicy",
    "HookPoint",
    "HookResponse",
    "HooksConfig",
    "ProcessOutput",
    # Policy
    "ActionKind",
    "HookAction",
    "HookOutcome",
    "OutcomeKind",
    "classify_outcome",
    "decide",
    "parse_hook_response",
    # Execution
    "HookProcessRunner",
    "ProcessRunner",
    "HookService",
]
