"""
Hook outcome classification and failure-policy decisions.

Both steps are pure functions with no I/O, so they can be tested without
running any process. The hook service does the logging and raising.

Classification, first match wins:
1. the process could not start or timed out -> execution failure
2. non-zero exit code -> execution failure
3. (gating hooks) stdout is not a valid HookResponse -> execution failure
4. (gating hooks) ``approve`` is false -> block
5. otherwise -> success

Policy (execution failures only):
- fail: abort the remaining hooks with an error
- warn: emit a warning and continue
- ignore: continue silently

A block always aborts, whatever the policy.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import ValidationError

from pipewatch.core.hooks.models import HookFailurePolicy, HookResponse, ProcessOutput

INVALID_OUTPUT_REASON = "hook produced invalid or missing JSON output"


class OutcomeKind(str, Enum):
    """How a single hook invocation ended."""

    SUCCESS = "success"
    EXECUTION_FAILURE = "execution_failure"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class HookOutcome:
    """Classified result of one hook invocation."""

    kind: OutcomeKind
    reason: str | None = None

    @classmethod
    def success(cls) -> "HookOutcome":
        return cls(OutcomeKind.SUCCESS)

    @classmethod
    def execution_failure(cls, reason: str) -> "HookOutcome":
        return cls(OutcomeKind.EXECUTION_FAILURE, reason)

    @classmethod
    def blocked(cls, reason: str | None) -> "HookOutcome":
        return cls(OutcomeKind.BLOCKED, reason)


class ActionKind(str, Enum):
    """What the hook service should do next."""

    CONTINUE = "continue"
    WARN = "warn"
    ABORT = "abort"


@dataclass(frozen=True)
class HookAction:
    """
    Decision for one outcome.

    Attributes:
        kind: Continue, warn-and-continue, or abort
        message: Text for the warning or the error (None for silent continue)
        blocked: True when the abort is a block decision rather than a failure
    """

    kind: ActionKind
    message: str | None = None
    blocked: bool = False


def parse_hook_response(stdout: str) -> HookResponse | None:
    """
    Parse a gating hook's stdout as a HookResponse.

    The whole stream must be one JSON object; surrounding whitespace is fine.

    Returns:
        The response, or None if stdout is empty, not JSON, or has the wrong shape
    """
    if not stdout.strip():
        return None
    try:
        return HookResponse.model_validate_json(stdout)
    except ValidationError:
        return None


def classify_outcome(
    output: ProcessOutput | None,
    *,
    gating: bool,
    error: str | None = None,
) -> HookOutcome:
    """
    Classify a hook invocation.

    Args:
        output: Captured output, or None if the process never completed
        gating: Whether stdout must carry a HookResponse (pipeline_queue)
        error: Reason the process never completed (launch failure, timeout)

    Returns:
        HookOutcome
    """
    if output is None:
        return HookOutcome.execution_failure(error or "hook did not run")

    if output.exit_code != 0:
        return HookOutcome.execution_failure(f"exited with code {output.exit_code}")

    if not gating:
        return HookOutcome.success()

    response = parse_hook_response(output.stdout)
    if response is None:
        return HookOutcome.execution_failure(INVALID_OUTPUT_REASON)

    if not response.approve:
        return HookOutcome.blocked(response.reason)

    return HookOutcome.success()


def failure_message(hook_name: str, reason: str | None) -> str:
    """Message for an execution failure."""
    return f"Hook '{hook_name}' failed: {reason}."


def block_message(hook_name: str, reason: str | None) -> str:
    """Message for a block decision; the reason is omitted when blank."""
    suffix = f" Reason: {reason}" if reason and reason.strip() else ""
    return f"Pipeline queuing blocked by hook '{hook_name}'.{suffix}"


def decide(hook_name: str, outcome: HookOutcome, policy: HookFailurePolicy) -> HookAction:
    """
    Map an outcome and the hook's failure policy to an action.

    Example:
        >>> decide("lint", HookOutcome.execution_failure("exited with code 2"),
        ...        HookFailurePolicy.WARN)
        HookAction(kind=<ActionKind.WARN: 'warn'>, message="Hook 'lint' failed: exited with code 2.", blocked=False)
    """
    if outcome.kind is OutcomeKind.SUCCESS:
        return HookAction(ActionKind.CONTINUE)

    if outcome.kind is OutcomeKind.BLOCKED:
        return HookAction(ActionKind.ABORT, block_message(hook_name, outcome.reason), blocked=True)

    message = failure_message(hook_name, outcome.reason)
    if policy is HookFailurePolicy.FAIL:
        return HookAction(ActionKind.ABORT, message)
    if policy is HookFailurePolicy.WARN:
        return HookAction(ActionKind.WARN, message)
    return HookAction(ActionKind.CONTINUE)
