"""
Tests for hook outcome classification and failure policies.
"""

import pytest

from pipewatch.core.hooks.models import HookFailurePolicy, ProcessOutput
from pipewatch.core.hooks.policy import (
    INVALID_OUTPUT_REASON,
    ActionKind,
    HookOutcome,
    OutcomeKind,
    block_message,
    classify_outcome,
    decide,
    failure_message,
    parse_hook_response,
)


def output(stdout: str = "", exit_code: int = 0) -> ProcessOutput:
    return ProcessOutput(exit_code=exit_code, stdout=stdout)


class TestParseHookResponse:
    def test_valid(self):
        response = parse_hook_response('{"approve": false, "reason": "Frozen"}')
        assert response is not None
        assert response.approve is False
        assert response.reason == "Frozen"

    def test_surrounding_whitespace(self):
        assert parse_hook_response('\n  {"approve": true}\n') is not None

    @pytest.mark.parametrize(
        "stdout",
        [
            "",
            "   \n",
            "not json",
            '{"approve": "yes"}',
            '{"reason": "missing approve"}',
            '[{"approve": true}]',
            'log line\n{"approve": true}',
        ],
    )
    def test_invalid(self, stdout):
        assert parse_hook_response(stdout) is None


class TestClassifyOutcome:
    def test_no_output_is_execution_failure(self):
        outcome = classify_outcome(None, gating=True, error="timed out after 5s")
        assert outcome == HookOutcome.execution_failure("timed out after 5s")

    def test_non_zero_exit_wins_over_stdout(self):
        outcome = classify_outcome(
            output('{"approve": false}', exit_code=3), gating=True
        )
        assert outcome.kind is OutcomeKind.EXECUTION_FAILURE
        assert outcome.reason == "exited with code 3"

    def test_notification_ignores_stdout(self):
        assert classify_outcome(output("garbage"), gating=False).kind is OutcomeKind.SUCCESS

    def test_gating_invalid_output(self):
        outcome = classify_outcome(output("garbage"), gating=True)
        assert outcome == HookOutcome.execution_failure(INVALID_OUTPUT_REASON)

    def test_gating_block(self):
        outcome = classify_outcome(output('{"approve": false, "reason": "Frozen"}'), gating=True)
        assert outcome == HookOutcome.blocked("Frozen")

    def test_gating_approve(self):
        outcome = classify_outcome(output('{"approve": true}'), gating=True)
        assert outcome.kind is OutcomeKind.SUCCESS


class TestMessages:
    def test_failure_message(self):
        assert failure_message("lint", "exited with code 2") == (
            "Hook 'lint' failed: exited with code 2."
        )

    def test_block_message_with_reason(self):
        assert block_message("freeze", "Frozen") == (
            "Pipeline queuing blocked by hook 'freeze'. Reason: Frozen"
        )

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_block_message_without_reason(self, reason):
        assert block_message("freeze", reason) == "Pipeline queuing blocked by hook 'freeze'."


class TestDecide:
    @pytest.mark.parametrize("policy", list(HookFailurePolicy))
    def test_success_continues(self, policy):
        action = decide("x", HookOutcome.success(), policy)
        assert action.kind is ActionKind.CONTINUE
        assert action.message is None

    @pytest.mark.parametrize("policy", list(HookFailurePolicy))
    def test_block_always_aborts(self, policy):
        action = decide("block-hook", HookOutcome.blocked("Frozen"), policy)

        assert action.kind is ActionKind.ABORT
        assert action.blocked
        assert "block-hook" in action.message
        assert "Frozen" in action.message

    def test_failure_under_fail_aborts(self):
        action = decide("x", HookOutcome.execution_failure("boom"), HookFailurePolicy.FAIL)
        assert action.kind is ActionKind.ABORT
        assert not action.blocked
        assert action.message == "Hook 'x' failed: boom."

    def test_failure_under_warn_warns(self):
        action = decide("x", HookOutcome.execution_failure("boom"), HookFailurePolicy.WARN)
        assert action.kind is ActionKind.WARN
        assert action.message == "Hook 'x' failed: boom."

    def test_failure_under_ignore_is_silent(self):
        action = decide("x", HookOutcome.execution_failure("boom"), HookFailurePolicy.IGNORE)
        assert action.kind is ActionKind.CONTINUE
        assert action.message is None
