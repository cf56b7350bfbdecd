"""
Hook service: runs every hook configured for a lifecycle point.

Hooks for one point run strictly in configured order, one at a time. Each
outcome is classified and passed through the hook's failure policy
(pipewatch.core.hooks.policy); this module applies the resulting action:

- continue: next hook
- warn: send the message to the warning sink (or log it if there is none), next hook
- abort: raise HookBlockedError or HookFailedError; remaining hooks are skipped

Notification points (complete/success/fail) never block. Their only visible
effect is a warning or, under the ``fail`` policy, an error.

Usage:
    from pipewatch.core.hooks import HookContext, HookService

    service = HookService(config.hooks, on_warning=print_warning)
    await service.run_pipeline_queue_hooks(context)   # may raise HookBlockedError
    ...
    await service.run_completion_hooks(context, failed=result.failed)
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pipewatch.core.exceptions import HookBlockedError, HookExecutionError, HookFailedError
from pipewatch.core.hooks.models import HookConfig, HookContext, HookPoint, HooksConfig
from pipewatch.core.hooks.policy import ActionKind, HookAction, classify_outcome, decide
from pipewatch.core.hooks.runner import HookProcessRunner, ProcessRunner

logger = logging.getLogger(__name__)

WarningSink = Callable[[str], object]


class HookService:
    """
    Executes configured lifecycle hooks and acts on their outcomes.

    Attributes:
        config: Hooks per lifecycle point
        runner: Process runner used for each hook
    """

    def __init__(
        self,
        config: HooksConfig | None = None,
        runner: ProcessRunner | None = None,
        on_warning: WarningSink | None = None,
    ) -> None:
        """
        Initialize the hook service.

        Args:
            config: Hook configuration (no hooks if not provided)
            runner: Process runner (a HookProcessRunner if not provided)
            on_warning: Called with each warning message
        """
        self.config = config or HooksConfig()
        self.runner: ProcessRunner = runner or HookProcessRunner()
        self._on_warning = on_warning

    async def run_pipeline_queue_hooks(self, context: HookContext) -> None:
        """
        Run pipeline_queue hooks before a run is queued.

        Raises:
            HookBlockedError: If a hook answers ``approve: false``
            HookFailedError: If a ``fail``-policy hook fails to execute
        """
        await self.run_point(HookPoint.PIPELINE_QUEUE, context)

    async def run_pipeline_complete_hooks(self, context: HookContext) -> None:
        """Run pipeline_complete hooks. Stdout is ignored."""
        await self.run_point(HookPoint.PIPELINE_COMPLETE, context)

    async def run_pipeline_success_hooks(self, context: HookContext) -> None:
        """Run pipeline_success hooks. Stdout is ignored."""
        await self.run_point(HookPoint.PIPELINE_SUCCESS, context)

    async def run_pipeline_fail_hooks(self, context: HookContext) -> None:
        """Run pipeline_fail hooks. Stdout is ignored."""
        await self.run_point(HookPoint.PIPELINE_FAIL, context)

    async def run_completion_hooks(self, context: HookContext, *, failed: bool) -> None:
        """
        Run the hooks for a finished run: complete, then success or fail.

        Args:
            context: Context for the finished run
            failed: Whether the run failed or was canceled
        """
        await self.run_pipeline_complete_hooks(context)
        if failed:
            await self.run_pipeline_fail_hooks(context)
        else:
            await self.run_pipeline_success_hooks(context)

    async def run_point(self, point: HookPoint, context: HookContext) -> None:
        """
        Run all hooks for a lifecycle point in order.

        Args:
            point: Lifecycle point
            context: Context written to each hook's stdin

        Raises:
            HookBlockedError: A gating hook refused the action
            HookFailedError: A ``fail``-policy hook failed to execute
        """
        hooks = self.config.for_point(point)
        if not hooks:
            logger.debug("No hooks configured for %s", point.value)
            return

        logger.info("Running %d hook(s) for %s", len(hooks), point.value)
        for hook in hooks:
            action = await self._run_hook(hook, context, gating=point.is_gating)
            self._apply(hook, action)

    async def _run_hook(self, hook: HookConfig, context: HookContext, *, gating: bool) -> HookAction:
        try:
            output = await self.runner.run(hook, context)
        except HookExecutionError as e:
            outcome = classify_outcome(None, gating=gating, error=str(e))
        else:
            outcome = classify_outcome(output, gating=gating)

        logger.debug("Hook %s outcome: %s (%s)", hook.name, outcome.kind.value, outcome.reason)
        return decide(hook.name, outcome, hook.on_failure)

    def _apply(self, hook: HookConfig, action: HookAction) -> None:
        if action.kind is ActionKind.CONTINUE:
            return

        message = action.message or f"Hook '{hook.name}' failed."
        if action.kind is ActionKind.WARN:
            if self._on_warning is None:
                logger.warning(message)
            else:
                logger.info(message)
                self._on_warning(message)
            return

        # Aborts are reported by whoever catches the raised error
        logger.info(message)
        if action.blocked:
            raise HookBlockedError(hook.name, message)
        raise HookFailedError(hook.name, message)
