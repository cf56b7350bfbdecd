"""
Hook process runner.

Runs one hook as a subprocess:
- argv is ``[command, *args]``
- the JSON-serialized HookContext is written to stdin, which is then closed
- stdout and stderr are captured as UTF-8 text
- the whole call is bounded by the hook's ``timeout_seconds``

A non-zero exit code is returned, not raised. A process that cannot be
started, or that exceeds its timeout, raises HookExecutionError (one class
for both). Cancelling the calling task kills the process and propagates
asyncio.CancelledError.

Usage:
    from pipewatch.core.hooks.runner import HookProcessRunner

    runner = HookProcessRunner()
    output = await runner.run(hook, context)
    if output.exit_code != 0:
        print(output.stderr)
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
import time
from pathlib import Path
from typing import Any, Protocol

from pipewatch.core.exceptions import HookExecutionError
from pipewatch.core.hooks.models import HookConfig, HookContext, ProcessOutput

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = sys.platform == "win32"
IS_UNIX = not IS_WINDOWS


class ProcessRunner(Protocol):
    """Anything that can run a hook and return its captured output."""

    async def run(self, hook: HookConfig, context: HookContext) -> ProcessOutput: ...


class HookProcessRunner:
    """
    Runs hook programs as subprocesses with a per-hook timeout.

    Attributes:
        cwd: Working directory for hook processes (defaults to current directory)
    """

    def __init__(self, cwd: Path | None = None) -> None:
        self.cwd = cwd

    async def run(self, hook: HookConfig, context: HookContext) -> ProcessOutput:
        """
        Execute a hook with the context on stdin.

        Args:
            hook: Hook to run
            context: Context serialized to the hook's stdin

        Returns:
            ProcessOutput with exit code, stdout and stderr

        Raises:
            HookExecutionError: If the process cannot start or times out
            asyncio.CancelledError: If the calling task is cancelled
        """
        input_bytes = context.to_json().encode("utf-8")
        started = time.monotonic()
        process: asyncio.subprocess.Process | None = None

        kwargs: dict[str, Any] = {
            "stdin": asyncio.subprocess.PIPE,
            "stdout": asyncio.subprocess.PIPE,
            "stderr": asyncio.subprocess.PIPE,
            "cwd": str(self.cwd) if self.cwd else None,
        }
        # New session on Unix so the whole process group can be killed
        if IS_UNIX:
            kwargs["start_new_session"] = True

        logger.debug("Running hook %s: %s", hook.name, " ".join(hook.argv))
        try:
            process = await asyncio.create_subprocess_exec(*hook.argv, **kwargs)
        except (OSError, ValueError) as e:
            reason = e.strerror if isinstance(e, OSError) and e.strerror else e
            raise HookExecutionError(
                f"could not start '{hook.command}': {reason}",
                hook_name=hook.name,
            ) from e

        try:
            try:
                stdout_bytes, stderr_bytes = await asyncio.wait_for(
                    process.communicate(input_bytes),
                    timeout=hook.timeout_seconds,
                )
            except asyncio.TimeoutError as e:
                await kill_process_group(process)
                raise HookExecutionError(
                    f"timed out after {hook.timeout_seconds}s",
                    hook_name=hook.name,
                ) from e

            duration = time.monotonic() - started
            exit_code = process.returncode if process.returncode is not None else -1
            logger.debug("Hook %s exited with %d in %.2fs", hook.name, exit_code, duration)

            return ProcessOutput(
                exit_code=exit_code,
                stdout=stdout_bytes.decode("utf-8", errors="replace") if stdout_bytes else "",
                stderr=stderr_bytes.decode("utf-8", errors="replace") if stderr_bytes else "",
                duration_seconds=duration,
            )

        finally:
            # Covers outer cancellation as well as timeouts
            await ensure_process_terminated(process)


async def kill_process_group(process: asyncio.subprocess.Process) -> None:
    """
    Kill the process and its children.

    Unix kills the whole process group; Windows kills the process directly.

    Args:
        process: The subprocess to kill along with its children.
    """
    if process.returncode is not None:
        return

    try:
        if IS_UNIX:
            try:
                os.killpg(os.getpgid(process.pid), signal.SIGKILL)
            except (ProcessLookupError, OSError) as e:
                logger.debug("Process group kill failed (process may be dead): %s", e)
        else:
            try:
                process.kill()
            except (ProcessLookupError, OSError) as e:
                logger.debug("Process kill failed (process may be dead): %s", e)

        try:
            await asyncio.wait_for(process.wait(), timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Process %d did not exit after SIGKILL", process.pid)

    except Exception as e:
        logger.warning("Error during process group kill: %s", e)


async def ensure_process_terminated(process: asyncio.subprocess.Process | None) -> None:
    """
    Make sure a hook process is gone: SIGTERM, wait 2s, then SIGKILL.

    Should be called in finally blocks to guarantee cleanup.

    Args:
        process: The subprocess to terminate, or None if it never started.
    """
    if process is None or process.returncode is not None:
        return

    try:
        process.terminate()
        try:
            await asyncio.wait_for(process.wait(), timeout=2.0)
        except asyncio.TimeoutError:
            await kill_process_group(process)
    except (ProcessLookupError, OSError) as e:
        logger.debug("Process termination skipped (already dead): %s", e)
