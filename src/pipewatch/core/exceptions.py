"""
Exceptions for pipewatch.

Exception Hierarchy:
    PipewatchError (base)
    ├── UserFacingError (shown to the user, exit code 1)
    │   ├── HookError (hook-related errors, carries the hook name)
    │   │   ├── HookFailedError (execution failure under the "fail" policy)
    │   │   └── HookBlockedError (pre-queue hook refused the run)
    │   ├── RunReferenceError (unparseable build id or URL)
    │   └── RemoteServiceError (Azure DevOps request failures)
    └── HookExecutionError (hook could not run or timed out; absorbed by HookService)

Example:
    >>> from pipewatch.core.exceptions import HookBlockedError
    >>> try:
    ...     raise HookBlockedError("freeze", "Pipeline queuing blocked by hook 'freeze'.")
    ... except HookBlockedError as e:
    ...     print(f"Blocked by {e.hook_name}: {e}")
"""


class PipewatchError(Exception):
    """
    Base exception for all pipewatch errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message


class UserFacingError(PipewatchError):
    """
    An error whose message is meant for the person running the command.

    The CLI prints the message without a traceback and exits with code 1.
    """


class HookError(UserFacingError):
    """
    Base exception for hook errors that escape the hook service.

    Attributes:
        hook_name: Name of the hook that caused the error
    """

    def __init__(self, hook_name: str, message: str, **context: object) -> None:
        super().__init__(message, hook_name=hook_name, **context)
        self.hook_name = hook_name


class HookFailedError(HookError):
    """A hook with ``on_failure: fail`` could not complete successfully."""


class HookBlockedError(HookError):
    """
    A pre-queue hook answered ``{"approve": false}``.

    This is a decision, not a malfunction, so it is raised regardless of the
    hook's failure policy.
    """

    def __init__(self, hook_name: str, message: str, reason: str | None = None) -> None:
        super().__init__(hook_name, message, reason=reason)
        self.reason = reason


class RunReferenceError(UserFacingError):
    """A build id or build results URL could not be resolved."""


class RemoteServiceError(UserFacingError):
    """
    A request to Azure DevOps failed or returned unusable data.

    Attributes:
        status_code: HTTP status code, if a response was received
    """

    def __init__(self, message: str, status_code: int | None = None, **context: object) -> None:
        super().__init__(message, status_code=status_code, **context)
        self.status_code = status_code


class HookExecutionError(PipewatchError):
    """
    A hook process could not be started or exceeded its timeout.

    Raised by the hook runner and classified as an execution failure by the
    hook service; never shown to the user directly.
    """
