"""
Hook data models for pipewatch.

Defines hook configuration, the context passed to hook programs, and the
response expected from pre-queue hooks.

Lifecycle points:
- pipeline_queue: Before a run is queued; hooks may block it
- pipeline_complete: After a watched run finishes, whatever the result
- pipeline_success: After a watched run finishes without failure
- pipeline_fail: After a watched run fails or is canceled

The context is serialized to JSON and written to each hook's standard input.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator, model_validator


class HookPoint(str, Enum):
    """Lifecycle point a hook is attached to."""

    PIPELINE_QUEUE = "pipeline_queue"
    PIPELINE_COMPLETE = "pipeline_complete"
    PIPELINE_SUCCESS = "pipeline_success"
    PIPELINE_FAIL = "pipeline_fail"

    @property
    def is_gating(self) -> bool:
        """Whether hook output at this point can block the action."""
        return self is HookPoint.PIPELINE_QUEUE


class HookFailurePolicy(str, Enum):
    """What to do when a hook fails to execute."""

    WARN = "warn"
    FAIL = "fail"
    IGNORE = "ignore"


class HookConfig(BaseModel):
    """
    Configuration for a single hook.

    Example:
        >>> hook = HookConfig(name="freeze", command="./check-freeze.sh", on_failure="fail")
        >>> hook.argv
        ['./check-freeze.sh']
    """

    name: str = Field(..., min_length=1, description="Name shown in messages")
    command: str = Field(..., min_length=1, description="Executable to run")
    args: list[str] = Field(default_factory=list, description="Arguments passed to the command")
    timeout_seconds: int = Field(default=30, ge=1, description="Hard wall-clock limit")
    on_failure: HookFailurePolicy = Field(
        default=HookFailurePolicy.WARN,
        description="Policy when the hook cannot run, exits non-zero, or times out",
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("on_failure", mode="before")
    @classmethod
    def normalize_policy(cls, v: object) -> object:
        """Accept ``Warn``/``FAIL``/... as written in config files."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def argv(self) -> list[str]:
        """Full argument vector for the subprocess."""
        return [self.command, *self.args]


class HooksConfig(BaseModel):
    """
    All configured hooks, one ordered list per lifecycle point.

    Loaded from the ``hooks`` section of the pipewatch config file.
    """

    pipeline_queue: list[HookConfig] = Field(
        default_factory=list, description="Run before queuing; may block the run"
    )
    pipeline_complete: list[HookConfig] = Field(
        default_factory=list, description="Run when a watched run finishes"
    )
    pipeline_success: list[HookConfig] = Field(
        default_factory=list, description="Run when a watched run succeeds"
    )
    pipeline_fail: list[HookConfig] = Field(
        default_factory=list, description="Run when a watched run fails or is canceled"
    )

    def for_point(self, point: HookPoint) -> list[HookConfig]:
        """Hooks configured for a lifecycle point, in execution order."""
        hooks: list[HookConfig] = getattr(self, point.value)
        return hooks

    @property
    def total(self) -> int:
        """Number of hooks across all points."""
        return sum(len(self.for_point(point)) for point in HookPoint)


class HookContext(BaseModel):
    """
    Context written as JSON to every hook's standard input.

    Field names on the wire are fixed (``org``, ``pipelineId``, ...).
    A fresh context is built per lifecycle event.

    Example:
        >>> context = HookContext(
        ...     org="acme", project="widgets", pipeline_id=123, pipeline_name="ci"
        ... )
        >>> context.to_json()
        '{"org":"acme","project":"widgets","pipelineId":123,...}'
    """

    org: str = Field(description="Azure DevOps organization")
    project: str = Field(description="Azure DevOps project")
    pipeline_id: int = Field(alias="pipelineId", description="Pipeline definition id")
    pipeline_name: str = Field(alias="pipelineName", description="Pipeline name")
    ref: str | None = Field(default=None, description="Git ref, e.g. refs/heads/main")
    build_id: int | None = Field(default=None, alias="buildId", description="Run id, once known")
    parameters: dict[str, str] = Field(default_factory=dict, description="Template parameters")
    variables: dict[str, str] = Field(default_factory=dict, description="Pipeline variables")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_json(self) -> str:
        """Serialize to the JSON shape hooks read from stdin."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, json_str: str) -> "HookContext":
        """Deserialize from JSON string."""
        return cls.model_validate_json(json_str)


class HookResponse(BaseModel):
    """
    Verdict printed to stdout by a pipeline_queue hook.

    ``approve`` must be a JSON boolean; ``reason`` is optional. Key names are
    matched case-insensitively, so ``{"Approve": false}`` is accepted.
    """

    approve: StrictBool = Field(description="Whether the run may be queued")
    reason: str | None = Field(default=None, description="Explanation shown when blocking")

    @model_validator(mode="before")
    @classmethod
    def lowercase_keys(cls, data: object) -> object:
        if isinstance(data, dict):
            return {k.lower() if isinstance(k, str) else k: v for k, v in data.items()}
        return data


class ProcessOutput(BaseModel):
    """Captured result of one hook process that ran to completion."""

    exit_code: int = Field(description="Process exit code")
    stdout: str = Field(default="", description="Standard output")
    stderr: str = Field(default="", description="Standard error")
    duration_seconds: float = Field(default=0.0, description="Wall-clock duration")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the hook finished")

    @property
    def succeeded(self) -> bool:
        """Whether the process exited with code 0."""
        return self.exit_code == 0
