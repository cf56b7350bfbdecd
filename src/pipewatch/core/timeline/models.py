"""
Timeline models for pipeline runs.

A run's timeline arrives from Azure DevOps as a flat list of records, each
pointing at its parent. These models cover both shapes:

- TimelineRecord: one flat record as received, with its type tag already
  narrowed to the closed RecordType variant
- RunTimeline / StageNode / JobNode / TaskNode: the reconstructed
  Stage -> Job -> Task tree built by pipewatch.core.timeline.builder

All models are frozen. A new tree is built for every fetch.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RecordType(str, Enum):
    """Kind of a timeline record. Anything unrecognized is OTHER."""

    STAGE = "Stage"
    JOB = "Job"
    TASK = "Task"
    OTHER = "Other"

    @classmethod
    def from_api(cls, value: str | None) -> "RecordType":
        """Narrow the open ``type`` string from the API to a RecordType."""
        for member in (cls.STAGE, cls.JOB, cls.TASK):
            if value == member.value:
                return member
        return cls.OTHER


class TimelineState(str, Enum):
    """Execution state of a timeline record."""

    PENDING = "pending"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"
    UNKNOWN = "unknown"

    @classmethod
    def from_api(cls, value: str | None) -> "TimelineState":
        """Map an API state string (case-insensitive) to a TimelineState."""
        if value:
            lowered = value.lower()
            for member in (cls.PENDING, cls.IN_PROGRESS, cls.COMPLETED):
                if lowered == member.value.lower():
                    return member
        return cls.UNKNOWN


class TimelineResult(str, Enum):
    """Outcome of a completed timeline record."""

    NONE = "none"
    SUCCEEDED = "succeeded"
    PARTIALLY_SUCCEEDED = "partiallySucceeded"
    FAILED = "failed"
    CANCELED = "canceled"
    SKIPPED = "skipped"

    @classmethod
    def from_api(cls, value: str | None) -> "TimelineResult":
        """
        Map an API result string (case-insensitive) to a TimelineResult.

        ``succeededWithIssues`` becomes PARTIALLY_SUCCEEDED. Unknown values,
        ``abandoned`` and missing results become NONE.
        """
        if not value:
            return cls.NONE
        return _RESULT_ALIASES.get(value.lower(), cls.NONE)


_RESULT_ALIASES: dict[str, TimelineResult] = {
    "succeeded": TimelineResult.SUCCEEDED,
    "succeededwithissues": TimelineResult.PARTIALLY_SUCCEEDED,
    "partiallysucceeded": TimelineResult.PARTIALLY_SUCCEEDED,
    "failed": TimelineResult.FAILED,
    "canceled": TimelineResult.CANCELED,
    "cancelled": TimelineResult.CANCELED,
    "skipped": TimelineResult.SKIPPED,
}


class TimelineRecord(BaseModel):
    """
    One flat status record for a node in a run's timeline.

    Example:
        >>> record = TimelineRecord.from_api({
        ...     "id": "a1", "parentId": None, "type": "Stage", "name": "Build",
        ...     "order": 1, "state": "completed", "result": "succeeded",
        ... })
        >>> record.record_type
        <RecordType.STAGE: 'Stage'>
    """

    id: str = Field(..., description="Record identifier, unique within one fetch")
    parent_id: str | None = Field(default=None, description="Parent record identifier")
    record_type: RecordType = Field(default=RecordType.OTHER, description="Record kind")
    name: str = Field(default="", description="Display name")
    order: int | None = Field(default=None, description="Sort hint among siblings")
    state: TimelineState = Field(default=TimelineState.UNKNOWN, description="Execution state")
    result: TimelineResult = Field(default=TimelineResult.NONE, description="Outcome")
    log_id: int | None = Field(default=None, description="Log stream identifier")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "TimelineRecord":
        """Build a record from one entry of the REST ``records`` array."""
        log = data.get("log") or {}
        return cls(
            id=str(data["id"]),
            parent_id=str(data["parentId"]) if data.get("parentId") else None,
            record_type=RecordType.from_api(data.get("type")),
            name=data.get("name") or "",
            order=data.get("order"),
            state=TimelineState.from_api(data.get("state")),
            result=TimelineResult.from_api(data.get("result")),
            log_id=log.get("id"),
        )


class TaskNode(BaseModel):
    """A task (step) inside a job."""

    name: str
    state: TimelineState = TimelineState.UNKNOWN
    result: TimelineResult = TimelineResult.NONE
    order: int | None = None
    log_id: int | None = None

    model_config = ConfigDict(frozen=True)


class JobNode(BaseModel):
    """A job inside a stage, with its tasks sorted by order."""

    name: str
    state: TimelineState = TimelineState.UNKNOWN
    result: TimelineResult = TimelineResult.NONE
    order: int | None = None
    log_id: int | None = None
    tasks: tuple[TaskNode, ...] = ()

    model_config = ConfigDict(frozen=True)


class StageNode(BaseModel):
    """A stage of the run, with its jobs sorted by order."""

    name: str
    state: TimelineState = TimelineState.UNKNOWN
    result: TimelineResult = TimelineResult.NONE
    order: int | None = None
    log_id: int | None = None
    jobs: tuple[JobNode, ...] = ()

    model_config = ConfigDict(frozen=True)


class RunTimeline(BaseModel):
    """
    The Stage -> Job -> Task tree of one run, as of one fetch.

    Example:
        >>> timeline = RunTimeline(stages=(StageNode(name="Build"),))
        >>> timeline.is_empty
        False
    """

    stages: tuple[StageNode, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        """True when the run has no stages at all."""
        return not self.stages

    @property
    def jobs(self) -> list[JobNode]:
        """All jobs across all stages, in stage order."""
        return [job for stage in self.stages for job in stage.jobs]
