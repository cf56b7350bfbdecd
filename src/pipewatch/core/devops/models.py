"""
Models for Azure DevOps entities used by pipewatch.

Only the fields pipewatch reads are modelled; everything else in the REST
payloads is ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _web_url(data: dict[str, Any]) -> str:
    links = data.get("_links") or {}
    web = links.get("web") or {}
    href = web.get("href")
    return str(href) if href else ""


class RunReference(BaseModel):
    """An organization/project/build id triple identifying one run."""

    organization: str
    project: str
    build_id: int

    model_config = ConfigDict(frozen=True)


class PipelineInfo(BaseModel):
    """A pipeline definition."""

    id: int
    name: str
    folder: str = "\\"
    url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PipelineInfo":
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            folder=data.get("folder") or "\\",
            url=_web_url(data),
        )


class BuildSummary(BaseModel):
    """Summary of one build (run) as returned by the builds API."""

    id: int
    build_number: str = ""
    status: str = Field(default="", description="notStarted, inProgress, cancelling, completed, ...")
    result: str | None = None
    pipeline_id: int = 0
    pipeline_name: str = ""
    source_branch: str | None = None
    url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "BuildSummary":
        definition = data.get("definition") or {}
        return cls(
            id=int(data["id"]),
            build_number=data.get("buildNumber") or "",
            status=data.get("status") or "",
            result=data.get("result"),
            pipeline_id=int(definition.get("id") or 0),
            pipeline_name=definition.get("name") or "",
            source_branch=data.get("sourceBranch"),
            url=_web_url(data),
        )

    @property
    def is_completed(self) -> bool:
        return self.status.lower() == "completed"

    @property
    def is_cancelling(self) -> bool:
        return self.status.lower() == "cancelling"


class QueuedRun(BaseModel):
    """A run that was just queued."""

    id: int
    name: str = ""
    web_url: str = ""
