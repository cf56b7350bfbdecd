"""
Azure DevOps REST client for pipelines and builds.

This is the remote record store for pipewatch: it lists pipelines, fetches
build summaries, timeline records and logs, queues runs, and cancels builds. It
performs no retries; a failed request becomes a RemoteServiceError.

API version 7.1 endpoints used:
- GET   {org}/{project}/_apis/pipelines
- GET   {org}/{project}/_apis/pipelines/{pipelineId}
- POST  {org}/{project}/_apis/pipelines/{pipelineId}/runs
- GET   {org}/{project}/_apis/build/builds/{buildId}
- PATCH {org}/{project}/_apis/build/builds/{buildId}
- GET   {org}/{project}/_apis/build/builds/{buildId}/timeline
- GET   {org}/{project}/_apis/build/builds/{buildId}/logs/{logId}

Example:
    >>> async with PipelinesClient(token=os.environ["AZURE_DEVOPS_PAT"]) as client:
    ...     timeline = await client.get_timeline("acme", "widgets", 42)
    ...     print(len(timeline.stages))
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx

from pipewatch.core.devops.models import BuildSummary, PipelineInfo, QueuedRun
from pipewatch.core.exceptions import RemoteServiceError, UserFacingError
from pipewatch.core.timeline.builder import build_timeline
from pipewatch.core.timeline.models import RunTimeline, TimelineRecord

logger = logging.getLogger(__name__)

API_VERSION = "7.1"
DEFAULT_BASE_URL = "https://dev.azure.com"
DEFAULT_TIMEOUT = 30.0
CONTINUATION_HEADER = "x-ms-continuationtoken"


class PipelinesClient:
    """
    Async client for the Azure DevOps pipelines and builds APIs.

    Use as an async context manager so the underlying connection pool is
    closed when done.

    Attributes:
        base_url: Service root (https://dev.azure.com by default)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Service root URL
            token: Personal access token, sent with basic auth if given
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        auth = httpx.BasicAuth("", token) if token else None
        self._http = httpx.AsyncClient(
            auth=auth,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> PipelinesClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Pipelines
    # ------------------------------------------------------------------

    async def list_pipelines(self, organization: str, project: str) -> list[PipelineInfo]:
        """List all pipeline definitions in a project, following continuation tokens."""
        pipelines: list[PipelineInfo] = []
        continuation: str | None = None

        while True:
            params = {"continuationToken": continuation} if continuation else None
            response = await self._request(
                "GET", self._url(organization, project, "pipelines"), params=params
            )
            data = _json(response)
            pipelines.extend(PipelineInfo.from_api(item) for item in data.get("value", []))

            continuation = response.headers.get(CONTINUATION_HEADER)
            if not continuation:
                return pipelines

    async def get_pipeline(self, organization: str, project: str, pipeline_id: int) -> PipelineInfo:
        """Fetch one pipeline definition."""
        response = await self._request(
            "GET", self._url(organization, project, f"pipelines/{pipeline_id}")
        )
        return PipelineInfo.from_api(_json(response))

    async def queue_run(
        self,
        organization: str,
        project: str,
        pipeline_id: int,
        *,
        ref: str | None = None,
        parameters: dict[str, str] | None = None,
        variables: dict[str, str] | None = None,
        stages_to_skip: list[str] | None = None,
    ) -> QueuedRun:
        """
        Queue a new run of a pipeline.

        Args:
            organization: Organization name
            project: Project name
            pipeline_id: Pipeline definition id
            ref: Git ref for the ``self`` repository, e.g. refs/heads/main
            parameters: Template parameters
            variables: Variable overrides (must be settable at queue time)
            stages_to_skip: Stage names to skip

        Returns:
            QueuedRun with the new run id and its web URL
        """
        body: dict[str, Any] = {}
        if ref:
            body["resources"] = {"repositories": {"self": {"refName": ref}}}
        if parameters:
            body["templateParameters"] = dict(parameters)
        if variables:
            body["variables"] = {key: {"value": value} for key, value in variables.items()}
        if stages_to_skip:
            body["stagesToSkip"] = list(stages_to_skip)

        response = await self._request(
            "POST",
            self._url(organization, project, f"pipelines/{pipeline_id}/runs"),
            json=body,
        )
        data = _json(response)
        run_id = int(data["id"])
        return QueuedRun(
            id=run_id,
            name=data.get("name") or "",
            web_url=self.build_web_url(organization, project, run_id),
        )

    # ------------------------------------------------------------------
    # Builds
    # ------------------------------------------------------------------

    async def get_build(self, organization: str, project: str, build_id: int) -> BuildSummary:
        """Fetch the summary of one build."""
        response = await self._request(
            "GET", self._url(organization, project, f"build/builds/{build_id}")
        )
        return BuildSummary.from_api(_json(response))

    async def get_timeline_records(
        self, organization: str, project: str, build_id: int
    ) -> list[TimelineRecord]:
        """
        Fetch the flat timeline records of a build.

        Raises:
            RemoteServiceError: If the build has no timeline records
        """
        response = await self._request(
            "GET", self._url(organization, project, f"build/builds/{build_id}/timeline")
        )
        data = _json(response) if response.content else {}
        raw_records = data.get("records") or []
        if not raw_records:
            raise RemoteServiceError(f"No timeline data found for build {build_id}.")

        records = [TimelineRecord.from_api(item) for item in raw_records]
        logger.debug("Fetched %d timeline records for build %d", len(records), build_id)
        return records

    async def get_timeline(self, organization: str, project: str, build_id: int) -> RunTimeline:
        """Fetch a build's timeline records and build the Stage/Job/Task tree."""
        records = await self.get_timeline_records(organization, project, build_id)
        return build_timeline(records)

    async def get_build_log(
        self,
        organization: str,
        project: str,
        build_id: int,
        log_id: int,
        *,
        destination: Path | None = None,
    ) -> Path:
        """
        Download one build log to a file.

        Log ids are the ``#N`` shown beside each stage, job and task by
        ``pipewatch status --depth 3``. The body is streamed straight to disk.

        Args:
            organization: Organization name
            project: Project name
            build_id: Build id
            log_id: Log id within the build
            destination: File to write (defaults to build-<id>-log-<log id>.txt
                in the system temp directory)

        Returns:
            Path of the written file

        Raises:
            RemoteServiceError: If the log cannot be fetched
            UserFacingError: If the destination file cannot be written
        """
        path = destination or Path(tempfile.gettempdir()) / f"build-{build_id}-log-{log_id}.txt"
        url = self._url(organization, project, f"build/builds/{build_id}/logs/{log_id}")
        logger.debug("GET %s -> %s", url, path)

        try:
            async with self._http.stream(
                "GET",
                url,
                params={"api-version": API_VERSION},
                headers={"Accept": "text/plain"},
            ) as response:
                if not response.is_success or response.status_code == 203:
                    await response.aread()
                _check_status(response)
                with path.open("wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
        except httpx.RequestError as e:
            path.unlink(missing_ok=True)
            raise RemoteServiceError(f"Could not reach Azure DevOps: {e}") from e
        except OSError as e:
            raise UserFacingError(f"Could not write log to {path}: {e}") from e

        logger.info("Saved log %d of build %d to %s", log_id, build_id, path)
        return path

    async def cancel_build(self, organization: str, project: str, build_id: int) -> None:
        """
        Request cancellation of a running build.

        Raises:
            UserFacingError: If the build already completed or is already cancelling
        """
        build = await self.get_build(organization, project, build_id)

        if build.is_completed:
            raise UserFacingError(
                f"Build {build_id} has already completed with result: {build.result}."
            )
        if build.is_cancelling:
            raise UserFacingError(f"Build {build_id} is already being canceled.")

        await self._request(
            "PATCH",
            self._url(organization, project, f"build/builds/{build_id}"),
            json={"status": "cancelling"},
        )
        logger.info("Requested cancellation of build %d", build_id)

    def build_web_url(self, organization: str, project: str, build_id: int) -> str:
        """Browser URL for a build's results page."""
        return (
            f"{self.base_url}/{quote(organization, safe='')}/{quote(project, safe='')}"
            f"/_build/results?buildId={build_id}"
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _url(self, organization: str, project: str, path: str) -> str:
        return (
            f"{self.base_url}/{quote(organization, safe='')}/{quote(project, safe='')}"
            f"/_apis/{path}"
        )

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        query = {"api-version": API_VERSION, **(params or {})}
        logger.debug("%s %s", method, url)

        try:
            response = await self._http.request(method, url, params=query, json=json)
        except httpx.RequestError as e:
            raise RemoteServiceError(f"Could not reach Azure DevOps: {e}") from e

        _check_status(response)
        return response


def _check_status(response: httpx.Response) -> None:
    """Raise RemoteServiceError for anything but a usable 2xx response."""
    status = response.status_code
    if status in (401, 403):
        raise RemoteServiceError(
            f"Azure DevOps rejected the request ({status}). "
            "Check that AZURE_DEVOPS_PAT is set and has access.",
            status_code=status,
        )
    if not response.is_success:
        raise RemoteServiceError(
            f"Azure DevOps request failed ({status}): {_error_message(response)}",
            status_code=status,
        )
    # A 203 is the sign-in page served for missing or invalid credentials
    if status == 203:
        raise RemoteServiceError(
            "Azure DevOps redirected to sign-in. Check that AZURE_DEVOPS_PAT is set.",
            status_code=203,
        )


def _json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as e:
        raise RemoteServiceError("Azure DevOps returned a non-JSON response.") from e
    if not isinstance(data, dict):
        raise RemoteServiceError("Azure DevOps returned an unexpected response shape.")
    return data


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase or "unknown error"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase or "unknown error"
