"""
Pytest configuration and shared fixtures.

Provides timeline record factories, hook contexts, a scripted process
runner, and an isolated config environment used across the test suite.
"""

from collections.abc import Callable
from typing import Any

import pytest

from pipewatch.core.config import clear_cache
from pipewatch.core.hooks.models import HookConfig, HookContext, ProcessOutput
from pipewatch.core.timeline.models import (
    RecordType,
    TimelineRecord,
    TimelineResult,
    TimelineState,
)

# ==============================================================================
# Timeline Fixtures
# ==============================================================================


def _make_record(
    id: str,
    record_type: RecordType = RecordType.OTHER,
    *,
    parent: str | None = None,
    name: str | None = None,
    order: int | None = None,
    state: TimelineState = TimelineState.COMPLETED,
    result: TimelineResult = TimelineResult.SUCCEEDED,
    log_id: int | None = None,
) -> TimelineRecord:
    """Build a TimelineRecord with test-friendly defaults."""
    return TimelineRecord(
        id=id,
        parent_id=parent,
        record_type=record_type,
        name=name if name is not None else id,
        order=order,
        state=state,
        result=result,
        log_id=log_id,
    )


@pytest.fixture
def record_factory() -> Callable[..., TimelineRecord]:
    """Factory for timeline records."""
    return _make_record


def _api_record(**fields: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": "r1",
        "parentId": None,
        "type": "Stage",
        "name": "Build",
        "order": 1,
        "state": "completed",
        "result": "succeeded",
        "log": None,
    }
    data.update(fields)
    return data


@pytest.fixture
def api_record() -> Callable[..., dict[str, Any]]:
    """Factory for raw REST timeline records with required keys filled in."""
    return _api_record


# ==============================================================================
# Hook Fixtures
# ==============================================================================


@pytest.fixture
def queue_context() -> HookContext:
    """Context for a pre-queue hook."""
    return HookContext(
        org="acme",
        project="widgets",
        pipeline_id=123,
        pipeline_name="ci",
        ref="refs/heads/main",
        parameters={"env": "staging"},
    )


@pytest.fixture
def completion_context() -> HookContext:
    """Context for a completion hook."""
    return HookContext(
        org="acme",
        project="widgets",
        pipeline_id=123,
        pipeline_name="ci",
        ref="refs/heads/main",
        build_id=4567,
    )


def _make_hook(name: str, on_failure: str = "warn", timeout_seconds: int = 30) -> HookConfig:
    return HookConfig(
        name=name,
        command=f"./{name}.sh",
        on_failure=on_failure,
        timeout_seconds=timeout_seconds,
    )


@pytest.fixture
def hook_factory() -> Callable[..., HookConfig]:
    """Factory for hook configs named after their script."""
    return _make_hook


ScriptedResult = ProcessOutput | Exception

APPROVE = ProcessOutput(exit_code=0, stdout='{"approve": true}')


class FakeRunner:
    """
    Process runner returning scripted results per hook name.

    A missing entry behaves like a successful hook that approves.
    """

    def __init__(self, results: dict[str, ScriptedResult] | None = None) -> None:
        self.results = results or {}
        self.calls: list[tuple[str, HookContext]] = []

    async def run(self, hook: HookConfig, context: HookContext) -> ProcessOutput:
        self.calls.append((hook.name, context))
        result = self.results.get(hook.name, APPROVE)
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def runner_factory() -> type[FakeRunner]:
    return FakeRunner


# ==============================================================================
# Config Fixtures
# ==============================================================================


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """
    Isolate config loading from the developer's machine.

    Points XDG_CONFIG_HOME at an empty directory, clears pipewatch env vars,
    runs from a fresh project directory, and resets the config cache.
    """
    xdg = tmp_path / "xdg"
    xdg.mkdir()
    project = tmp_path / "project"
    project.mkdir()

    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
    for var in ("PIPEWATCH_ORG", "PIPEWATCH_PROJECT", "PIPEWATCH_BASE_URL", "AZURE_DEVOPS_PAT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(project)

    clear_cache()
    yield project
    clear_cache()
