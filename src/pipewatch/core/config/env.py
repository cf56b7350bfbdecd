"""
Layered .env loading.

AZURE_DEVOPS_PAT and the PIPEWATCH_* defaults are usually exported in the
shell or set by CI. For local use they can also live in .env files:

    ~/.config/pipewatch/.env      per-user defaults
    ./.env, ./.env.local          per-project values, later files win

Variables already present in the process environment are left untouched.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

from .loader import APP_NAME, get_xdg_config_home

logger = logging.getLogger(__name__)

PROJECT_ENV_NAMES = (".env", ".env.local")


def read_env_file(path: Path) -> dict[str, str]:
    """Parse one .env file; a missing file or a key without a value is skipped."""
    if not path.is_file():
        return {}
    return {key: value for key, value in dotenv_values(path).items() if value is not None}


def collect_env_files(paths: Iterable[Path]) -> dict[str, str]:
    """Merge several .env files in order, later files overriding earlier ones."""
    merged: dict[str, str] = {}
    for path in paths:
        values = read_env_file(Path(path))
        if values:
            logger.debug("Loaded %d value(s) from %s", len(values), path)
        merged.update(values)
    return merged


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> None:
    """
    Export values from the user and project .env files into os.environ.

    Args:
        project_dir: Directory holding the project .env files (defaults to cwd)
        user_env_paths: Override the user .env locations
        project_env_paths: Override the project .env locations
    """
    base = project_dir if project_dir is not None else Path.cwd()
    if user_env_paths is None:
        user_env_paths = [get_xdg_config_home() / APP_NAME / ".env"]
    if project_env_paths is None:
        project_env_paths = [base / name for name in PROJECT_ENV_NAMES]

    layered = collect_env_files(user_env_paths)
    layered.update(collect_env_files(project_env_paths))

    for key, value in layered.items():
        os.environ.setdefault(key, value)
