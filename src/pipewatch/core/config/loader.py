"""
Resolve the effective pipewatch configuration.

Layers, lowest precedence first:

    built-in defaults
    ~/.config/pipewatch/config.json     (honours XDG_CONFIG_HOME)
    ./.pipewatch.json
    PIPEWATCH_ORG, PIPEWATCH_PROJECT, PIPEWATCH_BASE_URL, AZURE_DEVOPS_PAT

The result is validated once and memoised for the rest of the process.
"""

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .models import PipewatchConfig

logger = logging.getLogger(__name__)

APP_NAME = "pipewatch"
PROJECT_CONFIG_NAME = ".pipewatch.json"

ENV_OVERRIDES: dict[str, str] = {
    "PIPEWATCH_ORG": "organization",
    "PIPEWATCH_PROJECT": "project",
    "PIPEWATCH_BASE_URL": "base_url",
    "AZURE_DEVOPS_PAT": "token",
}

_cached: PipewatchConfig | None = None


def get_xdg_config_home() -> Path:
    """Base directory for per-user config; ``$XDG_CONFIG_HOME`` or ``~/.config``."""
    configured = os.environ.get("XDG_CONFIG_HOME")
    return Path(configured) if configured else Path.home() / ".config"


def get_user_config_path() -> Path:
    return get_xdg_config_home() / APP_NAME / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Location of the project file inside ``cwd`` (the working directory by default)."""
    return (cwd if cwd is not None else Path.cwd()) / PROJECT_CONFIG_NAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Return a new dict with ``override`` layered on top of ``base``.

    Only mappings present on both sides are combined key by key. Any other
    value, hook lists included, is taken from ``override`` as a whole.
    Neither argument is modified.
    """
    merged = dict(base)
    for key, incoming in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(incoming, dict):
            merged[key] = deep_merge(current, incoming)
        else:
            merged[key] = incoming
    return merged


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Read one config file.

    Missing files yield None silently. Files that fail to parse or are not an
    object are logged at warning level and also yield None, so one broken layer
    never hides the others.
    """
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to parse config at %s: %s", path, exc)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring config at %s: top level is not an object", path)
        return None
    return data


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Copy ``config_dict`` with every non-empty variable from ENV_OVERRIDES applied."""
    overrides = {
        key: os.environ[name] for name, key in ENV_OVERRIDES.items() if os.environ.get(name)
    }
    return {**config_dict, **overrides}


def get_default_config() -> dict[str, Any]:
    return {
        "base_url": "https://dev.azure.com",
        "wait": {
            "initial_interval_seconds": 5,
            "interval_increment_seconds": 5,
            "max_interval_seconds": 30,
        },
        "hooks": {
            "pipeline_queue": [],
            "pipeline_complete": [],
            "pipeline_success": [],
            "pipeline_fail": [],
        },
    }


def _file_layers(project_dir: Path | None) -> list[Callable[[], Path]]:
    return [get_user_config_path, lambda: get_project_config_path(project_dir)]


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> PipewatchConfig:
    """
    Build and validate the configuration for this invocation.

    Args:
        project_dir: Where to look for .pipewatch.json (defaults to cwd)
        use_cache: Reuse the result of an earlier call when available

    Raises:
        ValidationError: If the merged layers do not form a valid config
    """
    global _cached

    if use_cache and _cached is not None:
        return _cached

    merged = get_default_config()
    for locate in _file_layers(project_dir):
        path = locate()
        layer = load_json_file(path)
        if layer:
            logger.debug("Applying config layer %s", path)
            merged = deep_merge(merged, layer)

    _cached = PipewatchConfig(**apply_env_overrides(merged))
    return _cached


def clear_cache() -> None:
    """Forget the memoised config so the next load_config call rereads every layer."""
    global _cached
    _cached = None
