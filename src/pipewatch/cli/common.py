"""
Helpers shared by the pipewatch commands.
"""

from pydantic import ValidationError

from pipewatch.core.config import PipewatchConfig, load_config
from pipewatch.core.devops import PipelinesClient, RunReference, parse_run_reference
from pipewatch.core.exceptions import UserFacingError


def get_config() -> PipewatchConfig:
    """
    Load the layered configuration.

    Raises:
        UserFacingError: If the merged configuration is invalid
    """
    try:
        return load_config()
    except ValidationError as e:
        raise UserFacingError(f"Invalid pipewatch configuration: {e}") from e


def create_client(config: PipewatchConfig) -> PipelinesClient:
    """Create an Azure DevOps client from configuration."""
    return PipelinesClient(config.base_url, config.token)


def resolve_run(value: str, config: PipewatchConfig) -> RunReference:
    """Resolve a build id or results URL against the configured defaults."""
    return parse_run_reference(value, config.organization, config.project)


def require_project(config: PipewatchConfig) -> tuple[str, str]:
    """
    Configured (organization, project).

    Raises:
        UserFacingError: If either is missing
    """
    if not config.organization or not config.project:
        raise UserFacingError(
            "No organization/project configured. "
            "Set PIPEWATCH_ORG and PIPEWATCH_PROJECT or add them to .pipewatch.json."
        )
    return config.organization, config.project


def parse_key_values(pairs: list[str] | None, option: str) -> dict[str, str]:
    """
    Parse repeated ``key=value`` options into a dict.

    Later occurrences of a key replace earlier ones. The value may contain
    ``=`` and may be empty.

    Example:
        >>> parse_key_values(["env=prod", "flags=a=b"], "--parameter")
        {'env': 'prod', 'flags': 'a=b'}

    Raises:
        UserFacingError: If an entry has no ``=`` or an empty key
    """
    result: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise UserFacingError(f"Invalid {option} value '{pair}'. Expected key=value.")
        result[key] = value
    return result
