"""
Configuration data models for pipewatch.

These models define the structure of .pipewatch.json and
~/.config/pipewatch/config.json files, with validation and type safety
via Pydantic.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pipewatch.core.hooks.models import HooksConfig


class WaitConfig(BaseModel):
    """
    Polling behavior for `pipewatch wait`.

    The interval starts at initial_interval_seconds and grows by
    interval_increment_seconds after every poll, up to max_interval_seconds.
    """
    initial_interval_seconds: int = Field(
        default=5,
        ge=1,
        description="Seconds to sleep after the first poll"
    )
    interval_increment_seconds: int = Field(
        default=5,
        ge=0,
        description="Seconds added to the interval after each poll"
    )
    max_interval_seconds: int = Field(
        default=30,
        ge=1,
        description="Upper bound for the interval"
    )

    @model_validator(mode="after")
    def check_bounds(self) -> "WaitConfig":
        """Ensure the cap is not below the starting interval."""
        if self.max_interval_seconds < self.initial_interval_seconds:
            raise ValueError("max_interval_seconds must be >= initial_interval_seconds")
        return self


class PipewatchConfig(BaseModel):
    """
    Top-level pipewatch configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = PipewatchConfig(organization="acme", project="widgets")
        >>> config.base_url
        'https://dev.azure.com'
    """
    organization: Optional[str] = Field(
        default=None,
        description="Default Azure DevOps organization for numeric build ids"
    )
    project: Optional[str] = Field(
        default=None,
        description="Default Azure DevOps project for numeric build ids"
    )
    base_url: str = Field(
        default="https://dev.azure.com",
        description="Azure DevOps service root"
    )
    token: Optional[str] = Field(
        default=None,
        description="Personal access token sent with API requests"
    )
    hooks: HooksConfig = Field(
        default_factory=HooksConfig,
        description="Lifecycle hooks"
    )
    wait: WaitConfig = Field(
        default_factory=WaitConfig,
        description="Wait loop polling"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,
    )
