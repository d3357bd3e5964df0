"""Runtime settings for the ECS toolkit."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ecs_toolkit.config.paths import DEFAULT_CONFIG_FILENAME, env_path

ENV_FILE_PATH = str(env_path())


class ToolkitSettings(BaseSettings):
    """Settings read from ``ECS_TOOLKIT_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ECS_TOOLKIT_",
        env_file=ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    aws_region: str | None = Field(default=None, description="AWS region")
    aws_profile: str | None = Field(default=None, description="Named AWS profile")
    config_path: str = Field(
        default=DEFAULT_CONFIG_FILENAME, description="Application config file"
    )
    log_level: str = Field(default="info", description="Log level")
    poll_interval_seconds: float = Field(
        default=3.0, gt=0, description="Delay between watch observations"
    )
    # Unset means watchers poll until the resource settles.
    watch_timeout_seconds: float | None = Field(
        default=None, gt=0, description="Upper bound on a single watch"
    )
    stable_min_delay_seconds: float = Field(
        default=5.0, gt=0, description="First delay between stability checks"
    )
    stable_max_delay_seconds: float = Field(
        default=120.0, gt=0, description="Largest delay between stability checks"
    )


def get_settings() -> ToolkitSettings:
    """Load and return the toolkit settings."""
    return ToolkitSettings()
