"""Shared filesystem paths for project configuration."""

from pathlib import Path

APP_NAME = "ecs-toolkit"
DEFAULT_CONFIG_FILENAME = ".ecs-toolkit.yml"
ENV_FILENAME = ".env"


def default_config_path() -> Path:
    """Return the application config file path in the working directory.

    Returns:
        The default application config file path.
    """
    return Path.cwd() / DEFAULT_CONFIG_FILENAME


def env_path() -> Path:
    """Return the env file path in the working directory.

    Returns:
        The env file path.
    """
    return Path.cwd() / ENV_FILENAME
