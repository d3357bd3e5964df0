"""Application configuration loading helpers."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ecs_toolkit.core.models import ApplicationConfig

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Configuration related errors."""


def load_config(path: Path | str) -> ApplicationConfig:
    """Load and validate the application configuration file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    config_path = Path(path)
    logger.info(f"using config file: {config_path}")
    if not config_path.is_file():
        raise ConfigError(f"Configuration file not found: {config_path}")

    logger.info(f"reading {config_path} config file")
    try:
        data: Any = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Unable to read {config_path} config file: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Unable to parse {config_path} config file: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {config_path} must contain a YAML mapping.")

    logger.debug(f"validating {config_path} config file")
    try:
        return ApplicationConfig.model_validate(data)
    except ValidationError as exc:
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"])
            logger.error(f"{location}: {error['msg'].lower()}")
        raise ConfigError(f"Unable to validate {config_path} config file: {exc}") from exc
