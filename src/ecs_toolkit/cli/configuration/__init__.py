"""Application configuration package."""

from ecs_toolkit.cli.configuration.store import ConfigError, load_config

__all__ = [
    "ConfigError",
    "load_config",
]
