"""CLI state shared between commands."""

from dataclasses import dataclass
from pathlib import Path

from ecs_toolkit.cli.configuration.store import load_config
from ecs_toolkit.core.deployments.aws_ecs.models import WatchOptions
from ecs_toolkit.core.models import ApplicationConfig
from ecs_toolkit.core.settings import ToolkitSettings


@dataclass
class CliState:
    """Options resolved by the root command."""

    settings: ToolkitSettings
    config_path: Path

    def load_config(self) -> ApplicationConfig:
        """Load the application configuration this run points at.

        Raises:
            ConfigError: If the file is missing or invalid.
        """
        return load_config(self.config_path)

    def watch_options(self) -> WatchOptions:
        """Return watch behaviour derived from the settings."""
        return WatchOptions(
            poll_interval=self.settings.poll_interval_seconds,
            timeout=self.settings.watch_timeout_seconds,
            stable_min_delay=self.settings.stable_min_delay_seconds,
            stable_max_delay=self.settings.stable_max_delay_seconds,
        )
