"""ECS toolkit - roll out container image tags to Amazon ECS."""

from ecs_toolkit.core.deployments.aws_ecs.rollout import DeployOptions, run_deployment
from ecs_toolkit.core.models import ApplicationConfig
from ecs_toolkit.core.settings import ToolkitSettings, get_settings

__all__ = [
    "ApplicationConfig",
    "DeployOptions",
    "ToolkitSettings",
    "get_settings",
    "run_deployment",
]
