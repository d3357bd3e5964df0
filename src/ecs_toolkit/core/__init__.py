"""ECS toolkit core modules."""

from ecs_toolkit.core.models import ApplicationConfig, ServiceSpec, TaskGroup, TaskGroups
from ecs_toolkit.core.settings import ToolkitSettings, get_settings

__all__ = [
    "ApplicationConfig",
    "ServiceSpec",
    "TaskGroup",
    "TaskGroups",
    "ToolkitSettings",
    "get_settings",
]
