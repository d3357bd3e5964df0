"""Shared fixtures for the ECS toolkit tests."""

from typing import Any

import pytest

from ecs_toolkit.core.deployments.aws_ecs.models import DeployContext, WatchOptions
from ecs_toolkit.core.models import ApplicationConfig

from .helpers import CLUSTER, FakeControlPlane


@pytest.fixture
def control_plane() -> FakeControlPlane:
    """Return an empty in-memory control plane."""
    return FakeControlPlane()


@pytest.fixture
def context() -> DeployContext:
    return DeployContext(cluster=CLUSTER)


@pytest.fixture
def sleeps() -> list[float]:
    """Collect the delays requested by watchers instead of sleeping."""
    return []


@pytest.fixture
def watch_options(sleeps: list[float]) -> WatchOptions:
    return WatchOptions(poll_interval=3.0, sleep=sleeps.append)


@pytest.fixture
def make_config():
    """Build an application config from plain data."""

    def _make(**overrides: Any) -> ApplicationConfig:
        data: dict[str, Any] = {"version": "v1", "cluster": CLUSTER}
        data.update(overrides)
        return ApplicationConfig.model_validate(data)

    return _make
