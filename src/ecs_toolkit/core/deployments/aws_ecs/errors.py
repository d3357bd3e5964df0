"""Errors raised while rolling out to ECS."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_toolkit.core.deployments.aws_ecs.models import StageResult


class DeploymentError(RuntimeError):
    """Base class for deployment errors."""


class ImageParseError(DeploymentError):
    """A container image reference could not be decomposed."""


class FetchError(DeploymentError):
    """A describe call against the control plane failed."""


class RegisterError(DeploymentError):
    """Registering a task definition revision failed."""


class UpdateError(DeploymentError):
    """Updating a service failed."""


class LaunchError(DeploymentError):
    """Running tasks failed."""


class NotFoundError(DeploymentError):
    """A service, task definition or task vanished."""


class DeploymentTimeoutError(DeploymentError):
    """A bounded wait ran out of time."""


class StabilizationTimeoutError(DeploymentTimeoutError):
    """A service did not become stable within its maximum wait."""


class WatchTimeoutError(DeploymentTimeoutError):
    """A watch loop exceeded its configured ceiling."""


class AggregateFailure(DeploymentError):
    """One or more units of a deployment stage failed.

    Carries the results of every stage that was started so callers can still
    report on them.
    """

    def __init__(self, message: str, results: "list[StageResult] | None" = None) -> None:
        super().__init__(message)
        self.results: list[StageResult] = list(results or [])
