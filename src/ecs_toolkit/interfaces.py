"""Abstract interfaces for the container control plane.

The rollout engine only talks to the cluster through ``ControlPlane``. The
AWS implementation lives in ``ecs_toolkit.core.deployments.aws_ecs``; tests
provide an in-memory one.

Request and response payloads use the ECS API shapes (camelCase keys), so a
boto3 client can be wrapped without translation.
"""

from abc import ABC, abstractmethod
from typing import Any


class ControlPlane(ABC):
    """Interface for the calls a rollout needs from the control plane."""

    @abstractmethod
    def describe_task_definition(self, reference: str) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        """Return a task definition revision and its tags.

        Raises:
            NotFoundError: If the revision does not exist.
            FetchError: If the call fails.
        """
        raise NotImplementedError

    @abstractmethod
    def register_task_definition(self, request: dict[str, Any]) -> dict[str, Any]:
        """Register a new task definition revision and return it.

        Raises:
            RegisterError: If the call fails.
        """
        raise NotImplementedError

    @abstractmethod
    def run_task(self, request: dict[str, Any]) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        """Start tasks and return the started tasks and any placement failures.

        Raises:
            LaunchError: If the call fails.
        """
        raise NotImplementedError

    @abstractmethod
    def describe_tasks(self, cluster: str, task_arns: list[str]) -> list[dict[str, Any]]:
        """Return the tasks that still exist.

        Raises:
            FetchError: If the call fails.
        """
        raise NotImplementedError

    @abstractmethod
    def describe_services(self, cluster: str, names: list[str]) -> list[dict[str, Any]]:
        """Return the services that exist.

        Raises:
            FetchError: If the call fails.
        """
        raise NotImplementedError

    @abstractmethod
    def update_service(self, request: dict[str, Any]) -> dict[str, Any]:
        """Update a service and return its new description.

        Raises:
            NotFoundError: If the service does not exist.
            UpdateError: If the call fails.
        """
        raise NotImplementedError

    @abstractmethod
    def wait_for_services_stable(
        self,
        cluster: str,
        names: list[str],
        max_wait: float,
        min_delay: float = 5.0,
        max_delay: float = 120.0,
    ) -> None:
        """Block until the services are stable or ``max_wait`` seconds pass.

        Raises:
            StabilizationTimeoutError: If the services did not stabilise in time.
            NotFoundError: If a service disappeared or became inactive.
            FetchError: If a describe call fails.
        """
        raise NotImplementedError
