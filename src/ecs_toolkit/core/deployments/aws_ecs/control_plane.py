"""boto3 implementation of the control plane interface."""

import logging
import time
from collections.abc import Callable
from typing import Any, cast

from boto3.session import Session
from botocore.exceptions import BotoCoreError, ClientError

from ecs_toolkit.core.deployments.aws_ecs.errors import (
    FetchError,
    LaunchError,
    NotFoundError,
    RegisterError,
    StabilizationTimeoutError,
    UpdateError,
)
from ecs_toolkit.core.logging import TRACE
from ecs_toolkit.interfaces import ControlPlane

logger = logging.getLogger(__name__)

_SERVICE_GONE_CODES = {"ServiceNotFoundException", "ServiceNotActiveException"}
_INACTIVE_SERVICE_STATUSES = {"DRAINING", "INACTIVE"}


class EcsControlPlane(ControlPlane):
    """Control plane backed by the AWS ECS API."""

    def __init__(
        self,
        client: Any,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_session(cls, session: Session) -> "EcsControlPlane":
        """Create a control plane from a boto3 session."""
        return cls(session.client("ecs"))

    def describe_task_definition(
        self, reference: str
    ) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        try:
            response = self._client.describe_task_definition(
                taskDefinition=reference,
                include=["TAGS"],
            )
        except ClientError as exc:
            if _error_code(exc) == "ClientException":
                raise NotFoundError(f"Task definition {reference} not found: {exc}") from exc
            raise FetchError(f"Failed to fetch task definition {reference}: {exc}") from exc
        except BotoCoreError as exc:
            raise FetchError(f"Failed to fetch task definition {reference}: {exc}") from exc

        return (
            cast(dict[str, Any], response["taskDefinition"]),
            list(response.get("tags", [])),
        )

    def register_task_definition(self, request: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._client.register_task_definition(**request)
        except (ClientError, BotoCoreError) as exc:
            family = request.get("family", "unknown")
            raise RegisterError(f"Failed to register task definition {family}: {exc}") from exc
        return cast(dict[str, Any], response["taskDefinition"])

    def run_task(
        self, request: dict[str, Any]
    ) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        try:
            response = self._client.run_task(**request)
        except ClientError as exc:
            if _error_code(exc) == "ClusterNotFoundException":
                raise LaunchError(
                    f"ECS cluster '{request.get('cluster')}' is missing or inactive: {exc}"
                ) from exc
            raise LaunchError(f"Failed to run ECS task: {exc}") from exc
        except BotoCoreError as exc:
            raise LaunchError(f"Failed to run ECS task: {exc}") from exc
        return list(response.get("tasks", [])), list(response.get("failures", []))

    def describe_tasks(self, cluster: str, task_arns: list[str]) -> list[dict[str, Any]]:
        try:
            response = self._client.describe_tasks(cluster=cluster, tasks=task_arns)
        except (ClientError, BotoCoreError) as exc:
            raise FetchError(f"Failed to fetch task profile: {exc}") from exc
        return list(response.get("tasks", []))

    def describe_services(self, cluster: str, names: list[str]) -> list[dict[str, Any]]:
        try:
            response = self._client.describe_services(cluster=cluster, services=names)
        except (ClientError, BotoCoreError) as exc:
            raise FetchError(f"Failed to fetch service profile: {exc}") from exc
        return list(response.get("services", []))

    def update_service(self, request: dict[str, Any]) -> dict[str, Any]:
        service = request.get("service", "unknown")
        try:
            response = self._client.update_service(**request)
        except ClientError as exc:
            if _error_code(exc) in _SERVICE_GONE_CODES:
                raise NotFoundError(f"Service {service} not found or not active: {exc}") from exc
            raise UpdateError(f"Failed to update service {service}: {exc}") from exc
        except BotoCoreError as exc:
            raise UpdateError(f"Failed to update service {service}: {exc}") from exc
        return cast(dict[str, Any], response["service"])

    def wait_for_services_stable(
        self,
        cluster: str,
        names: list[str],
        max_wait: float,
        min_delay: float = 5.0,
        max_delay: float = 120.0,
    ) -> None:
        deadline = self._clock() + max_wait
        attempt = 0
        while True:
            attempt += 1
            services = self.describe_services(cluster, names)
            if _services_stable(names, services):
                logger.debug(f"services stable after {attempt} attempt(s): {', '.join(names)}")
                return

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise StabilizationTimeoutError(
                    f"Services {', '.join(names)} not stable after waiting {max_wait:.0f}s"
                )

            delay = min(compute_backoff(min_delay, max_delay, attempt), remaining)
            logger.log(TRACE, f"services not stable on attempt {attempt}; retrying in {delay:.1f}s")
            self._sleep(delay)


def compute_backoff(min_delay: float, max_delay: float, attempt: int) -> float:
    """Return the exponential delay for an attempt, bounded to the given range."""
    delay = min_delay * (2 ** max(0, attempt - 1))
    return max(min_delay, min(max_delay, delay))


def _services_stable(names: list[str], services: list[dict[str, Any]]) -> bool:
    """Evaluate the ECS ``services_stable`` waiter acceptors.

    Raises:
        NotFoundError: If a service is missing, draining or inactive.
    """
    found = {service.get("serviceName") for service in services}
    missing = [name for name in names if name not in found and not _matches_arn(name, services)]
    if missing:
        raise NotFoundError(f"Services not found: {', '.join(missing)}")

    for service in services:
        status = str(service.get("status", ""))
        if status in _INACTIVE_SERVICE_STATUSES:
            raise NotFoundError(
                f"Service {service.get('serviceName')} is {status.lower()}, no longer active"
            )

    return all(
        len(service.get("deployments", [])) == 1
        and service.get("runningCount") == service.get("desiredCount")
        for service in services
    )


def _matches_arn(name: str, services: list[dict[str, Any]]) -> bool:
    return any(service.get("serviceArn") == name for service in services)


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))
