"""Roll out new task definitions to ECS services."""

import copy
from collections.abc import Callable
from typing import Any

from ecs_toolkit.core.deployments.aws_ecs.errors import (
    DeploymentError,
    NotFoundError,
    WatchTimeoutError,
)
from ecs_toolkit.core.deployments.aws_ecs.models import (
    DeployContext,
    DeploymentProgress,
    DeploymentUnit,
    Phase,
    UnitKind,
    WatchOptions,
)
from ecs_toolkit.core.deployments.aws_ecs.task_definitions import build_task_definition
from ecs_toolkit.core.models import ServiceSpec
from ecs_toolkit.interfaces import ControlPlane

# PRIMARY is the most recent deployment of a service. ACTIVE deployments
# still have running tasks that are being replaced by the PRIMARY one.
PRIMARY_DEPLOYMENT = "PRIMARY"
ACTIVE_DEPLOYMENT = "ACTIVE"
ROLLOUT_COMPLETED = "COMPLETED"

# Settings of a described service carried verbatim into the update request.
SERVICE_UPDATE_FIELDS = (
    "capacityProviderStrategy",
    "deploymentConfiguration",
    "desiredCount",
    "enableECSManagedTags",
    "enableExecuteCommand",
    "healthCheckGracePeriodSeconds",
    "loadBalancers",
    "networkConfiguration",
    "placementConstraints",
    "placementStrategy",
    "platformVersion",
    "propagateTags",
    "serviceRegistries",
)


def describe_service(control_plane: ControlPlane, cluster: str, name: str) -> dict[str, Any]:
    """Return the live description of a service.

    Raises:
        NotFoundError: If the service does not exist.
        FetchError: If the call fails.
    """
    services = control_plane.describe_services(cluster, [name])
    if not services:
        raise NotFoundError(f"service {name} not found in cluster {cluster}")
    return services[0]


def build_update_service_request(
    cluster: str,
    service: dict[str, Any],
    task_definition: str,
    force: bool,
) -> dict[str, Any]:
    """Build an update request that only changes the task definition.

    Empty lists are left out so the service keeps its current settings.
    """
    request: dict[str, Any] = {
        "cluster": service.get("clusterArn") or cluster,
        "service": service["serviceName"],
        "taskDefinition": task_definition,
        "forceNewDeployment": force,
    }
    for key in SERVICE_UPDATE_FIELDS:
        value = service.get(key)
        if value is None or value == []:
            continue
        request[key] = copy.deepcopy(value)
    return request


def rollout_complete(deployments: list[dict[str, Any]]) -> bool:
    """Return whether the primary deployment is the only one left.

    A completed primary is not enough while an older deployment is still
    draining.
    """
    has_completed_primary = any(
        deployment.get("status") == PRIMARY_DEPLOYMENT
        and deployment.get("rolloutState") == ROLLOUT_COMPLETED
        for deployment in deployments
    )
    has_active_deployment = any(
        deployment.get("status") == ACTIVE_DEPLOYMENT for deployment in deployments
    )
    return has_completed_primary and not has_active_deployment


def watch_service(
    control_plane: ControlPlane,
    cluster: str,
    name: str,
    context: DeployContext,
    options: WatchOptions = WatchOptions(),
    on_progress: Callable[[DeploymentProgress], None] | None = None,
) -> int:
    """Poll a service until its new deployment is the only one left.

    Returns:
        The number of observations made.

    Raises:
        NotFoundError: If the service disappears.
        FetchError: If the service cannot be described.
        WatchTimeoutError: If ``options.timeout`` is set and runs out.
    """
    log = context.logger
    started = options.clock()
    observations = 0

    while True:
        service = describe_service(control_plane, cluster, name)
        observations += 1
        deployments = list(service.get("deployments", []))
        service_status = str(service.get("status", "UNKNOWN")).lower()

        for deployment in deployments:
            progress = DeploymentProgress(
                deployment_id=str(deployment.get("id", "unknown")),
                status=str(deployment.get("status", "UNKNOWN")),
                rollout_state=str(deployment.get("rolloutState", "UNKNOWN")),
                running=int(deployment.get("runningCount", 0)),
                desired=int(deployment.get("desiredCount", 0)),
                pending=int(deployment.get("pendingCount", 0)),
            )
            context.with_deployment(progress.deployment_id).logger.info(
                f"watching ... service: {service_status}, "
                f"deployment: {progress.status.lower()}, "
                f"rollout: {progress.running}/{progress.desired} ({progress.pending} pending)"
            )
            if on_progress is not None:
                on_progress(progress)

        if rollout_complete(deployments):
            log.debug("primary deployment completed, no active deployment")
            return observations

        if options.timeout is not None and options.clock() - started >= options.timeout:
            raise WatchTimeoutError(
                f"service {name} rollout not complete after {options.timeout:.0f}s"
            )
        options.sleep(options.poll_interval)


def deploy_service(
    control_plane: ControlPlane,
    cluster: str,
    spec: ServiceSpec,
    image_tag: str,
    context: DeployContext,
    options: WatchOptions = WatchOptions(),
) -> DeploymentUnit:
    """Update one service to the new image tag and wait until it is stable.

    The service is skipped when its task definition needs no change and no
    new deployment is forced. Errors are recorded on the returned unit.
    """
    unit = DeploymentUnit(kind=UnitKind.SERVICE, name=spec.name)
    unit_context = context.for_unit(UnitKind.SERVICE, spec.name)
    log = unit_context.logger

    try:
        unit.advance(Phase.BUILDING)
        log.debug("fetching service profile")
        service = describe_service(control_plane, cluster, spec.name)
        current_task_definition = str(service["taskDefinition"])

        new_task_definition, changed = build_task_definition(
            control_plane,
            current_task_definition,
            image_tag,
            spec.containers,
            unit_context,
        )
        if changed and new_task_definition is not None:
            log.info("updated task definition, using new one")
            unit.task_definition = str(new_task_definition["taskDefinitionArn"])
        elif spec.force_new_deployment:
            log.info("no changes to previous task definition, forcing new deployment")
            unit.task_definition = current_task_definition
        else:
            log.warning("skipping service update, no changes to task definition")
            unit.task_definition = current_task_definition
            unit.skip("no changes to task definition")
            return unit

        unit.advance(Phase.UPDATING)
        if spec.force_new_deployment:
            log.debug("setting forced deploy")
        request = build_update_service_request(
            cluster, service, unit.task_definition, spec.force_new_deployment
        )
        log.debug("attempting to update service")
        control_plane.update_service(request)
        log.info("updated service successfully")

        unit.advance(Phase.WATCHING)
        log.info("watch service rollout progress")
        watch_service(control_plane, cluster, spec.name, unit_context, options)

        unit.advance(Phase.STABILIZING)
        log.info(f"checking if service is stable, waiting up to {spec.max_wait_seconds / 60:.0f}m")
        control_plane.wait_for_services_stable(
            cluster,
            [spec.name],
            spec.max_wait_seconds,
            min_delay=options.stable_min_delay,
            max_delay=options.stable_max_delay,
        )
    except DeploymentError as exc:
        log.error(f"unable to deploy service: {exc}")
        unit.fail(exc)
        return unit

    log.info("service is stable")
    unit.succeed()
    return unit
