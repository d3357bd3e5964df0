"""Run one-off ECS tasks and watch them to completion."""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from ecs_toolkit.core.deployments.aws_ecs.errors import (
    DeploymentError,
    LaunchError,
    WatchTimeoutError,
)
from ecs_toolkit.core.deployments.aws_ecs.models import (
    DeployContext,
    DeploymentUnit,
    Phase,
    TaskHandle,
    TaskOutcome,
    TaskProgress,
    UnitKind,
    WatchOptions,
)
from ecs_toolkit.core.deployments.aws_ecs.task_definitions import build_task_definition
from ecs_toolkit.core.models import TaskGroup
from ecs_toolkit.interfaces import ControlPlane

STOPPED_STATUS = "STOPPED"

LAUNCH_TYPES = {
    "ec2": "EC2",
    "fargate": "FARGATE",
    "external": "EXTERNAL",
}


def build_run_task_request(
    cluster: str,
    task_group: TaskGroup,
    task_definition: str,
) -> dict[str, Any]:
    """Build the run-task request for a task group.

    Capacity provider strategy and launch type are exclusive; the config
    models guarantee that only one of them is set.
    """
    request: dict[str, Any] = {
        "cluster": cluster,
        "taskDefinition": task_definition,
        "count": task_group.count,
        "enableECSManagedTags": True,
        "enableExecuteCommand": False,
        "propagateTags": "TASK_DEFINITION",
    }

    if task_group.capacity_provider_strategies:
        request["capacityProviderStrategy"] = [
            {
                "capacityProvider": strategy.capacity_provider,
                "base": strategy.base,
                "weight": strategy.weight,
            }
            for strategy in task_group.capacity_provider_strategies
        ]

    if task_group.launch_type is not None:
        request["launchType"] = LAUNCH_TYPES[task_group.launch_type]

    if task_group.network_configuration is not None:
        vpc = task_group.network_configuration.vpc_configuration
        request["networkConfiguration"] = {
            "awsvpcConfiguration": {
                "subnets": list(vpc.subnets),
                "securityGroups": list(vpc.security_groups),
                "assignPublicIp": "ENABLED" if vpc.assign_public_ip else "DISABLED",
            }
        }

    return request


def run_task(
    control_plane: ControlPlane,
    cluster: str,
    task_group: TaskGroup,
    task_definition: str,
    context: DeployContext,
) -> list[TaskHandle]:
    """Start the desired number of tasks for a task group.

    Raises:
        LaunchError: If the request is rejected or any task cannot be placed.
    """
    log = context.logger
    log.info("preparing running task parameters")
    request = build_run_task_request(cluster, task_group, task_definition)

    log.debug(f"attempting to run new task, desired count: {task_group.count}")
    tasks, failures = control_plane.run_task(request)
    if failures:
        reasons = ", ".join(
            f"{failure.get('reason', 'unknown')}"
            + (f" ({failure['detail']})" if failure.get("detail") else "")
            for failure in failures
        )
        raise LaunchError(f"unable to place {len(failures)} task(s): {reasons}")
    if not tasks:
        raise LaunchError(f"no tasks started, desired count: {task_group.count}")

    log.info(f"running new task, desired count: {task_group.count}")
    return [TaskHandle(arn=str(task["taskArn"]), number=index) for index, task in enumerate(tasks, 1)]


def watch_task(
    control_plane: ControlPlane,
    cluster: str,
    handle: TaskHandle,
    context: DeployContext,
    options: WatchOptions = WatchOptions(),
    on_progress: Callable[[TaskProgress], None] | None = None,
) -> TaskOutcome:
    """Poll a task until it stops and judge it by its container exit codes.

    A task that disappears while being watched counts as failed.

    Raises:
        FetchError: If the task cannot be described.
        WatchTimeoutError: If ``options.timeout`` is set and runs out.
    """
    log = context.with_task(handle.task_id).logger
    started = options.clock()

    while True:
        tasks = control_plane.describe_tasks(cluster, [handle.arn])
        if not tasks:
            log.error(f"stopped watching task [{handle.number}], task not found")
            return TaskOutcome(handle=handle, succeeded=False, reason="task not found")
        task = tasks[0]

        progress = TaskProgress(
            handle=handle,
            last_status=str(task.get("lastStatus", "UNKNOWN")),
            desired_status=str(task.get("desiredStatus", "UNKNOWN")),
            health=str(task.get("healthStatus", "UNKNOWN")),
        )
        log.info(
            f"watching task [{handle.number}] ... last status: {progress.last_status.lower()}, "
            f"desired status: {progress.desired_status.lower()}, health: {progress.health.lower()}"
        )
        if on_progress is not None:
            on_progress(progress)

        # Tasks progress from PENDING through RUNNING to STOPPED on their own.
        if progress.last_status == STOPPED_STATUS:
            return stopped_task_outcome(handle, task, context)

        if options.timeout is not None and options.clock() - started >= options.timeout:
            raise WatchTimeoutError(
                f"task [{handle.number}] {handle.task_id} not stopped after {options.timeout:.0f}s"
            )
        options.sleep(options.poll_interval)


def stopped_task_outcome(
    handle: TaskHandle,
    task: dict[str, Any],
    context: DeployContext,
) -> TaskOutcome:
    """Judge a stopped task by the exit codes of its containers.

    Any non-zero exit code, or a container that never reported one, fails
    the task.
    """
    log = context.with_task(handle.task_id).logger
    failed = False
    for container in task.get("containers", []):
        name = str(container.get("name", "unknown")).lower()
        exit_code = container.get("exitCode")
        reason = str(container.get("reason", "none")).lower()
        if exit_code != 0:
            failed = True
        log.debug(
            f"stopped task [{handle.number}] container [{name}] ... "
            f"exit code: {'none' if exit_code is None else exit_code}, reason: {reason}"
        )

    message = (
        f"stopped task [{handle.number}], reason: {str(task.get('stoppedReason', 'none')).lower()}"
    )
    if failed:
        log.error(f"prematurely {message}")
        return TaskOutcome(handle=handle, succeeded=False, reason=f"prematurely {message}")

    log.info(f"successfully {message}")
    return TaskOutcome(handle=handle, succeeded=True, reason=message)


def watch_tasks(
    control_plane: ControlPlane,
    cluster: str,
    handles: list[TaskHandle],
    context: DeployContext,
    options: WatchOptions = WatchOptions(),
) -> list[TaskOutcome]:
    """Watch every launched task concurrently, one thread per task."""
    if not handles:
        return []

    def _watch(handle: TaskHandle) -> TaskOutcome:
        try:
            return watch_task(control_plane, cluster, handle, context, options)
        except DeploymentError as exc:
            context.with_task(handle.task_id).logger.error(f"unable to watch task: {exc}")
            return TaskOutcome(handle=handle, succeeded=False, reason=str(exc))

    with ThreadPoolExecutor(
        max_workers=len(handles),
        thread_name_prefix=f"watch-{context.unit_name or 'task'}",
    ) as executor:
        futures = [executor.submit(_watch, handle) for handle in handles]
        return [future.result() for future in futures]


def deploy_task_group(
    control_plane: ControlPlane,
    cluster: str,
    task_group: TaskGroup,
    image_tag: str,
    context: DeployContext,
    options: WatchOptions = WatchOptions(),
) -> DeploymentUnit:
    """Build, run and watch one task group.

    Errors are recorded on the returned unit instead of being raised.
    """
    unit = DeploymentUnit(kind=UnitKind.TASK, name=task_group.family)
    unit_context = context.for_unit(UnitKind.TASK, task_group.family)
    log = unit_context.logger

    try:
        unit.advance(Phase.BUILDING)
        new_task_definition, changed = build_task_definition(
            control_plane,
            task_group.family,
            image_tag,
            task_group.containers,
            unit_context,
        )
        if changed and new_task_definition is not None:
            log.info("updated task definition, using new one")
            unit.task_definition = str(new_task_definition["taskDefinitionArn"])
        else:
            log.info("no changes to previous task definition, using latest")
            unit.task_definition = task_group.family

        unit.advance(Phase.LAUNCHING)
        handles = run_task(control_plane, cluster, task_group, unit.task_definition, unit_context)

        unit.advance(Phase.WATCHING)
        outcomes = watch_tasks(control_plane, cluster, handles, unit_context, options)
    except DeploymentError as exc:
        log.error(f"unable to deploy task: {exc}")
        unit.fail(exc)
        return unit

    failures = [outcome for outcome in outcomes if not outcome.succeeded]
    if failures:
        detail = "; ".join(f"[{outcome.handle.number}] {outcome.reason}" for outcome in failures)
        log.error(f"unable to run all tasks, {len(failures)} of {len(outcomes)} failed")
        unit.fail(f"{len(failures)} of {len(outcomes)} tasks failed: {detail}")
        return unit

    log.info(f"tasks ran to completion, desired count: {task_group.count}")
    unit.succeed()
    return unit
