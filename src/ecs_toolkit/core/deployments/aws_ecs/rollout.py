"""Coordinate a deployment across task groups and services.

A deployment runs three stages in order: pre-deployment tasks, services and
post-deployment tasks. Units inside a stage run concurrently, one thread per
unit, and a failing unit never cancels its siblings. Each worker returns a
``DeploymentUnit``; only the coordinating thread aggregates them.
"""

from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TypeVar

from ecs_toolkit.core.deployments.aws_ecs.ecs_tasks import deploy_task_group
from ecs_toolkit.core.deployments.aws_ecs.errors import AggregateFailure
from ecs_toolkit.core.deployments.aws_ecs.models import (
    BatchResult,
    DeployContext,
    DeploymentReport,
    DeploymentUnit,
    Stage,
    StageResult,
    UnitKind,
    WatchOptions,
)
from ecs_toolkit.core.deployments.aws_ecs.services import deploy_service
from ecs_toolkit.core.models import ApplicationConfig, ServiceSpec, TaskGroup
from ecs_toolkit.interfaces import ControlPlane

T = TypeVar("T")


@dataclass(frozen=True)
class DeployOptions:
    """Options for one deployment run."""

    skip_pre_tasks: bool = False
    skip_post_tasks: bool = False
    halt_on_failure: bool = True
    watch: WatchOptions = field(default_factory=WatchOptions)


def run_stage(
    stage: Stage,
    items: Sequence[T],
    kind: UnitKind,
    name_of: Callable[[T], str],
    worker: Callable[[T], DeploymentUnit],
    context: DeployContext,
) -> StageResult:
    """Run one worker per item concurrently and aggregate their units.

    Raises:
        AggregateFailure: If any unit failed, once every unit has finished.
    """
    log = context.logger
    if not items:
        log.warning(f"skipping rollout of {stage.label}, none found")
        return StageResult(stage=stage, batch=BatchResult())

    log.info(f"starting rollout of {stage.label}")
    with ThreadPoolExecutor(
        max_workers=len(items),
        thread_name_prefix=f"deploy-{stage.value}",
    ) as executor:
        futures = [(item, executor.submit(worker, item)) for item in items]
        units = [_collect(future, kind, name_of(item), context) for item, future in futures]

    batch = BatchResult.from_units(units)
    log.info(f"{stage.label} report - {batch.summary()}")
    result = StageResult(stage=stage, batch=batch, units=units)
    if not batch.ok:
        raise AggregateFailure(f"unable to deploy all {stage.label}", [result])

    log.info(f"completed rollout of {stage.label}")
    return result


def _collect(
    future: "Future[DeploymentUnit]",
    kind: UnitKind,
    name: str,
    context: DeployContext,
) -> DeploymentUnit:
    """Wait for a worker and turn an unexpected crash into a failed unit."""
    try:
        return future.result()
    except Exception as exc:  # noqa: BLE001
        context.for_unit(kind, name).logger.exception(f"unexpected error during rollout: {exc}")
        unit = DeploymentUnit(kind=kind, name=name)
        unit.fail(exc)
        return unit


def deploy_tasks(
    control_plane: ControlPlane,
    config: ApplicationConfig,
    image_tag: str,
    stage: Stage,
    options: WatchOptions = WatchOptions(),
) -> StageResult:
    """Run the pre- or post-deployment task groups.

    Raises:
        ValueError: If ``stage`` is not a task stage.
        AggregateFailure: If any task group failed.
    """
    if stage is Stage.PRE_TASKS:
        task_groups = config.tasks.pre
    elif stage is Stage.POST_TASKS:
        task_groups = config.tasks.post
    else:
        raise ValueError(f"{stage.value} is not a task stage")

    context = DeployContext(cluster=config.cluster)

    def _worker(task_group: TaskGroup) -> DeploymentUnit:
        return deploy_task_group(
            control_plane, config.cluster, task_group, image_tag, context, options
        )

    return run_stage(
        stage,
        task_groups,
        UnitKind.TASK,
        lambda task_group: task_group.family,
        _worker,
        context,
    )


def deploy_services(
    control_plane: ControlPlane,
    config: ApplicationConfig,
    image_tag: str,
    options: WatchOptions = WatchOptions(),
) -> StageResult:
    """Roll out every configured service.

    Raises:
        AggregateFailure: If any service failed.
    """
    context = DeployContext(cluster=config.cluster)

    def _worker(spec: ServiceSpec) -> DeploymentUnit:
        return deploy_service(control_plane, config.cluster, spec, image_tag, context, options)

    return run_stage(
        Stage.SERVICES,
        config.services,
        UnitKind.SERVICE,
        lambda spec: spec.name,
        _worker,
        context,
    )


def run_deployment(
    control_plane: ControlPlane,
    config: ApplicationConfig,
    image_tag: str,
    options: DeployOptions = DeployOptions(),
) -> DeploymentReport:
    """Deploy an image tag through every stage in order.

    With ``halt_on_failure`` a failed stage stops later stages from starting;
    otherwise later stages still run and the failure is raised at the end.

    Raises:
        AggregateFailure: If any stage failed. Its ``results`` hold every
            stage that ran.
    """
    log = DeployContext(cluster=config.cluster).logger
    stages: list[tuple[Stage, Callable[[], StageResult]]] = []
    if not options.skip_pre_tasks:
        stages.append(
            (
                Stage.PRE_TASKS,
                lambda: deploy_tasks(
                    control_plane, config, image_tag, Stage.PRE_TASKS, options.watch
                ),
            )
        )
    else:
        log.info("skipping pre-deployment tasks")
    stages.append(
        (Stage.SERVICES, lambda: deploy_services(control_plane, config, image_tag, options.watch))
    )
    if not options.skip_post_tasks:
        stages.append(
            (
                Stage.POST_TASKS,
                lambda: deploy_tasks(
                    control_plane, config, image_tag, Stage.POST_TASKS, options.watch
                ),
            )
        )
    else:
        log.info("skipping post-deployment tasks")

    report = DeploymentReport()
    failed_stages: list[Stage] = []
    for stage, run in stages:
        try:
            report.stages.append(run())
        except AggregateFailure as exc:
            report.stages.extend(exc.results)
            failed_stages.append(stage)
            if options.halt_on_failure:
                log.error(f"halting deployment, {stage.label} failed")
                break
            log.warning(f"continuing deployment despite failed {stage.label}")

    if failed_stages:
        labels = ", ".join(stage.label for stage in failed_stages)
        raise AggregateFailure(f"deployment failed: unable to deploy all {labels}", report.stages)

    log.info(f"deployed image tag {image_tag}")
    return report
