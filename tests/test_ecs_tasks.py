"""Tests for running and watching one-off tasks."""

import pytest

from ecs_toolkit.core.deployments.aws_ecs.ecs_tasks import (
    build_run_task_request,
    deploy_task_group,
    run_task,
    watch_task,
)
from ecs_toolkit.core.deployments.aws_ecs.errors import LaunchError, WatchTimeoutError
from ecs_toolkit.core.deployments.aws_ecs.models import (
    Outcome,
    Phase,
    TaskHandle,
    WatchOptions,
)
from ecs_toolkit.core.models import TaskGroup

from .helpers import CLUSTER, REGISTRY, FakeControlPlane, running_task, stopped_task

TASK_ARN = f"arn:aws:ecs:us-east-1:123456789012:task/{CLUSTER}/0123456789abcdef"


def _task_group(**overrides) -> TaskGroup:
    data = {"family": "migrate", "containers": ["app"], "count": 1}
    data.update(overrides)
    return TaskGroup.model_validate(data)


def _script(control_plane: FakeControlPlane, *observations) -> TaskHandle:
    control_plane.task_observations[TASK_ARN] = list(observations)
    return TaskHandle(arn=TASK_ARN, number=1)


def test_watch_task_fails_when_any_container_exits_non_zero(
    control_plane: FakeControlPlane, context, watch_options
) -> None:
    handle = _script(control_plane, stopped_task(0, 1))

    outcome = watch_task(control_plane, CLUSTER, handle, context, watch_options)

    assert outcome.succeeded is False
    assert outcome.reason.startswith("prematurely stopped task [1]")


def test_watch_task_succeeds_when_all_containers_exit_zero(
    control_plane: FakeControlPlane, context, watch_options
) -> None:
    handle = _script(control_plane, stopped_task(0, 0))

    outcome = watch_task(control_plane, CLUSTER, handle, context, watch_options)

    assert outcome.succeeded is True


def test_watch_task_treats_missing_exit_code_as_failure(
    control_plane: FakeControlPlane, context, watch_options
) -> None:
    handle = _script(control_plane, stopped_task(0, None))

    assert watch_task(control_plane, CLUSTER, handle, context, watch_options).succeeded is False


def test_watch_task_polls_until_stopped(
    control_plane: FakeControlPlane, context, watch_options, sleeps
) -> None:
    handle = _script(control_plane, running_task(), running_task(), stopped_task(0))
    observed = []

    outcome = watch_task(
        control_plane, CLUSTER, handle, context, watch_options, on_progress=observed.append
    )

    assert outcome.succeeded is True
    assert [progress.last_status for progress in observed] == ["RUNNING", "RUNNING", "STOPPED"]
    assert sleeps == [3.0, 3.0]


def test_watch_task_fails_when_task_disappears(
    control_plane: FakeControlPlane, context, watch_options
) -> None:
    handle = _script(control_plane, running_task(), None)

    outcome = watch_task(control_plane, CLUSTER, handle, context, watch_options)

    assert outcome.succeeded is False
    assert outcome.reason == "task not found"


def test_watch_task_honours_timeout(control_plane: FakeControlPlane, context) -> None:
    handle = _script(control_plane, running_task())
    ticks = iter([0.0, 5.0, 11.0])
    options = WatchOptions(timeout=10.0, sleep=lambda _: None, clock=lambda: next(ticks))

    with pytest.raises(WatchTimeoutError):
        watch_task(control_plane, CLUSTER, handle, context, options)


def test_build_run_task_request_with_launch_type_and_network() -> None:
    task_group = _task_group(
        count=2,
        launch_type="fargate",
        network_configuration={
            "vpc_configuration": {
                "assign_public_ip": True,
                "security_groups": ["sg-1"],
                "subnets": ["subnet-1", "subnet-2"],
            }
        },
    )

    request = build_run_task_request(CLUSTER, task_group, "migrate:4")

    assert request["launchType"] == "FARGATE"
    assert request["count"] == 2
    assert request["taskDefinition"] == "migrate:4"
    assert "capacityProviderStrategy" not in request
    assert request["networkConfiguration"] == {
        "awsvpcConfiguration": {
            "subnets": ["subnet-1", "subnet-2"],
            "securityGroups": ["sg-1"],
            "assignPublicIp": "ENABLED",
        }
    }


def test_build_run_task_request_with_capacity_providers() -> None:
    task_group = _task_group(
        capacity_provider_strategies=[{"capacity_provider": "FARGATE_SPOT", "base": 1, "weight": 2}]
    )

    request = build_run_task_request(CLUSTER, task_group, "migrate")

    assert request["capacityProviderStrategy"] == [
        {"capacityProvider": "FARGATE_SPOT", "base": 1, "weight": 2}
    ]
    assert "launchType" not in request
    assert "networkConfiguration" not in request


def test_run_task_raises_on_placement_failures(control_plane: FakeControlPlane, context) -> None:
    control_plane.launch_failures["migrate"] = [{"reason": "RESOURCE:MEMORY", "arn": "arn"}]

    with pytest.raises(LaunchError, match="RESOURCE:MEMORY"):
        run_task(control_plane, CLUSTER, _task_group(), "migrate", context)


def test_run_task_numbers_handles(control_plane: FakeControlPlane, context) -> None:
    handles = run_task(control_plane, CLUSTER, _task_group(count=3), "migrate", context)

    assert [handle.number for handle in handles] == [1, 2, 3]
    assert handles[0].task_id == "migrate0001"


def test_deploy_task_group_registers_runs_and_watches(
    control_plane: FakeControlPlane, context, watch_options
) -> None:
    control_plane.add_task_definition("migrate", [{"name": "app", "image": f"{REGISTRY}/app:old"}])

    unit = deploy_task_group(
        control_plane, CLUSTER, _task_group(count=2), "new", context, watch_options
    )

    assert unit.outcome is Outcome.SUCCEEDED
    assert unit.phase is Phase.COMPLETED
    assert unit.task_definition.endswith("task-definition/migrate:2")
    [request] = control_plane.run_requests
    assert request["taskDefinition"] == unit.task_definition


def test_deploy_task_group_reuses_family_when_unchanged(
    control_plane: FakeControlPlane, context, watch_options
) -> None:
    control_plane.add_task_definition("migrate", [{"name": "app", "image": f"{REGISTRY}/app:new"}])

    unit = deploy_task_group(control_plane, CLUSTER, _task_group(), "new", context, watch_options)

    assert unit.outcome is Outcome.SUCCEEDED
    assert control_plane.registered == []
    assert control_plane.run_requests[0]["taskDefinition"] == "migrate"


def test_deploy_task_group_fails_when_one_task_fails(
    control_plane: FakeControlPlane, context, watch_options
) -> None:
    control_plane.add_task_definition("migrate", [{"name": "app", "image": f"{REGISTRY}/app:old"}])
    control_plane.task_scripts["migrate"] = [stopped_task(2)]

    unit = deploy_task_group(
        control_plane, CLUSTER, _task_group(count=2), "new", context, watch_options
    )

    assert unit.outcome is Outcome.FAILED
    assert "2 of 2 tasks failed" in unit.error


def test_deploy_task_group_records_launch_error(
    control_plane: FakeControlPlane, context, watch_options
) -> None:
    control_plane.add_task_definition("migrate", [{"name": "app", "image": f"{REGISTRY}/app:old"}])
    control_plane.launch_failures["migrate"] = [{"reason": "MISSING"}]

    unit = deploy_task_group(control_plane, CLUSTER, _task_group(), "new", context, watch_options)

    assert unit.outcome is Outcome.FAILED
    assert "MISSING" in unit.error
