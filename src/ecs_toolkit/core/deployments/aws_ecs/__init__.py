"""AWS ECS rollout helpers."""

from ecs_toolkit.core.deployments.aws_ecs.control_plane import EcsControlPlane, compute_backoff
from ecs_toolkit.core.deployments.aws_ecs.ecs_tasks import (
    build_run_task_request,
    deploy_task_group,
    run_task,
    watch_task,
    watch_tasks,
)
from ecs_toolkit.core.deployments.aws_ecs.errors import (
    AggregateFailure,
    DeploymentError,
    DeploymentTimeoutError,
    FetchError,
    ImageParseError,
    LaunchError,
    NotFoundError,
    RegisterError,
    StabilizationTimeoutError,
    UpdateError,
    WatchTimeoutError,
)
from ecs_toolkit.core.deployments.aws_ecs.iam import generate_iam_policy, render_iam_policy
from ecs_toolkit.core.deployments.aws_ecs.images import (
    ImageReference,
    parse_image_reference,
    rewrite_tag,
)
from ecs_toolkit.core.deployments.aws_ecs.models import (
    BatchResult,
    DeployContext,
    DeploymentReport,
    DeploymentUnit,
    Outcome,
    Phase,
    Stage,
    StageResult,
    UnitKind,
    WatchOptions,
)
from ecs_toolkit.core.deployments.aws_ecs.rollout import (
    DeployOptions,
    deploy_services,
    deploy_tasks,
    run_deployment,
)
from ecs_toolkit.core.deployments.aws_ecs.services import (
    build_update_service_request,
    deploy_service,
    watch_service,
)
from ecs_toolkit.core.deployments.aws_ecs.session import create_session, get_identity
from ecs_toolkit.core.deployments.aws_ecs.task_definitions import (
    build_task_definition,
    prepare_registration,
)

__all__ = [
    "AggregateFailure",
    "BatchResult",
    "DeployContext",
    "DeployOptions",
    "DeploymentError",
    "DeploymentReport",
    "DeploymentTimeoutError",
    "DeploymentUnit",
    "EcsControlPlane",
    "FetchError",
    "ImageParseError",
    "ImageReference",
    "LaunchError",
    "NotFoundError",
    "Outcome",
    "Phase",
    "RegisterError",
    "StabilizationTimeoutError",
    "Stage",
    "StageResult",
    "UnitKind",
    "UpdateError",
    "WatchOptions",
    "WatchTimeoutError",
    "build_run_task_request",
    "build_task_definition",
    "build_update_service_request",
    "compute_backoff",
    "create_session",
    "deploy_service",
    "deploy_services",
    "deploy_task_group",
    "deploy_tasks",
    "generate_iam_policy",
    "get_identity",
    "parse_image_reference",
    "prepare_registration",
    "render_iam_policy",
    "rewrite_tag",
    "run_deployment",
    "run_task",
    "watch_service",
    "watch_task",
    "watch_tasks",
]
