"""Build new task definition revisions with updated container images."""

import copy
from collections.abc import Iterable
from typing import Any

from ecs_toolkit.core.deployments.aws_ecs.images import parse_image_reference, rewrite_tag
from ecs_toolkit.core.deployments.aws_ecs.models import DeployContext
from ecs_toolkit.interfaces import ControlPlane

# Fields of a described revision that are carried verbatim into the
# registration request for the next revision.
REGISTRATION_FIELDS = (
    "containerDefinitions",
    "family",
    "cpu",
    "memory",
    "ephemeralStorage",
    "executionRoleArn",
    "inferenceAccelerators",
    "ipcMode",
    "networkMode",
    "pidMode",
    "placementConstraints",
    "proxyConfiguration",
    "requiresCompatibilities",
    "runtimePlatform",
    "taskRoleArn",
    "volumes",
)


def revision_label(task_definition: dict[str, Any]) -> str:
    """Return ``family:revision`` for a task definition."""
    return f"{task_definition.get('family')}:{task_definition.get('revision')}"


def prepare_registration(
    task_definition: dict[str, Any],
    tags: list[dict[str, Any]],
    image_tag: str,
    containers: Iterable[str],
    context: DeployContext,
) -> tuple[dict[str, Any], bool]:
    """Derive a registration request from an existing revision.

    Only the ``image`` of updatable containers whose tag differs from
    ``image_tag`` is changed; everything else is a deep copy of the source.

    Args:
        task_definition: Described task definition revision.
        tags: Tags attached to the revision.
        image_tag: Tag to point updatable containers at.
        containers: Names of containers that may be updated.
        context: Logging context for the unit being deployed.

    Returns:
        The registration request and whether any image changed.

    Raises:
        ImageParseError: If an updatable container has a malformed or
            digest-pinned image.
    """
    request: dict[str, Any] = {
        key: copy.deepcopy(task_definition[key])
        for key in REGISTRATION_FIELDS
        if task_definition.get(key) is not None
    }
    # Registering with an empty tag list is rejected, so only copy real tags.
    if tags:
        request["tags"] = copy.deepcopy(tags)

    updatable = set(containers)
    changed = False
    for container_definition in request.get("containerDefinitions", []):
        container_name = str(container_definition.get("name", ""))
        container_logger = context.with_container(container_name).logger

        if container_name not in updatable:
            container_logger.warning("skipping container image tag update, not on the container list")
            continue

        old_image = str(container_definition.get("image", ""))
        new_image, old_tag = rewrite_tag(old_image, image_tag)
        if old_tag == image_tag:
            container_logger.warning("skipping container image tag update, no changes")
            continue

        container_definition["image"] = new_image
        changed = True
        parsed = parse_image_reference(old_image)
        container_logger.debug(f"container image registry: {parsed.registry or 'default'}")
        container_logger.debug(f"container image name: {parsed.repository}")
        container_logger.info(f"old container image tag: {old_tag}")
        container_logger.info(f"new container image tag: {image_tag}")

    return request, changed


def build_task_definition(
    control_plane: ControlPlane,
    reference: str,
    image_tag: str,
    containers: Iterable[str],
    context: DeployContext,
) -> tuple[dict[str, Any] | None, bool]:
    """Register a new revision of a task definition if any image changes.

    Args:
        control_plane: Control plane client.
        reference: Family, ``family:revision`` or ARN of the source revision.
        image_tag: Tag to point updatable containers at.
        containers: Names of containers that may be updated.
        context: Logging context for the unit being deployed.

    Returns:
        The registered revision and ``True``, or ``(None, False)`` when
        nothing changed and the source revision should be reused.

    Raises:
        FetchError: If the source revision cannot be described.
        NotFoundError: If the source revision does not exist.
        ImageParseError: If an updatable container has a malformed or
            digest-pinned image.
        RegisterError: If registering the new revision fails.
    """
    log = context.logger
    log.info("fetching task definition profile")
    task_definition, tags = control_plane.describe_task_definition(reference)

    log.info(f"building new task definition from {revision_label(task_definition)}")
    request, changed = prepare_registration(task_definition, tags, image_tag, containers, context)
    if not changed:
        log.warning("skipping registering new task definition, no changes")
        return None, False

    log.info("registering new task definition")
    registered = control_plane.register_task_definition(request)
    log.info(f"successfully registered new task definition {revision_label(registered)}")
    return registered, True
