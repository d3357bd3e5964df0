"""IAM policy for the identity that runs deployments."""

import json
from typing import Any

from ecs_toolkit.core.models import ApplicationConfig

POLICY_VERSION = "2012-10-17"


def _service_arn(region: str, account: str, cluster: str, name: str) -> str:
    return f"arn:aws:ecs:{region}:{account}:service/{cluster}/{name}"


def _task_definition_family_arn(region: str, account: str, family: str) -> str:
    return f"arn:aws:ecs:{region}:{account}:task-definition/{family}:*"


def generate_iam_policy(account: str, region: str, config: ApplicationConfig) -> dict[str, Any]:
    """Return the least-privilege policy needed to deploy an application.

    Services are assumed to use a task definition family named after the
    service.

    Args:
        account: 12-digit AWS account ID.
        region: AWS region of the cluster.
        config: Application configuration.

    Returns:
        The policy document.
    """
    service_names = config.service_names()
    task_families = config.task_families()

    service_arns = [
        _service_arn(region, account, config.cluster, name) for name in service_names
    ]
    service_task_definition_arns = [
        _task_definition_family_arn(region, account, name) for name in service_names
    ]
    task_task_definition_arns = [
        _task_definition_family_arn(region, account, family) for family in task_families
    ]

    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Sid": "AccessServices",
                "Effect": "Allow",
                "Action": ["ecs:DescribeServices", "ecs:UpdateService"],
                "Resource": service_arns,
            },
            {
                "Sid": "AccessTaskDefinitions",
                "Effect": "Allow",
                "Action": ["ecs:DescribeTaskDefinition", "ecs:RegisterTaskDefinition"],
                "Resource": service_task_definition_arns + task_task_definition_arns,
            },
            {
                "Sid": "AccessTasks",
                "Effect": "Allow",
                "Action": "ecs:DescribeTasks",
                "Resource": f"arn:aws:ecs:{region}:{account}:task/{config.cluster}/*",
            },
            {
                "Sid": "RunTasks",
                "Effect": "Allow",
                "Action": "ecs:RunTask",
                "Resource": task_task_definition_arns,
            },
        ],
    }


def render_iam_policy(account: str, region: str, config: ApplicationConfig) -> str:
    """Return the policy document as indented JSON."""
    return json.dumps(generate_iam_policy(account, region, config), indent=2)
