"""In-memory control plane and observation builders for the tests."""

import copy
import itertools
import threading
from typing import Any

from ecs_toolkit.core.deployments.aws_ecs.errors import NotFoundError
from ecs_toolkit.interfaces import ControlPlane

ACCOUNT = "123456789012"
REGION = "us-east-1"
CLUSTER = "production"
REGISTRY = "123.dkr.ecr.us-east-1.amazonaws.com"


def task_definition_arn(family: str, revision: int) -> str:
    return f"arn:aws:ecs:{REGION}:{ACCOUNT}:task-definition/{family}:{revision}"


def stopped_task(*exit_codes: int | None, reason: str = "Essential container in task exited") -> dict[str, Any]:
    """Return a task observation in the stopped state."""
    containers: list[dict[str, Any]] = []
    for index, code in enumerate(exit_codes):
        container: dict[str, Any] = {"name": f"container-{index}"}
        if code is not None:
            container["exitCode"] = code
        containers.append(container)
    return {
        "lastStatus": "STOPPED",
        "desiredStatus": "STOPPED",
        "healthStatus": "UNKNOWN",
        "stoppedReason": reason,
        "containers": containers,
    }


def running_task() -> dict[str, Any]:
    return {"lastStatus": "RUNNING", "desiredStatus": "RUNNING", "healthStatus": "HEALTHY"}


def service_observation(
    name: str,
    task_definition: str,
    deployments: list[dict[str, Any]],
    status: str = "ACTIVE",
) -> dict[str, Any]:
    """Return a service description as returned by DescribeServices."""
    return {
        "serviceName": name,
        "serviceArn": f"arn:aws:ecs:{REGION}:{ACCOUNT}:service/{CLUSTER}/{name}",
        "clusterArn": f"arn:aws:ecs:{REGION}:{ACCOUNT}:cluster/{CLUSTER}",
        "status": status,
        "taskDefinition": task_definition,
        "desiredCount": 2,
        "runningCount": 2,
        "deploymentConfiguration": {"maximumPercent": 200, "minimumHealthyPercent": 100},
        "loadBalancers": [
            {"targetGroupArn": "arn:aws:elasticloadbalancing:tg/web", "containerName": "web", "containerPort": 80}
        ],
        "placementConstraints": [],
        "placementStrategy": [{"type": "spread", "field": "attribute:ecs.availability-zone"}],
        "networkConfiguration": {
            "awsvpcConfiguration": {
                "subnets": ["subnet-1"],
                "securityGroups": ["sg-1"],
                "assignPublicIp": "DISABLED",
            }
        },
        "serviceRegistries": [],
        "deployments": deployments,
    }


def completed_primary(deployment_id: str = "ecs-svc/1") -> dict[str, Any]:
    return {
        "id": deployment_id,
        "status": "PRIMARY",
        "rolloutState": "COMPLETED",
        "runningCount": 2,
        "desiredCount": 2,
        "pendingCount": 0,
    }


class FakeControlPlane(ControlPlane):
    """In-memory control plane.

    Tasks and services are scripted as lists of observations. Each describe
    call returns the next observation and keeps repeating the last one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._task_counter = itertools.count(1)
        self.task_definitions: dict[str, dict[str, Any]] = {}
        self.task_definition_tags: dict[str, list[dict[str, Any]]] = {}
        self.registered: list[dict[str, Any]] = []
        self.run_requests: list[dict[str, Any]] = []
        self.launch_failures: dict[str, list[dict[str, Any]]] = {}
        self.task_scripts: dict[str, list[dict[str, Any] | None]] = {}
        self.task_observations: dict[str, list[dict[str, Any] | None]] = {}
        self.service_observations: dict[str, list[dict[str, Any]]] = {}
        self.service_describe_calls: dict[str, int] = {}
        self.update_requests: list[dict[str, Any]] = []
        self.stable_waits: list[tuple[str, list[str], float]] = []
        self.stable_errors: dict[str, Exception] = {}

    def add_task_definition(
        self,
        family: str,
        containers: list[dict[str, Any]],
        revision: int = 1,
        tags: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        task_definition = {
            "taskDefinitionArn": task_definition_arn(family, revision),
            "family": family,
            "revision": revision,
            "status": "ACTIVE",
            "networkMode": "awsvpc",
            "cpu": "256",
            "memory": "512",
            "requiresCompatibilities": ["FARGATE"],
            "containerDefinitions": containers,
            "registeredAt": "2024-01-01T00:00:00Z",
        }
        self.task_definitions[family] = task_definition
        self.task_definition_tags[family] = list(tags or [])
        return task_definition

    def add_service(self, name: str, observations: list[dict[str, Any]]) -> None:
        self.service_observations[name] = list(observations)

    def _family(self, reference: str) -> str:
        if "task-definition/" in reference:
            reference = reference.split("task-definition/", 1)[1]
        return reference.split(":", 1)[0]

    def describe_task_definition(
        self, reference: str
    ) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        family = self._family(reference)
        with self._lock:
            if family not in self.task_definitions:
                raise NotFoundError(f"task definition {reference} not found")
            return (
                copy.deepcopy(self.task_definitions[family]),
                copy.deepcopy(self.task_definition_tags[family]),
            )

    def register_task_definition(self, request: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self.registered.append(copy.deepcopy(request))
            family = request["family"]
            previous = self.task_definitions.get(family, {"revision": 0})
            revision = int(previous["revision"]) + 1
            registered = {
                key: copy.deepcopy(value) for key, value in request.items() if key != "tags"
            }
            registered.update(
                {
                    "taskDefinitionArn": task_definition_arn(family, revision),
                    "revision": revision,
                    "status": "ACTIVE",
                }
            )
            self.task_definitions[family] = registered
            self.task_definition_tags[family] = list(request.get("tags", []))
            return copy.deepcopy(registered)

    def run_task(
        self, request: dict[str, Any]
    ) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        family = self._family(str(request["taskDefinition"]))
        with self._lock:
            self.run_requests.append(copy.deepcopy(request))
            if family in self.launch_failures:
                return [], self.launch_failures[family]

            script = self.task_scripts.get(family, [running_task(), stopped_task(0)])
            tasks = []
            for _ in range(int(request["count"])):
                number = next(self._task_counter)
                arn = f"arn:aws:ecs:{REGION}:{ACCOUNT}:task/{request['cluster']}/{family}{number:04d}"
                self.task_observations[arn] = copy.deepcopy(script)
                tasks.append({"taskArn": arn, "lastStatus": "PROVISIONING"})
            return tasks, []

    def describe_tasks(self, cluster: str, task_arns: list[str]) -> list[dict[str, Any]]:
        found = []
        with self._lock:
            for arn in task_arns:
                observations = self.task_observations.get(arn)
                if not observations:
                    continue
                observation = observations.pop(0) if len(observations) > 1 else observations[0]
                if observation is None:
                    continue
                found.append({"taskArn": arn, **copy.deepcopy(observation)})
        return found

    def describe_services(self, cluster: str, names: list[str]) -> list[dict[str, Any]]:
        found = []
        with self._lock:
            for name in names:
                observations = self.service_observations.get(name)
                if not observations:
                    continue
                self.service_describe_calls[name] = self.service_describe_calls.get(name, 0) + 1
                observation = observations.pop(0) if len(observations) > 1 else observations[0]
                found.append(copy.deepcopy(observation))
        return found

    def update_service(self, request: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self.update_requests.append(copy.deepcopy(request))
            if request["service"] not in self.service_observations:
                raise NotFoundError(f"service {request['service']} not found")
            return {"serviceName": request["service"], "taskDefinition": request["taskDefinition"]}

    def wait_for_services_stable(
        self,
        cluster: str,
        names: list[str],
        max_wait: float,
        min_delay: float = 5.0,
        max_delay: float = 120.0,
    ) -> None:
        with self._lock:
            self.stable_waits.append((cluster, list(names), max_wait))
        for name in names:
            if name in self.stable_errors:
                raise self.stable_errors[name]

