"""Data models for ECS rollouts."""

import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum

from ecs_toolkit.core.logging import ContextLoggerAdapter

_RESOURCE_ID_PATTERN = re.compile(r"[^:/]*$")

_logger = logging.getLogger("ecs_toolkit.deploy")


class UnitKind(str, Enum):
    """Kind of resource a deployment unit rolls out to."""

    TASK = "task"
    SERVICE = "service"


class Outcome(str, Enum):
    """Terminal outcome of a deployment unit."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class Phase(IntEnum):
    """Lifecycle phases of a deployment unit, in the order they are visited."""

    PENDING = 0
    BUILDING = 1
    LAUNCHING = 2
    UPDATING = 3
    WATCHING = 4
    STABILIZING = 5
    COMPLETED = 6


class Stage(str, Enum):
    """Sequential stages of one deployment run."""

    PRE_TASKS = "pre"
    SERVICES = "services"
    POST_TASKS = "post"

    @property
    def label(self) -> str:
        """Return a human readable stage name."""
        if self is Stage.SERVICES:
            return "services"
        return f"{self.value}-deployment tasks"


@dataclass(frozen=True)
class DeployContext:
    """Structured context describing where a log line or error came from.

    Contexts are built incrementally, cluster first, then unit, then
    container or task, and passed down explicitly.
    """

    cluster: str
    unit_kind: UnitKind | None = None
    unit_name: str | None = None
    container: str | None = None
    task_id: str | None = None
    deployment_id: str | None = None

    def for_unit(self, kind: UnitKind, name: str) -> "DeployContext":
        """Return a context scoped to a task group or service."""
        return replace(self, unit_kind=kind, unit_name=name)

    def with_container(self, name: str) -> "DeployContext":
        """Return a context scoped to a container."""
        return replace(self, container=name)

    def with_task(self, task_id: str) -> "DeployContext":
        """Return a context scoped to a running task."""
        return replace(self, task_id=task_id)

    def with_deployment(self, deployment_id: str) -> "DeployContext":
        """Return a context scoped to a service deployment."""
        return replace(self, deployment_id=deployment_id)

    def fields(self) -> dict[str, str]:
        """Return the populated fields in a stable order."""
        fields = {"cluster": self.cluster}
        if self.unit_kind is not None and self.unit_name is not None:
            fields[self.unit_kind.value] = self.unit_name
        if self.container is not None:
            fields["container"] = self.container
        if self.task_id is not None:
            fields["task-id"] = self.task_id
        if self.deployment_id is not None:
            fields["deployment-id"] = self.deployment_id
        return fields

    @property
    def logger(self) -> ContextLoggerAdapter:
        """Return a logger that renders this context on every line."""
        return ContextLoggerAdapter(_logger, self.fields())


@dataclass
class DeploymentUnit:
    """Tracks one task group or service through its rollout."""

    kind: UnitKind
    name: str
    phase: Phase = Phase.PENDING
    outcome: Outcome = Outcome.PENDING
    error: str | None = None
    task_definition: str | None = None
    cause: BaseException | None = field(default=None, repr=False, compare=False)

    def advance(self, phase: Phase) -> None:
        """Move the unit forward to a later phase.

        Raises:
            ValueError: If the phase would regress.
        """
        if phase < self.phase:
            raise ValueError(
                f"{self.kind.value} {self.name} cannot move from "
                f"{self.phase.name.lower()} back to {phase.name.lower()}"
            )
        self.phase = phase

    def succeed(self) -> None:
        """Record a successful rollout."""
        self._finish(Outcome.SUCCEEDED)

    def skip(self, reason: str | None = None) -> None:
        """Record a rollout that had nothing to do."""
        self._finish(Outcome.SKIPPED, reason)

    def fail(self, error: BaseException | str) -> None:
        """Record a failed rollout, keeping the exception when there is one."""
        self._finish(Outcome.FAILED, str(error))
        if isinstance(error, BaseException):
            self.cause = error

    @property
    def finished(self) -> bool:
        """Return whether the unit reached a terminal outcome."""
        return self.outcome is not Outcome.PENDING

    def _finish(self, outcome: Outcome, detail: str | None = None) -> None:
        if self.finished:
            raise ValueError(f"{self.kind.value} {self.name} already {self.outcome.value}")
        self.advance(Phase.COMPLETED)
        self.outcome = outcome
        self.error = detail


@dataclass(frozen=True)
class BatchResult:
    """Aggregate outcome counts for one stage."""

    total: int = 0
    successful: int = 0
    skipped: int = 0
    failed: int = 0

    def __post_init__(self) -> None:
        if self.total != self.successful + self.skipped + self.failed:
            raise ValueError(
                f"batch total {self.total} does not match "
                f"{self.successful} successful + {self.skipped} skipped + {self.failed} failed"
            )

    @classmethod
    def from_units(cls, units: list[DeploymentUnit]) -> "BatchResult":
        """Count the outcomes of finished units.

        Raises:
            ValueError: If any unit has not finished.
        """
        pending = [unit.name for unit in units if not unit.finished]
        if pending:
            raise ValueError(f"units still pending: {', '.join(pending)}")
        return cls(
            total=len(units),
            successful=sum(1 for unit in units if unit.outcome is Outcome.SUCCEEDED),
            skipped=sum(1 for unit in units if unit.outcome is Outcome.SKIPPED),
            failed=sum(1 for unit in units if unit.outcome is Outcome.FAILED),
        )

    @property
    def ok(self) -> bool:
        """Return whether no unit failed."""
        return self.failed == 0

    def summary(self) -> str:
        """Return the one-line report used in logs."""
        return (
            f"total: {self.total}, successful: {self.successful}, "
            f"skipped: {self.skipped}, failed: {self.failed}"
        )


@dataclass(frozen=True)
class StageResult:
    """Result of one stage of a deployment run."""

    stage: Stage
    batch: BatchResult
    units: list[DeploymentUnit] = field(default_factory=list)


@dataclass
class DeploymentReport:
    """Results of every stage that ran, in order."""

    stages: list[StageResult] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        """Return whether any stage had a failed unit."""
        return any(not result.batch.ok for result in self.stages)


@dataclass(frozen=True)
class TaskHandle:
    """A launched task being watched."""

    arn: str
    number: int = 1

    @property
    def task_id(self) -> str:
        """Return the task identifier from the ARN."""
        match = _RESOURCE_ID_PATTERN.search(self.arn)
        return match.group(0) if match else self.arn


@dataclass(frozen=True)
class TaskProgress:
    """One observation of a task while it is watched."""

    handle: TaskHandle
    last_status: str
    desired_status: str
    health: str


@dataclass(frozen=True)
class TaskOutcome:
    """Terminal result of watching a single task."""

    handle: TaskHandle
    succeeded: bool
    reason: str


@dataclass(frozen=True)
class DeploymentProgress:
    """One observation of a service deployment while it is watched."""

    deployment_id: str
    status: str
    rollout_state: str
    running: int
    desired: int
    pending: int


@dataclass(frozen=True)
class WatchOptions:
    """Polling behaviour shared by the task and service watchers."""

    poll_interval: float = 3.0
    timeout: float | None = None
    stable_min_delay: float = 5.0
    stable_max_delay: float = 120.0
    sleep: Callable[[float], None] = time.sleep
    clock: Callable[[], float] = time.monotonic
