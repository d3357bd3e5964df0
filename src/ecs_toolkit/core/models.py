"""Application configuration models."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_MAX_WAIT_MINUTES = 15

NonEmptyStr = Annotated[str, Field(min_length=1)]
LaunchType = Literal["ec2", "fargate", "external"]


class CapacityProviderStrategy(BaseModel):
    """A capacity provider and its share of tasks."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    capacity_provider: NonEmptyStr = Field(description="Capacity provider name")
    base: int = Field(default=0, ge=0, le=100000, description="Minimum tasks on this provider")
    weight: int = Field(default=0, ge=0, le=1000, description="Relative share of tasks")


class VpcConfiguration(BaseModel):
    """awsvpc settings for launched tasks."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    assign_public_ip: bool = False
    security_groups: list[NonEmptyStr] = Field(min_length=1, max_length=5)
    subnets: list[NonEmptyStr] = Field(min_length=1, max_length=16)


class NetworkConfiguration(BaseModel):
    """Network configuration for launched tasks."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    vpc_configuration: VpcConfiguration


class TaskGroup(BaseModel):
    """A one-off task run before or after services are updated."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    family: NonEmptyStr
    containers: list[NonEmptyStr] = Field(min_length=1)
    count: int = Field(ge=1, le=10)
    capacity_provider_strategies: list[CapacityProviderStrategy] = Field(
        default_factory=list, max_length=6
    )
    launch_type: LaunchType | None = None
    network_configuration: NetworkConfiguration | None = None

    @model_validator(mode="after")
    def _check_placement(self) -> "TaskGroup":
        if self.capacity_provider_strategies and self.launch_type is not None:
            raise ValueError(
                f"task {self.family}: capacity_provider_strategies and launch_type "
                "are mutually exclusive"
            )
        return self


class TaskGroups(BaseModel):
    """Tasks grouped by deployment stage."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    pre: list[TaskGroup] = Field(default_factory=list)
    post: list[TaskGroup] = Field(default_factory=list)


class ServiceSpec(BaseModel):
    """A long-running service to roll out."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: NonEmptyStr
    containers: list[NonEmptyStr] = Field(min_length=1)
    force: bool | None = Field(default=None, description="Force a new deployment")
    max_wait: int | None = Field(
        default=None, ge=1, description="Minutes to wait for the service to stabilise"
    )

    @property
    def force_new_deployment(self) -> bool:
        """Return whether a new deployment is forced."""
        return bool(self.force)

    @property
    def max_wait_seconds(self) -> float:
        """Return the stabilisation wait in seconds."""
        minutes = self.max_wait if self.max_wait is not None else DEFAULT_MAX_WAIT_MINUTES
        return float(minutes * 60)


class ApplicationConfig(BaseModel):
    """Root configuration of an application deployed to one cluster."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: Literal["v1"]
    cluster: NonEmptyStr
    services: list[ServiceSpec] = Field(default_factory=list)
    tasks: TaskGroups = Field(default_factory=TaskGroups)

    def service_names(self) -> list[str]:
        """Return the configured service names in order."""
        return [service.name for service in self.services]

    def task_families(self) -> list[str]:
        """Return the distinct task families across both stages in order."""
        families: list[str] = []
        for task in [*self.tasks.pre, *self.tasks.post]:
            if task.family not in families:
                families.append(task.family)
        return families
