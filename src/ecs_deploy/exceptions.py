"""
ecs_deploy.exceptions: domain errors raised by the deploy tooling.

AWS failures (botocore ClientError / WaiterError) are never wrapped; they
propagate unchanged and are reported by the CLI with exit code 1.
"""


class EcsDeployError(RuntimeError):
    """Base class for deploy tooling errors."""


class ConfigurationError(EcsDeployError):
    """Raised when region, cluster or a tuning setting is missing or invalid."""


class InvalidRevisionError(EcsDeployError, ValueError):
    """Raised when a rollback revision offset or computed revision is invalid."""


class InvalidSubcommandError(EcsDeployError):
    """Raised for an unknown `configure` subcommand."""

    def __init__(self, subcommand: str) -> None:
        self.subcommand = subcommand
        super().__init__(f"Invalid config subcommand {subcommand}!")


class UnsupportedTaskDefinitionError(EcsDeployError):
    """Raised when a task definition does not hold exactly one container definition."""

    def __init__(self, *, family: str, container_count: int) -> None:
        self.family = family
        self.container_count = container_count
        super().__init__(
            f"Task definition family {family!r} has {container_count} container definitions; "
            "exactly one is supported"
        )


class ServiceNotFoundError(EcsDeployError):
    """Raised when describe_services reports one or more services as failures."""

    def __init__(self, *, cluster: str, failures: list[dict[str, str]]) -> None:
        self.cluster = cluster
        self.failures = failures
        details = ", ".join(
            f"{failure.get('arn', '?')} ({failure.get('reason', 'unknown')})"
            for failure in failures
        )
        super().__init__(f"Could not describe services on {cluster}: {details}")


class RollbackTargetError(EcsDeployError):
    """Raised when a verified rollback target revision does not exist."""

    def __init__(self, *, task_definition_arn: str) -> None:
        self.task_definition_arn = task_definition_arn
        super().__init__(f"Rollback target does not exist: {task_definition_arn}")
