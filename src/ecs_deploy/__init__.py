"""
ecs_deploy: deploy, roll back and configure services on Amazon ECS.

Every change registers a new immutable task definition revision (or points
back at an existing one) and waits for the services to stabilize.
"""

from ecs_deploy.actions import configure, deploy, rollback
from ecs_deploy.config import DeployConfig, load_config
from ecs_deploy.exceptions import EcsDeployError, InvalidRevisionError, InvalidSubcommandError

__all__ = [
    "DeployConfig",
    "EcsDeployError",
    "InvalidRevisionError",
    "InvalidSubcommandError",
    "configure",
    "deploy",
    "load_config",
    "rollback",
]
