"""
ecs_deploy.actions: the deploy, rollback and configure workflows.

Each command runs the same linear sequence: resolve services, describe them,
read their task definitions, derive new definitions, register, update and
wait. Failures abort the command; services already updated stay updated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import ClientError

from ecs_deploy import ecs as ecs_api
from ecs_deploy.batch import run_batch
from ecs_deploy.config import DeployConfig
from ecs_deploy.exceptions import EcsDeployError, InvalidSubcommandError, RollbackTargetError
from ecs_deploy.task_definitions import (
    container_environment,
    container_images,
    environment_as_mapping,
    lookup_variable,
    make_updated_definition,
    previous_revision_arn,
    single_container,
    validate_relative_revision,
    with_variable,
    without_variable,
)

logger = logging.getLogger(__name__)

CONFIGURE_SUBCOMMANDS: tuple[str, ...] = ("get", "set", "unset")


@dataclass(frozen=True)
class EnvironmentListing:
    family: str
    container: str
    env: dict[str, str]


def _current_task_definitions(
    ecs: Any, config: DeployConfig, services: list[str]
) -> tuple[list[str], list[dict[str, Any]]]:
    """Return the described service names and their task definitions, pairwise aligned."""
    cluster = config.require_cluster()
    ecs_api.resolve_services(ecs, cluster, services, page_size=config.page_size)
    logger.info("targeting services %s", services)
    descriptions = ecs_api.describe_service_batch(
        ecs, cluster, services, max_workers=config.max_workers
    )
    names = [service["serviceName"] for service in descriptions["services"]]
    task_defs = ecs_api.fetch_task_definitions(ecs, descriptions, max_workers=config.max_workers)
    return names, task_defs


def _register_and_roll_out(
    ecs: Any,
    config: DeployConfig,
    services: list[str],
    new_definitions: list[dict[str, Any]],
) -> list[str]:
    registered = ecs_api.register_task_definitions(
        ecs, new_definitions, max_workers=config.max_workers
    )
    new_arns = ecs_api.registered_arns(registered)
    ecs_api.update_services(ecs, config.require_cluster(), services, new_arns, config=config)
    return new_arns


def list_clusters(ecs: Any) -> list[str]:
    return ecs_api.list_clusters(ecs)


def list_services(ecs: Any, config: DeployConfig) -> list[str]:
    return ecs_api.list_service_names(ecs, config.require_cluster())


def update_agents(ecs: Any, config: DeployConfig) -> list[str]:
    return ecs_api.update_container_agents(
        ecs, config.require_cluster(), max_workers=config.max_workers
    )


def deploy(ecs: Any, config: DeployConfig, services: list[str], tag: str) -> list[str]:
    """Roll services onto new task definitions that run the image with `tag`."""
    logger.info("requested release cluster=%s services=%s tag=%s", config.cluster, services, tag)
    names, task_defs = _current_task_definitions(ecs, config, services)
    new_defs = [make_updated_definition(task_def, image_tag=tag) for task_def in task_defs]
    return _register_and_roll_out(ecs, config, names, new_defs)


def _is_missing_task_definition(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == "ClientException"


def _verify_rollback_targets(ecs: Any, config: DeployConfig, target_arns: list[str]) -> None:
    def _describe(arn: str) -> dict[str, Any]:
        try:
            return ecs.describe_task_definition(taskDefinition=arn)
        except ClientError as exc:
            if _is_missing_task_definition(exc):
                raise RollbackTargetError(task_definition_arn=arn) from exc
            raise

    targets = run_batch(_describe, target_arns, max_workers=config.max_workers)
    images = {container_images(target) for target in targets}
    if len(images) > 1:
        logger.warning("rollback targets run different images: %s", sorted(images))


def rollback(
    ecs: Any,
    config: DeployConfig,
    services: list[str],
    rev: int | None = None,
    *,
    verify: bool = False,
) -> list[str]:
    """Point services back at an earlier revision of their current family.

    `rev` is a negative offset from each service's current revision. With
    `verify`, the targets are described before any service is touched.
    """
    relative = validate_relative_revision(rev)
    logger.info(
        "requested rollback cluster=%s services=%s rev=%s", config.cluster, services, relative
    )
    names, task_defs = _current_task_definitions(ecs, config, services)
    target_arns = [previous_revision_arn(task_def, relative) for task_def in task_defs]
    if verify:
        _verify_rollback_targets(ecs, config, target_arns)

    ecs_api.update_services(ecs, config.require_cluster(), names, target_arns, config=config)
    return target_arns


def configure_show(ecs: Any, config: DeployConfig, services: list[str]) -> list[EnvironmentListing]:
    _, task_defs = _current_task_definitions(ecs, config, services)
    listings = []
    for task_def in task_defs:
        container = single_container(task_def)
        listings.append(
            EnvironmentListing(
                family=task_def["taskDefinition"]["family"],
                container=container.get("name", ""),
                env=environment_as_mapping(container_environment(task_def)),
            )
        )
    return listings


def _configure_get(
    config: DeployConfig, services: list[str], task_defs: list[dict[str, Any]], key: str
) -> str | None:
    logger.info("fetching %s cluster=%s services=%s", key, config.cluster, services)
    if not task_defs:
        return None
    return lookup_variable(container_environment(task_defs[0]), key)


def _configure_set(
    ecs: Any,
    config: DeployConfig,
    services: list[str],
    task_defs: list[dict[str, Any]],
    key: str,
    val: str,
) -> list[str]:
    logger.info("setting %s=%s cluster=%s services=%s", key, val, config.cluster, services)
    new_defs = [
        make_updated_definition(
            task_def, environment=with_variable(container_environment(task_def), key, val)
        )
        for task_def in task_defs
    ]
    return _register_and_roll_out(ecs, config, services, new_defs)


def _configure_unset(
    ecs: Any,
    config: DeployConfig,
    services: list[str],
    task_defs: list[dict[str, Any]],
    key: str,
) -> list[str]:
    logger.info("unsetting %s cluster=%s services=%s", key, config.cluster, services)
    new_defs = [
        make_updated_definition(
            task_def, environment=without_variable(container_environment(task_def), key)
        )
        for task_def in task_defs
    ]
    return _register_and_roll_out(ecs, config, services, new_defs)


def configure(
    ecs: Any,
    config: DeployConfig,
    services: list[str],
    subcommand: str | None = None,
    key: str | None = None,
    val: str | None = None,
) -> Any:
    """Show, read or change the environment of the targeted services.

    Returns the listings (no subcommand), the value or None (get), or the
    newly registered task definition ARNs (set / unset).
    """
    if subcommand is None:
        return configure_show(ecs, config, services)
    if subcommand not in CONFIGURE_SUBCOMMANDS:
        raise InvalidSubcommandError(subcommand)
    if key is None:
        raise EcsDeployError(f"configure {subcommand} requires a key")
    if subcommand == "set":
        if val is None:
            raise EcsDeployError("configure set requires a key and a value")
        names, task_defs = _current_task_definitions(ecs, config, services)
        return _configure_set(ecs, config, names, task_defs, key, val)

    names, task_defs = _current_task_definitions(ecs, config, services)
    if subcommand == "get":
        return _configure_get(config, names, task_defs, key)
    return _configure_unset(ecs, config, names, task_defs, key)
