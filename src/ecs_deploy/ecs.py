"""
ecs_deploy.ecs: thin wrappers over the ECS control-plane API.

Every function takes a boto3 ECS client as its first argument so callers
(and tests) decide how the client is built. Groups of independent requests
go through run_batch: all succeed or the whole step fails.
"""

from __future__ import annotations

import logging
from typing import Any

from ecs_deploy.batch import run_batch
from ecs_deploy.config import DEFAULT_MAX_WORKERS, DEFAULT_PAGE_SIZE, DeployConfig
from ecs_deploy.exceptions import EcsDeployError, ServiceNotFoundError
from ecs_deploy.task_definitions import extract_name_from_arn

logger = logging.getLogger(__name__)

# describe_services and the services_stable waiter accept at most 10 services.
DESCRIBE_SERVICES_LIMIT = 10


def _chunks(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def list_clusters(ecs: Any) -> list[str]:
    result = ecs.list_clusters()
    return [extract_name_from_arn(arn) for arn in result.get("clusterArns", [])]


def list_service_names(ecs: Any, cluster: str, *, page_size: int | None = None) -> list[str]:
    """Return service names from a single list_services page."""
    kwargs: dict[str, Any] = {"cluster": cluster}
    if page_size is not None:
        kwargs["maxResults"] = page_size
    result = ecs.list_services(**kwargs)
    return [extract_name_from_arn(arn) for arn in result.get("serviceArns", [])]


def resolve_services(
    ecs: Any,
    cluster: str,
    services: list[str],
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[str]:
    """Fill an empty service list with the cluster's services.

    The list is extended in place and returned, so callers holding the same
    list see the resolved names. Only the first page is fetched.
    """
    if not services:
        services.extend(list_service_names(ecs, cluster, page_size=page_size))
    return services


def describe_service_batch(
    ecs: Any,
    cluster: str,
    services: list[str],
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> dict[str, Any]:
    """describe_services for any number of names, merged into one response shape."""
    responses = run_batch(
        lambda names: ecs.describe_services(cluster=cluster, services=names),
        _chunks(services, DESCRIBE_SERVICES_LIMIT),
        max_workers=max_workers,
    )
    described: list[dict[str, Any]] = []
    failures: list[dict[str, str]] = []
    for response in responses:
        described.extend(response.get("services", []))
        failures.extend(response.get("failures", []))
    if failures:
        raise ServiceNotFoundError(cluster=cluster, failures=failures)
    return {"services": described, "failures": []}


def fetch_task_definitions(
    ecs: Any,
    descriptions: dict[str, Any],
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[dict[str, Any]]:
    """Fetch the active task definition of each described service, in input order."""

    def _describe(service: dict[str, Any]) -> dict[str, Any]:
        task_definition = service["taskDefinition"]
        logger.debug("current task def %s for %s", task_definition, service.get("serviceName"))
        return ecs.describe_task_definition(taskDefinition=task_definition)

    return run_batch(_describe, descriptions.get("services", []), max_workers=max_workers)


def register_task_definitions(
    ecs: Any,
    definitions: list[dict[str, Any]],
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[dict[str, Any]]:
    """Register each payload; results carry the new immutable ARNs in input order."""
    return run_batch(
        lambda payload: ecs.register_task_definition(**payload),
        definitions,
        max_workers=max_workers,
    )


def registered_arns(registered: list[dict[str, Any]]) -> list[str]:
    return [result["taskDefinition"]["taskDefinitionArn"] for result in registered]


def update_services(
    ecs: Any,
    cluster: str,
    services: list[str],
    task_definition_arns: list[str],
    *,
    config: DeployConfig,
) -> None:
    """Point each service at its new task definition, then wait for stability."""
    if len(services) != len(task_definition_arns):
        raise EcsDeployError(
            f"Got {len(task_definition_arns)} task definitions for {len(services)} services"
        )

    def _update(pair: tuple[str, str]) -> dict[str, Any]:
        service, task_definition_arn = pair
        logger.info("updating %s:%s with ARN %s", cluster, service, task_definition_arn)
        return ecs.update_service(
            cluster=cluster,
            service=service,
            taskDefinition=task_definition_arn,
        )

    run_batch(
        _update,
        list(zip(services, task_definition_arns)),
        max_workers=config.max_workers,
    )
    logger.info("waiting for services to stabilize...")

    waiter = ecs.get_waiter("services_stable")
    for names in _chunks(services, DESCRIBE_SERVICES_LIMIT):
        waiter.wait(cluster=cluster, services=names, WaiterConfig=config.waiter_config)
    logger.info("successfully updated the services")


def update_container_agents(
    ecs: Any,
    cluster: str,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[str]:
    """Request an ECS agent update on every container instance in the cluster."""
    result = ecs.list_container_instances(cluster=cluster)
    instance_arns = list(result.get("containerInstanceArns", []))
    logger.info("updating agents on %d instance(s)...", len(instance_arns))
    run_batch(
        lambda arn: ecs.update_container_agent(cluster=cluster, containerInstance=arn),
        instance_arns,
        max_workers=max_workers,
    )
    logger.info("updates requested")
    return instance_arns
