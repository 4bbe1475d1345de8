"""Shared fixtures for the ecs_deploy unit tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import boto3
import pytest
from moto import mock_aws

from ecs_deploy.config import DeployConfig

REGION = "eu-west-2"
CLUSTER = "web"


@pytest.fixture(autouse=True)
def aws_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set minimal AWS env vars required by boto3 and moto."""
    monkeypatch.setenv("AWS_REGION", REGION)
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    for name in (
        "ECS_CLUSTER",
        "ECS_DEPLOY_PAGE_SIZE",
        "ECS_DEPLOY_WAIT_DELAY",
        "ECS_DEPLOY_WAIT_MAX_ATTEMPTS",
        "ECS_DEPLOY_MAX_WORKERS",
        "ECS_DEPLOY_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config() -> DeployConfig:
    return DeployConfig(
        region=REGION,
        cluster=CLUSTER,
        wait_delay=1,
        wait_max_attempts=3,
        max_workers=4,
    )


@pytest.fixture
def ecs_client() -> Iterator[Any]:
    """A moto-backed ECS client with an empty CLUSTER created."""
    with mock_aws():
        client = boto3.client("ecs", region_name=REGION)
        client.create_cluster(clusterName=CLUSTER)
        yield client


@pytest.fixture
def register_revision(ecs_client: Any) -> Callable[..., str]:
    """Register a single-container revision and return its ARN."""

    def _register(
        family: str,
        image: str,
        environment: list[dict[str, str]] | None = None,
    ) -> str:
        response = ecs_client.register_task_definition(
            family=family,
            containerDefinitions=[
                {
                    "name": family,
                    "image": image,
                    "memory": 128,
                    "environment": environment or [],
                }
            ],
        )
        return response["taskDefinition"]["taskDefinitionArn"]

    return _register


@pytest.fixture
def create_service(ecs_client: Any) -> Callable[[str, str], None]:
    """Create a service with desiredCount=0 so services_stable succeeds immediately."""

    def _create(name: str, task_definition_arn: str) -> None:
        ecs_client.create_service(
            cluster=CLUSTER,
            serviceName=name,
            taskDefinition=task_definition_arn,
            desiredCount=0,
        )

    return _create


@pytest.fixture
def current_task_definition(ecs_client: Any) -> Callable[[str], dict[str, Any]]:
    """Return the task definition a service currently points at."""

    def _current(service: str) -> dict[str, Any]:
        described = ecs_client.describe_services(cluster=CLUSTER, services=[service])
        arn = described["services"][0]["taskDefinition"]
        return ecs_client.describe_task_definition(taskDefinition=arn)["taskDefinition"]

    return _current
