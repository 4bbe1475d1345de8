"""
ecs_deploy.config: runtime settings for the deploy CLI.

Every value can come from a CLI flag or an environment variable; the flag
wins. Region and cluster have no defaults. Page size and waiter timing are
explicit here instead of relying on the ECS API's implicit defaults.

Environment:
    AWS_REGION / AWS_DEFAULT_REGION   region for the ECS client
    ECS_CLUSTER                       target cluster
    ECS_DEPLOY_PAGE_SIZE              list_services page size (default 10)
    ECS_DEPLOY_WAIT_DELAY             services_stable poll delay in seconds (default 15)
    ECS_DEPLOY_WAIT_MAX_ATTEMPTS      services_stable poll attempts (default 40)
    ECS_DEPLOY_MAX_WORKERS            parallel request workers (default 10)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import boto3

from ecs_deploy.exceptions import ConfigurationError

DEFAULT_PAGE_SIZE = 10
DEFAULT_WAIT_DELAY_SECONDS = 15
DEFAULT_WAIT_MAX_ATTEMPTS = 40
DEFAULT_MAX_WORKERS = 10
DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DeployConfig:
    region: str
    cluster: str | None = None
    page_size: int = DEFAULT_PAGE_SIZE
    wait_delay: int = DEFAULT_WAIT_DELAY_SECONDS
    wait_max_attempts: int = DEFAULT_WAIT_MAX_ATTEMPTS
    max_workers: int = DEFAULT_MAX_WORKERS

    def require_cluster(self) -> str:
        if not self.cluster:
            raise ConfigurationError("Cluster not set. Use --cluster or ECS_CLUSTER.")
        return self.cluster

    @property
    def waiter_config(self) -> dict[str, int]:
        return {"Delay": self.wait_delay, "MaxAttempts": self.wait_max_attempts}


def resolve_region(explicit: str | None = None) -> str:
    if explicit and explicit.strip():
        return explicit.strip()
    for env_name in ("AWS_REGION", "AWS_DEFAULT_REGION"):
        value = os.environ.get(env_name, "").strip()
        if value:
            return value
    raise ConfigurationError("AWS region not set. Use --region or AWS_REGION.")


def resolve_cluster(explicit: str | None = None) -> str | None:
    if explicit and explicit.strip():
        return explicit.strip()
    value = os.environ.get("ECS_CLUSTER", "").strip()
    return value or None


def resolve_log_level(explicit: str | None = None) -> str:
    if explicit and explicit.strip():
        level = explicit.strip().upper()
    else:
        level = os.environ.get("ECS_DEPLOY_LOG_LEVEL", "").strip().upper() or DEFAULT_LOG_LEVEL
    if level not in LOG_LEVELS:
        raise ConfigurationError(
            f"Unknown log level {level!r}; expected one of {', '.join(LOG_LEVELS)}"
        )
    return level


def _resolve_positive_int(explicit: int | None, env_name: str, default: int) -> int:
    if explicit is not None:
        value = explicit
    else:
        raw = os.environ.get(env_name, "").strip()
        if not raw:
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            raise ConfigurationError(f"{env_name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ConfigurationError(f"{env_name} must be a positive integer, got {value}")
    return value


def load_config(
    *,
    region: str | None = None,
    cluster: str | None = None,
    page_size: int | None = None,
    wait_delay: int | None = None,
    wait_max_attempts: int | None = None,
    max_workers: int | None = None,
) -> DeployConfig:
    """Build a DeployConfig from explicit values, falling back to the environment."""
    return DeployConfig(
        region=resolve_region(region),
        cluster=resolve_cluster(cluster),
        page_size=_resolve_positive_int(page_size, "ECS_DEPLOY_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        wait_delay=_resolve_positive_int(
            wait_delay, "ECS_DEPLOY_WAIT_DELAY", DEFAULT_WAIT_DELAY_SECONDS
        ),
        wait_max_attempts=_resolve_positive_int(
            wait_max_attempts, "ECS_DEPLOY_WAIT_MAX_ATTEMPTS", DEFAULT_WAIT_MAX_ATTEMPTS
        ),
        max_workers=_resolve_positive_int(
            max_workers, "ECS_DEPLOY_MAX_WORKERS", DEFAULT_MAX_WORKERS
        ),
    )


def get_ecs_client(region: str) -> Any:
    return boto3.client("ecs", region_name=region)
