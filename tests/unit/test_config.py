"""Unit tests for ecs_deploy.config."""

from __future__ import annotations

import pytest

from ecs_deploy.config import (
    DEFAULT_PAGE_SIZE,
    DeployConfig,
    load_config,
    resolve_cluster,
    resolve_log_level,
    resolve_region,
)
from ecs_deploy.exceptions import ConfigurationError


def test_defaults_from_environment() -> None:
    config = load_config()
    assert config == DeployConfig(region="eu-west-2")
    assert config.page_size == DEFAULT_PAGE_SIZE
    assert config.waiter_config == {"Delay": 15, "MaxAttempts": 40}


def test_explicit_values_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ECS_CLUSTER", "from-env")
    monkeypatch.setenv("ECS_DEPLOY_WAIT_DELAY", "30")

    config = load_config(region="us-east-1", cluster="web", wait_delay=5, page_size=3)

    assert config.region == "us-east-1"
    assert config.cluster == "web"
    assert config.wait_delay == 5
    assert config.page_size == 3


def test_tuning_values_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ECS_CLUSTER", "web")
    monkeypatch.setenv("ECS_DEPLOY_PAGE_SIZE", "5")
    monkeypatch.setenv("ECS_DEPLOY_WAIT_DELAY", "6")
    monkeypatch.setenv("ECS_DEPLOY_WAIT_MAX_ATTEMPTS", "7")
    monkeypatch.setenv("ECS_DEPLOY_MAX_WORKERS", "2")

    config = load_config()

    assert config.cluster == "web"
    assert config.page_size == 5
    assert config.waiter_config == {"Delay": 6, "MaxAttempts": 7}
    assert config.max_workers == 2


def test_region_falls_back_to_default_region(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AWS_REGION")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-central-1")
    assert resolve_region() == "eu-central-1"


def test_missing_region_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AWS_REGION")
    monkeypatch.delenv("AWS_DEFAULT_REGION")
    with pytest.raises(ConfigurationError, match="region"):
        resolve_region()


def test_blank_cluster_is_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ECS_CLUSTER", "  ")
    assert resolve_cluster() is None
    with pytest.raises(ConfigurationError):
        load_config().require_cluster()


@pytest.mark.parametrize("raw", ["abc", "0", "-4"])
def test_invalid_integer_setting(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("ECS_DEPLOY_PAGE_SIZE", raw)
    with pytest.raises(ConfigurationError, match="ECS_DEPLOY_PAGE_SIZE"):
        load_config()


def test_log_level_resolution(monkeypatch: pytest.MonkeyPatch) -> None:
    assert resolve_log_level() == "INFO"
    monkeypatch.setenv("ECS_DEPLOY_LOG_LEVEL", "debug")
    assert resolve_log_level() == "DEBUG"
    assert resolve_log_level("warning") == "WARNING"
    with pytest.raises(ConfigurationError):
        resolve_log_level("chatty")
