"""
ecs-deploy: deploy, roll back and configure ECS services.

Usage:
    ecs-deploy [--log-level LEVEL] <command> ...
    ecs-deploy clusters --region <region>
    ecs-deploy services --cluster <cluster>
    ecs-deploy deploy <tag> --cluster <cluster> [--service <name> ...]
    ecs-deploy rollback [rev] --cluster <cluster> [--service <name> ...] [--verify]
    ecs-deploy configure [get|set|unset] [key] [val] --cluster <cluster> [--service <name> ...]
    ecs-deploy update-agents --cluster <cluster>

Without --service, commands target the first page of services in the cluster.
Exit codes: 0 success, 1 AWS API failure, 2 usage or validation failure.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ecs_deploy import actions
from ecs_deploy.config import (
    LOG_LEVELS,
    DeployConfig,
    get_ecs_client,
    load_config,
    resolve_log_level,
)
from ecs_deploy.exceptions import EcsDeployError

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger("ecs_deploy").setLevel(level)


def _print_payload(payload: Any, *, stream: Any = None) -> None:
    stream = stream or sys.stdout
    if payload is None:
        return
    if isinstance(payload, (dict, list)):
        print(json.dumps(payload, indent=2, sort_keys=True), file=stream)
        return
    print(payload, file=stream)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--region", default=None, help="AWS region (default $AWS_REGION)")
    parser.add_argument("--cluster", default=None, help="ECS cluster (default $ECS_CLUSTER)")
    parser.add_argument("--page-size", type=int, default=None)
    parser.add_argument("--wait-delay", type=int, default=None)
    parser.add_argument("--wait-max-attempts", type=int, default=None)
    parser.add_argument("--max-workers", type=int, default=None)


def _add_service_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-s",
        "--service",
        dest="services",
        action="append",
        default=None,
        help="Service to target; repeat for several (default: all services in the cluster)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ecs-deploy",
        description="Deploy, roll back and configure ECS services.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=LOG_LEVELS,
        help="Log level on stderr (default $ECS_DEPLOY_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    clusters = subparsers.add_parser("clusters", help="List clusters in the region.")
    _add_common_arguments(clusters)

    services = subparsers.add_parser("services", help="List services in the cluster.")
    _add_common_arguments(services)

    deploy = subparsers.add_parser("deploy", help="Deploy an image tag to services.")
    _add_common_arguments(deploy)
    _add_service_argument(deploy)
    deploy.add_argument("tag", help="Image tag to deploy")

    rollback = subparsers.add_parser(
        "rollback",
        help="Roll services back to an earlier task definition revision.",
    )
    _add_common_arguments(rollback)
    _add_service_argument(rollback)
    rollback.add_argument(
        "rev",
        nargs="?",
        type=int,
        default=None,
        help="Negative revision offset (default -1)",
    )
    rollback.add_argument(
        "--verify",
        action="store_true",
        help="Check that target revisions exist before updating services",
    )

    configure = subparsers.add_parser(
        "configure",
        help="Show, get, set or unset service environment variables.",
    )
    _add_common_arguments(configure)
    _add_service_argument(configure)
    configure.add_argument("action", nargs="?", default=None, help="get, set or unset")
    configure.add_argument("key", nargs="?", default=None)
    configure.add_argument("val", nargs="?", default=None)

    update_agents = subparsers.add_parser(
        "update-agents",
        help="Request ECS agent updates on every container instance.",
    )
    _add_common_arguments(update_agents)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _config_from_args(args: argparse.Namespace) -> DeployConfig:
    return load_config(
        region=args.region,
        cluster=args.cluster,
        page_size=args.page_size,
        wait_delay=args.wait_delay,
        wait_max_attempts=args.wait_max_attempts,
        max_workers=args.max_workers,
    )


def _handle_configure(args: argparse.Namespace, ecs: Any, config: DeployConfig) -> None:
    services = args.services or []
    result = actions.configure(ecs, config, services, args.action, args.key, args.val)
    if args.action is None:
        for listing in result:
            if len(result) != 1:
                print(f"[TaskDef Family: {listing.family} :: Container: {listing.container}]")
            _print_payload(listing.env)
            print()
    elif args.action == "get":
        _print_payload(result)


def _run_command(args: argparse.Namespace, ecs: Any, config: DeployConfig) -> None:
    if args.command == "clusters":
        _print_payload(actions.list_clusters(ecs))
    elif args.command == "services":
        _print_payload(actions.list_services(ecs, config))
    elif args.command == "deploy":
        actions.deploy(ecs, config, args.services or [], args.tag)
    elif args.command == "rollback":
        actions.rollback(ecs, config, args.services or [], args.rev, verify=args.verify)
    elif args.command == "configure":
        _handle_configure(args, ecs, config)
    elif args.command == "update-agents":
        actions.update_agents(ecs, config)
    else:
        raise EcsDeployError(f"Unsupported command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        configure_logging(resolve_log_level(args.log_level))
        config = _config_from_args(args)
        ecs = get_ecs_client(config.region)
        _run_command(args, ecs, config)
    except (ClientError, BotoCoreError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except EcsDeployError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
