"""
ecs_deploy.task_definitions: pure helpers over ECS task definition payloads.

Nothing in this module talks to AWS. Inputs are the dicts returned by
describe_task_definition (either the full response or its "taskDefinition"
member); outputs are payloads accepted by register_task_definition.
"""

from __future__ import annotations

import copy
from typing import Any

from ecs_deploy.exceptions import InvalidRevisionError, UnsupportedTaskDefinitionError

TAG_SEP = ":"
PATH_SEP = "/"
DIGEST_SEP = "@"

# register_task_definition rejects server-populated fields (ARN, revision,
# status, registeredAt, ...); only these are sent back.
WRITABLE_TASK_DEF_PARAMS: tuple[str, ...] = (
    "containerDefinitions",
    "volumes",
    "family",
)

DEFAULT_RELATIVE_REVISION = -1


def extract_name_from_arn(arn: str) -> str:
    """Return the resource name from an ECS ARN.

    arn:aws:ecs:<region>:<account>:<resource_type>/[<cluster>/]<resource_name>
    """
    return arn.rsplit(PATH_SEP, 1)[-1]


def _task_definition(definition: dict[str, Any]) -> dict[str, Any]:
    return definition.get("taskDefinition", definition)


def single_container(definition: dict[str, Any]) -> dict[str, Any]:
    """Return the only container definition, rejecting multi-container definitions."""
    task_def = _task_definition(definition)
    containers = task_def.get("containerDefinitions") or []
    if len(containers) != 1:
        raise UnsupportedTaskDefinitionError(
            family=str(task_def.get("family", "unknown")),
            container_count=len(containers),
        )
    return containers[0]


def replace_image_tag(image: str, tag: str) -> str:
    """Swap the tag on an image reference, keeping any registry host:port intact.

    >>> replace_image_tag("registry:5000/team/app:v1", "v2")
    'registry:5000/team/app:v2'

    A pinned digest is dropped along with the tag:

    >>> replace_image_tag("team/app@sha256:abc", "v2")
    'team/app:v2'
    """
    prefix, sep, last = image.rpartition(PATH_SEP)
    repository = last.split(DIGEST_SEP, 1)[0].split(TAG_SEP, 1)[0]
    return f"{prefix}{sep}{repository}{TAG_SEP}{tag}"


def container_images(definition: dict[str, Any]) -> tuple[str, ...]:
    """Return every container's image, in definition order."""
    containers = _task_definition(definition).get("containerDefinitions") or []
    return tuple(container.get("image", "") for container in containers)


def make_updated_definition(
    definition: dict[str, Any],
    image_tag: str | None = None,
    environment: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    """Build a register_task_definition payload from an existing definition.

    Keeps only WRITABLE_TASK_DEF_PARAMS. With image_tag the container's image
    tag is replaced; with environment its environment list is replaced
    wholesale. The input is never mutated.
    """
    task_def = _task_definition(definition)
    new_def = {
        key: copy.deepcopy(task_def[key]) for key in WRITABLE_TASK_DEF_PARAMS if key in task_def
    }

    if image_tag is None and environment is None:
        return new_def

    container = single_container(new_def)
    if image_tag is not None:
        container["image"] = replace_image_tag(container["image"], image_tag)
    if environment is not None:
        container["environment"] = [dict(item) for item in environment]
    return new_def


def container_environment(definition: dict[str, Any]) -> list[dict[str, str]]:
    return list(single_container(definition).get("environment") or [])


def environment_as_mapping(environment: list[dict[str, str]]) -> dict[str, str]:
    # Later duplicates win.
    return {item["name"]: item.get("value", "") for item in environment}


def with_variable(environment: list[dict[str, str]], key: str, value: str) -> list[dict[str, str]]:
    """Append key=value; an existing entry with the same name is left in place."""
    return [*environment, {"name": key, "value": value}]


def without_variable(environment: list[dict[str, str]], key: str) -> list[dict[str, str]]:
    return [item for item in environment if item.get("name") != key]


def lookup_variable(environment: list[dict[str, str]], key: str) -> str | None:
    return environment_as_mapping(environment).get(key)


def validate_relative_revision(rev: int | None) -> int:
    relative = DEFAULT_RELATIVE_REVISION if rev is None else rev
    if relative >= 0:
        raise InvalidRevisionError("Relative revision must be a negative number")
    return relative


def previous_revision_arn(definition: dict[str, Any], rev: int | None = None) -> str:
    """Return the ARN of the revision `rev` steps before the definition's own revision.

    The target is computed, not looked up: nothing checks that it exists.
    """
    relative = validate_relative_revision(rev)
    task_def = _task_definition(definition)
    family = task_def["family"]
    target = int(task_def["revision"]) + relative
    if target < 1:
        raise InvalidRevisionError(
            f"Cannot roll {family}:{task_def['revision']} back by {-relative}; "
            "revisions start at 1"
        )
    base = task_def["taskDefinitionArn"].split(f"{PATH_SEP}{family}{TAG_SEP}")[0]
    return f"{base}{PATH_SEP}{family}{TAG_SEP}{target}"
