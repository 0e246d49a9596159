"""
containersecurity CLI - Fill, check and run container security builds.

Commands:
    containersecurity fill FIELD    List the options for a field
    containersecurity check FIELD   Validate a field
    containersecurity run           Execute a build against the environment

Field values are read from a build configuration file and can be
overridden with ``--set``. Fields of an attestation step are read from
the step selected with ``--step``.

Usage::

    containersecurity fill attestorId --config build.yaml --step 0
    containersecurity check containerQualifier --set containerQualifier='$DIGEST'
    containersecurity --log-format json run --config build.yaml
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Callable, Optional

import click
import yaml
from pydantic import ValidationError

from containersecurity import __version__
from containersecurity.client.factory import get_client_factory
from containersecurity.config import get_config, load_build_config
from containersecurity.descriptors import BinAuthzDescriptor, BuildDescriptor
from containersecurity.errors import BuildFailure
from containersecurity.logger import BuildLogger, configure_logging
from containersecurity.validation import SelectableList, ValidationKind, ValidationResult

logger = logging.getLogger(__name__)

BUILD_FIELDS = (
    "credentialsId",
    "projectId",
    "containerUri",
    "containerQualifier",
    "containerQualifierType",
)
STEP_FIELDS = ("attestorProjectId", "attestorId", "publicKeyId")

FILL_FIELDS = (
    "credentialsId",
    "projectId",
    "containerQualifierType",
    "attestorProjectId",
    "attestorId",
    "publicKeyId",
)
CHECK_FIELDS = (
    "credentialsId",
    "projectId",
    "containerUri",
    "containerQualifier",
    "attestorProjectId",
    "attestorId",
    "publicKeyId",
)


def _as_bool(value: str, default: bool = True) -> bool:
    if not value:
        return default
    return value.strip().lower() in ("true", "1", "yes", "digest")


def _field_values(
    config_path: Optional[str], step_index: int, overrides: tuple[str, ...]
) -> dict[str, str]:
    """Collect field values from the config file, then ``--set`` overrides."""
    data: dict[str, Any] = {}
    if config_path:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

    values: dict[str, Any] = {name: data.get(name) for name in BUILD_FIELDS}
    steps = data.get("buildSteps") or []
    if steps:
        if step_index >= len(steps):
            raise click.BadParameter(
                f"build has {len(steps)} step(s), no step {step_index}",
                param_hint="--step",
            )
        values.update({name: steps[step_index].get(name) for name in STEP_FIELDS})

    for item in overrides:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--set")
        values[key] = value

    return {key: "" if value is None else str(value) for key, value in values.items()}


def _fill_actions(
    build: BuildDescriptor, step: BinAuthzDescriptor, v: dict[str, str]
) -> dict[str, Callable[[], SelectableList]]:
    return {
        "credentialsId": build.fill_credentials_id_items,
        "projectId": lambda: build.fill_project_id_items(v["credentialsId"], v["projectId"]),
        "containerQualifierType": build.fill_container_qualifier_type_items,
        "attestorProjectId": lambda: step.fill_attestor_project_id_items(
            v["credentialsId"], v.get("attestorProjectId", "")
        ),
        "attestorId": lambda: step.fill_attestor_id_items(
            v["credentialsId"], v.get("attestorProjectId", ""), v.get("attestorId", "")
        ),
        "publicKeyId": lambda: step.fill_public_key_id_items(
            v["credentialsId"],
            v.get("attestorProjectId", ""),
            v.get("attestorId", ""),
            v.get("publicKeyId", ""),
        ),
    }


def _check_actions(
    build: BuildDescriptor, step: BinAuthzDescriptor, v: dict[str, str]
) -> dict[str, Callable[[], ValidationResult]]:
    return {
        "credentialsId": lambda: build.check_credentials_id(v["credentialsId"]),
        "projectId": lambda: build.check_project_id(v["credentialsId"], v["projectId"]),
        "containerUri": lambda: build.check_container_uri(
            v["projectId"], v["containerUri"]
        ),
        "containerQualifier": lambda: build.check_container_qualifier(
            v["credentialsId"],
            v["containerQualifier"],
            _as_bool(v["containerQualifierType"]),
        ),
        "attestorProjectId": lambda: step.check_attestor_project_id(
            v["credentialsId"], v.get("attestorProjectId", "")
        ),
        "attestorId": lambda: step.check_attestor_id(
            v["credentialsId"], v.get("attestorProjectId", ""), v.get("attestorId", "")
        ),
        "publicKeyId": lambda: step.check_public_key_id(
            v["credentialsId"],
            v.get("attestorProjectId", ""),
            v.get("attestorId", ""),
            v.get("publicKeyId", ""),
        ),
    }


def _field_options(f: Callable) -> Callable:
    f = click.option(
        "--set", "overrides", multiple=True, metavar="KEY=VALUE",
        help="Override a field value (can specify multiple)",
    )(f)
    f = click.option(
        "--step", "step_index", type=click.IntRange(min=0), default=0,
        help="Index of the build step for attestation fields (default: 0)",
    )(f)
    f = click.option(
        "--config", "config_path", type=click.Path(exists=True, dir_okay=False),
        help="Build configuration file",
    )(f)
    return f


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level", type=click.Choice(["debug", "info", "warning", "error"]),
    default=None, help="Logging level (default: from configuration)",
)
@click.option(
    "--log-format", type=click.Choice(["text", "json"]),
    default=None, help="Log output format (default: from configuration)",
)
def main(log_level: Optional[str], log_format: Optional[str]):
    """containersecurity - Signed attestations for container images."""
    config = get_config()
    configure_logging(log_level or config.log_level, log_format or config.log_format)


@main.command("fill")
@click.argument("field", type=click.Choice(FILL_FIELDS))
@_field_options
@click.option("--json", "as_json", is_flag=True, help="Print the options as JSON")
def fill_cmd(
    field: str,
    config_path: Optional[str],
    step_index: int,
    overrides: tuple[str, ...],
    as_json: bool,
):
    """List the options for FIELD, marking the selected one with '*'.

    Example:

        containersecurity fill projectId --set credentialsId=ci-robot
    """
    values = _field_values(config_path, step_index, overrides)
    build = BuildDescriptor(get_client_factory)
    step = BinAuthzDescriptor(get_client_factory)
    options = _fill_actions(build, step, values)[field]()

    if as_json:
        click.echo(json.dumps(options.model_dump(), indent=2))
        return
    for option in options:
        marker = "*" if option.selected else " "
        line = f"{marker} {option.label}"
        if option.value != option.label:
            line += f" [{option.value}]"
        click.echo(line.rstrip())


@main.command("check")
@click.argument("field", type=click.Choice(CHECK_FIELDS))
@_field_options
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
def check_cmd(
    field: str,
    config_path: Optional[str],
    step_index: int,
    overrides: tuple[str, ...],
    as_json: bool,
):
    """Validate FIELD. Exits with code 1 if it is invalid.

    Example:

        containersecurity check containerUri --config build.yaml
    """
    values = _field_values(config_path, step_index, overrides)
    build = BuildDescriptor(get_client_factory)
    step = BinAuthzDescriptor(get_client_factory)
    result = _check_actions(build, step, values)[field]()

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
    elif result.kind == ValidationKind.OK:
        click.echo("OK")
    else:
        click.echo(f"{result.kind.value.upper()}: {result.message}")

    if result.is_error:
        sys.exit(1)


@main.command("run")
@click.option(
    "--config", "config_path", required=True,
    type=click.Path(exists=True, dir_okay=False), help="Build configuration file",
)
def run_cmd(config_path: str):
    """Resolve the container and run every build step.

    The build environment is the process environment, so a digest of
    ``$IMAGE_DIGEST`` is read from the IMAGE_DIGEST variable.
    """
    try:
        build = load_build_config(config_path)
        logger.debug("Loaded build configuration %s", config_path)
    except ValidationError as e:
        click.echo(f"Error: invalid build configuration {config_path}:\n{e}", err=True)
        sys.exit(1)

    build_logger = BuildLogger(project=build.project_id)
    try:
        results = build.perform(dict(os.environ), build_logger, get_client_factory)
    except BuildFailure as e:
        click.echo(f"Build failed: {e}", err=True)
        sys.exit(1)

    for result in results:
        click.echo(f"{result.reference}: {result.outcome.value}")


if __name__ == "__main__":
    main()
