"""CLI command implementations.

This module implements the terraform-validator subcommands:
- convert: Convert a plan into assets and print them as JSON
- validate: Validate the assets of a plan against a policy library
- list-supported-resources: List the resource types the converter supports
- version: Print the build version

Every subcommand has two parts. The flag declaration is the function the
command line binds: its signature declares the flags and it returns the
subcommand's frozen settings group. The handler runs once the invocation's
``Settings`` exist and returns an exit code.
"""

import logging
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter

from tfvalidator import __version__
from tfvalidator.cli.exit_codes import ExitCode
from tfvalidator.cli.output import print_json, print_violations
from tfvalidator.cli.registry import Collaborators, Subcommand, register_subcommand
from tfvalidator.cli.settings import (
    ConvertSettings,
    ListSupportedResourcesSettings,
    Settings,
    ValidateSettings,
    VersionSettings,
)

logger = logging.getLogger(__name__)

PLAN_HELP = "Path to the Terraform plan JSON file"
PROJECT_HELP = "Provided project will be used for resources with no project set"
ANCESTRY_HELP = (
    "Override the ancestry location of the project "
    "(e.g. organization/123/folder/456)"
)


def convert(
    plan: Annotated[Path, Parameter(help=PLAN_HELP)],
    *,
    project: Annotated[str | None, Parameter(help=PROJECT_HELP)] = None,
    ancestry: Annotated[str | None, Parameter(help=ANCESTRY_HELP)] = None,
) -> ConvertSettings:
    """Convert Terraform plan resources into assets and print them as JSON."""
    return ConvertSettings(plan=plan, project=project, ancestry=ancestry)


def validate(
    plan: Annotated[Path, Parameter(help=PLAN_HELP)],
    *,
    policy_path: Annotated[Path, Parameter(help="Path to the policy library (file or directory)")],
    project: Annotated[str | None, Parameter(help=PROJECT_HELP)] = None,
    ancestry: Annotated[str | None, Parameter(help=ANCESTRY_HELP)] = None,
    output_json: Annotated[bool, Parameter(negative="", help="Print violations as JSON")] = False,
) -> ValidateSettings:
    """Validate that a Terraform plan conforms to a policy library."""
    return ValidateSettings(
        plan=plan,
        policy_path=policy_path,
        project=project,
        ancestry=ancestry,
        output_json=output_json,
    )


def list_supported_resources() -> ListSupportedResourcesSettings:
    """List supported Terraform resource types."""
    return ListSupportedResourcesSettings()


def version() -> VersionSettings:
    """Print the build version."""
    return VersionSettings()


def run_convert(settings: Settings, collaborators: Collaborators) -> int:
    """Convert the plan and print the assets.

    Calls the converter exactly once and never the policy engine.

    Args:
        settings: Invocation settings holding ConvertSettings
        collaborators: Injected collaborators

    Returns:
        Exit code (0 on success)

    Raises:
        CollaboratorError: If the converter fails
    """
    command: ConvertSettings = settings.command  # type: ignore[assignment]
    assets = collaborators.converter.convert(
        command.plan,
        settings.tf_version,
        project=command.project,
        ancestry=command.ancestry,
    )
    print_json([asset.to_json() for asset in assets])
    return ExitCode.SUCCESS


def run_validate(settings: Settings, collaborators: Collaborators) -> int:
    """Convert the plan, evaluate the assets and print the violations.

    Calls the converter once, then the policy engine once with the converter's
    assets.

    Args:
        settings: Invocation settings holding ValidateSettings
        collaborators: Injected collaborators

    Returns:
        ExitCode.SUCCESS when no violations are found,
        ExitCode.VIOLATIONS_FOUND otherwise

    Raises:
        CollaboratorError: If the converter or the policy engine fails
    """
    command: ValidateSettings = settings.command  # type: ignore[assignment]
    assets = collaborators.converter.convert(
        command.plan,
        settings.tf_version,
        project=command.project,
        ancestry=command.ancestry,
    )
    violations = collaborators.policy_engine.validate(assets, command.policy_path)

    print_violations(violations, output_json=command.output_json)

    if violations:
        logger.info("Found %d violations in %s", len(violations), command.plan)
        return ExitCode.VIOLATIONS_FOUND
    return ExitCode.SUCCESS


def run_list_supported_resources(settings: Settings, collaborators: Collaborators) -> int:
    """Print the supported resource types, one per line."""
    for resource_type in sorted(collaborators.lister.supported_resources()):
        print(resource_type)
    return ExitCode.SUCCESS


def run_version(settings: Settings, collaborators: Collaborators) -> int:
    print(f"Build version: {__version__}")
    return ExitCode.SUCCESS


def _register_subcommands() -> None:
    register_subcommand(Subcommand("convert", convert, run_convert))
    register_subcommand(Subcommand("validate", validate, run_validate))
    register_subcommand(
        Subcommand("list-supported-resources", list_supported_resources, run_list_supported_resources)
    )
    register_subcommand(Subcommand("version", version, run_version))


_register_subcommands()
