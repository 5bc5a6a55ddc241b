"""Immutable settings for one CLI invocation.

Each subcommand owns a frozen settings group built from its flags. The
dispatcher combines the group with the global flags and the negotiated plan
format version into a single ``Settings`` record, built once per invocation
before the handler runs. Handlers receive it read-only.

Configuration comes from command-line flags only; there are no configuration
files and no environment variables.
"""

from dataclasses import dataclass
from pathlib import Path

from tfvalidator.core.versions import TerraformVersion


@dataclass(frozen=True)
class ConvertSettings:
    """Flags of the ``convert`` command."""

    plan: Path
    project: str | None = None
    ancestry: str | None = None


@dataclass(frozen=True)
class ValidateSettings:
    """Flags of the ``validate`` command.

    Attributes:
        plan: Path to the plan file
        policy_path: Policy library to validate against (required)
        project: Project for resources that do not declare one
        ancestry: Ancestry path override for the project
        output_json: Print violations as a JSON array
    """

    plan: Path
    policy_path: Path
    project: str | None = None
    ancestry: str | None = None
    output_json: bool = False


@dataclass(frozen=True)
class ListSupportedResourcesSettings:
    """The ``list-supported-resources`` command takes no flags."""


@dataclass(frozen=True)
class VersionSettings:
    """The ``version`` command takes no flags."""


CommandSettings = ConvertSettings | ValidateSettings | ListSupportedResourcesSettings | VersionSettings


@dataclass(frozen=True)
class Settings:
    """Settings of one invocation.

    Attributes:
        verbose: Whether diagnostics are shown; affects log routing only
        tf_version: Negotiated plan format version
        command: Settings group of the selected subcommand

    Example:
        >>> settings = Settings(
        ...     verbose=False,
        ...     tf_version=TerraformVersion.TF12,
        ...     command=ConvertSettings(plan=Path("plan.json"), project="my-project"),
        ... )
        >>> settings.command.project
        'my-project'
    """

    verbose: bool
    tf_version: TerraformVersion
    command: CommandSettings
