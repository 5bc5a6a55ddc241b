"""Terraform plan format versions and version negotiation.

The plan format is a closed set of versions. ``parse_version`` classifies a
raw ``--tf-version`` value without side effects; ``negotiate_version`` turns
that classification into the single version used for the rest of a run,
warning when the default is applied and failing on anything unrecognized.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from tfvalidator.core.exceptions import ConfigurationError

TF_VERSION_FLAG = "--tf-version"


class TerraformVersion(str, Enum):
    """Supported Terraform plan format versions."""

    TF11 = "0.11"
    TF12 = "0.12"

    def __str__(self) -> str:
        return self.value


DEFAULT_VERSION = TerraformVersion.TF11


def supported_versions() -> list[str]:
    """Return the accepted --tf-version values in declaration order."""
    return [version.value for version in TerraformVersion]


class NegotiationStatus(Enum):
    """Outcome of classifying a raw --tf-version value.

    Attributes:
        ACCEPTED: Value is a supported version and is used unchanged
        DEFAULTED: Value was empty and the default version applies
        REJECTED: Value is not empty and not a supported version
    """

    ACCEPTED = "accepted"
    DEFAULTED = "defaulted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class NegotiatedVersion:
    """Result of ``parse_version``.

    Attributes:
        raw: The value received on the command line
        status: How the value was classified
        version: The version to use, None when rejected
    """

    raw: str
    status: NegotiationStatus
    version: TerraformVersion | None = None


def parse_version(raw: str) -> NegotiatedVersion:
    """Classify a raw --tf-version value.

    Args:
        raw: Flag value as given on the command line (may be empty)

    Returns:
        NegotiatedVersion tagged ACCEPTED, DEFAULTED or REJECTED

    Example:
        >>> parse_version("0.12").version
        <TerraformVersion.TF12: '0.12'>
        >>> parse_version("").status
        <NegotiationStatus.DEFAULTED: 'defaulted'>
        >>> parse_version("1.5").status
        <NegotiationStatus.REJECTED: 'rejected'>
    """
    if raw == "":
        return NegotiatedVersion(raw=raw, status=NegotiationStatus.DEFAULTED, version=DEFAULT_VERSION)

    try:
        version = TerraformVersion(raw)
    except ValueError:
        return NegotiatedVersion(raw=raw, status=NegotiationStatus.REJECTED)

    return NegotiatedVersion(raw=raw, status=NegotiationStatus.ACCEPTED, version=version)


def negotiate_version(raw: str, console: logging.Logger) -> TerraformVersion:
    """Establish the plan format version for this invocation.

    Runs once per invocation, before the selected subcommand's handler.

    Args:
        raw: Flag value as given on the command line (may be empty)
        console: Logger receiving the user-facing default-version warning

    Returns:
        The validated version

    Raises:
        ConfigurationError: If the value is not empty and not supported
    """
    negotiated = parse_version(raw)

    if negotiated.status is NegotiationStatus.REJECTED:
        supported = supported_versions()
        raise ConfigurationError(
            f"Possible values for {TF_VERSION_FLAG} flag are "
            f"[{', '.join(supported)}], got: {raw}",
            flag=TF_VERSION_FLAG,
            value=raw,
            supported=supported,
        )

    if negotiated.status is NegotiationStatus.DEFAULTED:
        console.warning(
            "Warning: %s flag not defined, using default value: %s",
            TF_VERSION_FLAG,
            negotiated.version,
        )

    return negotiated.version  # type: ignore[return-value]
