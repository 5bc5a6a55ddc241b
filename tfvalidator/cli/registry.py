"""Subcommand and collaborator registry.

Subcommands are registered by name at import time. Each one pairs a flag
declaration (a function whose signature declares the subcommand's flags and
which returns its frozen settings group) with a handler that runs the
subcommand against the injected collaborators.

The registry supports:
- Registration of subcommands by unique name
- Retrieval by name or by flag declaration
- Listing registered subcommands in registration order
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from tfvalidator.cli.settings import CommandSettings, Settings
from tfvalidator.core.converter import Converter
from tfvalidator.core.protocols import PlanConverter, PolicyEngine, ResourceLister
from tfvalidator.policy.engine import ConstraintEngine


@dataclass(frozen=True)
class Collaborators:
    """Components the subcommand handlers delegate to.

    Attributes:
        converter: Converts plans into assets
        policy_engine: Evaluates assets against a policy library
        lister: Reports supported resource types
    """

    converter: PlanConverter
    policy_engine: PolicyEngine
    lister: ResourceLister


def default_collaborators() -> Collaborators:
    """Return the built-in converter and policy engine."""
    converter = Converter()
    return Collaborators(converter=converter, policy_engine=ConstraintEngine(), lister=converter)


Handler = Callable[[Settings, Collaborators], int]


@dataclass(frozen=True)
class Subcommand:
    """A registered subcommand.

    Attributes:
        name: Name on the command line (e.g. "list-supported-resources")
        declare: Flag declaration; returns the subcommand's settings group
        handler: Runs the subcommand and returns an exit code
    """

    name: str
    declare: Callable[..., CommandSettings]
    handler: Handler


# Registry mapping subcommand names to subcommands, in registration order
SUBCOMMANDS: dict[str, Subcommand] = {}


def register_subcommand(subcommand: Subcommand) -> None:
    """Register a subcommand.

    Raises:
        ValueError: If a subcommand with the same name is already registered

    Example:
        >>> register_subcommand(
        ...     Subcommand(name="version", declare=commands.version, handler=commands.run_version)
        ... )
    """
    if subcommand.name in SUBCOMMANDS:
        raise ValueError(f"Subcommand '{subcommand.name}' is already registered")
    SUBCOMMANDS[subcommand.name] = subcommand


def get_subcommand(name: str) -> Subcommand:
    """Return the subcommand registered under ``name``.

    Raises:
        KeyError: If no subcommand has that name
    """
    if name not in SUBCOMMANDS:
        available = ", ".join(SUBCOMMANDS)
        raise KeyError(f"Unknown subcommand '{name}'. Available subcommands: {available}")
    return SUBCOMMANDS[name]


def find_subcommand(declare: Any) -> Subcommand | None:
    """Return the subcommand whose flag declaration is ``declare``, if any."""
    for subcommand in SUBCOMMANDS.values():
        if subcommand.declare is declare:
            return subcommand
    return None


def list_subcommands() -> list[Subcommand]:
    """List registered subcommands in registration order."""
    return list(SUBCOMMANDS.values())
