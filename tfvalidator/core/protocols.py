"""Protocol definitions for the collaborators driven by the command line.

The command line never converts plans or evaluates policy itself. It reaches
the components doing that work only through these interfaces, so tests and
alternative back ends can substitute their own implementations.

Protocols:
    - PlanConverter: Converts a plan file into canonical assets
    - PolicyEngine: Evaluates assets against a policy library
    - ResourceLister: Reports the resource types the converter supports

Implementations signal failures by raising CollaboratorError subclasses from
tfvalidator.core.exceptions. The command line propagates them unchanged.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from tfvalidator.core.assets import Asset
from tfvalidator.core.versions import TerraformVersion
from tfvalidator.policy.result import Violation


class PlanConverter(Protocol):
    """Protocol for plan converters.

    Example:
        >>> class StaticConverter:
        ...     def convert(self, plan, version, project=None, ancestry=None):
        ...         return []
        ...
        >>> StaticConverter().convert(Path("plan.json"), TerraformVersion.TF12)
        []
    """

    def convert(
        self,
        plan: Path,
        version: TerraformVersion,
        project: str | None = None,
        ancestry: str | None = None,
    ) -> list[Asset]:
        """Convert a plan file into assets.

        Args:
            plan: Path to the plan file
            version: Negotiated plan format version
            project: Project override for resources that do not declare one
            ancestry: Ancestry path override

        Returns:
            Assets ordered by name

        Raises:
            CollaboratorError: If the plan cannot be read or converted
        """
        ...


class PolicyEngine(Protocol):
    """Protocol for policy engines.

    An engine loads the policy library found at ``policy_path`` and evaluates
    every constraint against the assets. Violations are findings, not errors:
    an engine raises only when the library itself is unusable.
    """

    def validate(self, assets: Sequence[Asset], policy_path: Path) -> list[Violation]:
        """Evaluate assets against a policy library.

        Args:
            assets: Assets produced by a PlanConverter
            policy_path: File or directory holding the policy library

        Returns:
            Violations, empty when every asset complies

        Raises:
            CollaboratorError: If the policy library cannot be loaded
        """
        ...


class ResourceLister(Protocol):
    """Protocol for components that report supported resource types."""

    def supported_resources(self) -> list[str]:
        """Return supported Terraform resource types, sorted."""
        ...
