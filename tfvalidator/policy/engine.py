"""Default policy engine.

Loads a policy library and evaluates every constraint against the asset frame.
All constraints run; there is no fail-fast mode, so a single invocation reports
every violation in the plan.
"""

import logging
from collections.abc import Sequence
from pathlib import Path

from tfvalidator.core.assets import Asset, assets_to_frame
from tfvalidator.policy.library import load_policy_library
from tfvalidator.policy.result import Violation

logger = logging.getLogger(__name__)


class ConstraintEngine:
    """Evaluates assets against a YAML constraint library.

    Example:
        >>> engine = ConstraintEngine()
        >>> violations = engine.validate(assets, Path("policies/"))
        >>> for violation in violations:
        ...     print(violation.format())
    """

    def validate(self, assets: Sequence[Asset], policy_path: Path) -> list[Violation]:
        """Evaluate assets against the library at ``policy_path``.

        Args:
            assets: Assets to evaluate
            policy_path: YAML file or directory holding the library

        Returns:
            Violations sorted by constraint name, then resource name

        Raises:
            PolicyError: If the library cannot be loaded
        """
        constraints = load_policy_library(policy_path)
        frame = assets_to_frame(assets)

        violations: list[Violation] = []
        for constraint in constraints:
            found = constraint.evaluate(frame)
            logger.debug("Constraint %s: %d violations", constraint.name, len(found))
            violations.extend(found)

        logger.info(
            "Evaluated %d assets against %d constraints: %d violations",
            len(assets),
            len(constraints),
            len(violations),
        )
        return sorted(violations, key=lambda v: (v.constraint, v.resource))
