"""Policy evaluation for terraform-validator.

This package provides the default policy engine: a library of YAML
constraints evaluated against canonical assets with Polars.
"""

from tfvalidator.policy.constraints import (
    AllowedValuesConstraint,
    Constraint,
    DeniedValuesConstraint,
    FieldPatternConstraint,
    IamMemberAllowlistConstraint,
    RequiredFieldConstraint,
)
from tfvalidator.policy.engine import ConstraintEngine
from tfvalidator.policy.library import CONSTRAINT_REGISTRY, load_policy_library
from tfvalidator.policy.result import Violation

__all__ = [
    "CONSTRAINT_REGISTRY",
    "AllowedValuesConstraint",
    "Constraint",
    "ConstraintEngine",
    "DeniedValuesConstraint",
    "FieldPatternConstraint",
    "IamMemberAllowlistConstraint",
    "RequiredFieldConstraint",
    "Violation",
    "load_policy_library",
]
