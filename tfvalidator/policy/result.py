"""Violation data structure.

A Violation records one constraint failing on one asset. Violations are the
return type of every policy engine and are rendered by the ``validate``
command either as text lines or as JSON objects.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Violation:
    """One constraint failing on one asset.

    Attributes:
        constraint: Name of the constraint that failed
        resource: Full name of the asset that violates it
        message: Human-readable description of the failure
        severity: Severity declared by the constraint ("high", "medium", "low")
        metadata: Additional context (field path, offending value, ...)

    Example:
        >>> violation = Violation(
        ...     constraint="require-env-label",
        ...     resource="//storage.googleapis.com/logs",
        ...     message="Field 'labels.env' is missing",
        ... )
        >>> print(violation.format())
        Constraint require-env-label on resource //storage.googleapis.com/logs: Field 'labels.env' is missing
    """

    constraint: str
    resource: str
    message: str
    severity: str = "high"
    metadata: dict[str, Any] = field(default_factory=dict)

    def format(self) -> str:
        """Format the violation as a single line of text."""
        return f"Constraint {self.constraint} on resource {self.resource}: {self.message}"

    def to_json(self) -> dict[str, Any]:
        """Serialize the violation for JSON output.

        Example:
            >>> Violation("c", "r", "m").to_json()
            {'constraint': 'c', 'resource': 'r', 'message': 'm', 'severity': 'high', 'metadata': {}}
        """
        return {
            "constraint": self.constraint,
            "resource": self.resource,
            "message": self.message,
            "severity": self.severity,
            "metadata": dict(self.metadata),
        }
