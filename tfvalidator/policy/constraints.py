"""Constraint kinds evaluated by the policy engine.

Every constraint evaluates the asset frame built by ``assets_to_frame``. A
constraint first narrows the frame to the assets it targets (``match``) and
then uses Polars expressions to find the assets that break it:

- required_field: a field must be present
- allowed_values: a present field must hold one of the listed values
- denied_values: a present field must not hold any of the listed values
- field_pattern: a present field must fully match a regular expression
- iam_member_allowlist: every IAM member must fully match one of the patterns

Fields are dotted paths into the resource data (``labels.env``,
``network_interface[0].network``) resolved with JSONPath.
"""

import re
from collections.abc import Sequence
from typing import Any, ClassVar

import polars as pl

from tfvalidator.policy.result import Violation

SEVERITIES = ("critical", "high", "medium", "low")

_FIELD_SEGMENT = re.compile(r"^(?P<key>[^.\[\]]+)(?P<indices>(\[\d+\])*)$")
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_SCALAR_TYPES = (str, int, float, bool)

# Shape of the iam_policy column once decoded
_IAM_POLICY_DTYPE = pl.Struct(
    {
        "bindings": pl.List(
            pl.Struct({"role": pl.String, "members": pl.List(pl.String)})
        )
    }
)


def field_json_path(field: str) -> str:
    """Translate a dotted field path into a JSONPath expression.

    Args:
        field: Dotted path, optionally with list indices

    Returns:
        JSONPath expression rooted at ``$``

    Raises:
        ValueError: If the path is empty or malformed

    Example:
        >>> field_json_path("network_interface[0].network")
        '$.network_interface[0].network'
        >>> field_json_path("labels.cost-center")
        "$.labels['cost-center']"
    """
    if not isinstance(field, str) or not field:
        raise ValueError(f"field must be a non-empty string, got: {field!r}")

    parts = ["$"]
    for segment in field.split("."):
        match = _FIELD_SEGMENT.match(segment)
        if match is None:
            raise ValueError(f"Invalid field path: '{field}'")

        key = match.group("key")
        if _IDENTIFIER.match(key):
            parts.append(f".{key}")
        else:
            parts.append(f"['{key}']")
        parts.append(match.group("indices"))

    return "".join(parts)


def full_match_pattern(pattern: Any) -> str:
    """Anchor a pattern for full matching and check that Polars can compile it.

    Constraints run their patterns with the Polars regex engine, which has no
    lookaround or backreferences, so a pattern Python accepts may still fail.

    Raises:
        ValueError: If the pattern is not a string or does not compile
    """
    if not isinstance(pattern, str):
        raise ValueError(f"pattern must be a string, got: {pattern!r}")

    anchored = f"^(?:{pattern})$"
    try:
        pl.select(pl.lit("").str.contains(anchored))
    except pl.exceptions.PolarsError as e:
        raise ValueError(f"Invalid pattern '{pattern}': {e}") from e
    return anchored


def scalar_values(values: Any, noun: str = "value") -> list[Any]:
    """Check that constraint params hold a non-empty list of scalars.

    Example:
        >>> scalar_values("EU")
        Traceback (most recent call last):
        ...
        ValueError: values must be a list, got: 'EU'
    """
    if not isinstance(values, (list, tuple)):
        raise ValueError(f"{noun}s must be a list, got: {values!r}")
    if not values:
        raise ValueError(f"{noun}s must contain at least one {noun}")
    for value in values:
        if not isinstance(value, _SCALAR_TYPES):
            raise ValueError(f"{noun}s must hold only scalars, got: {value!r}")
    return list(values)


def normalize_value(value: Any) -> str:
    """Render a constraint value the way JSONPath matching renders data values."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Constraint:
    """Base class for constraint kinds.

    Subclasses set ``kind`` and implement ``_find_violations``, returning
    violations for the rows of an already matched frame.

    Attributes:
        name: Unique name of the constraint in its library
        severity: One of SEVERITIES
        asset_types: Asset types the constraint applies to (all when empty)
        ancestries: Ancestry path prefixes the constraint applies to
                    (all when empty)
    """

    kind: ClassVar[str] = ""

    def __init__(
        self,
        name: str,
        severity: str = "high",
        asset_types: Sequence[str] | None = None,
        ancestries: Sequence[str] | None = None,
    ):
        if severity not in SEVERITIES:
            raise ValueError(
                f"severity must be one of {', '.join(SEVERITIES)}, got: {severity}"
            )

        self.name = name
        self.severity = severity
        self.asset_types = list(asset_types or [])
        self.ancestries = list(ancestries or [])

    def select(self, frame: pl.DataFrame) -> pl.DataFrame:
        """Return the rows of the asset frame this constraint applies to."""
        selected = frame
        if self.asset_types:
            selected = selected.filter(pl.col("asset_type").is_in(self.asset_types))
        if self.ancestries:
            selected = selected.filter(
                pl.any_horizontal(
                    [pl.col("ancestry_path").str.starts_with(prefix) for prefix in self.ancestries]
                )
            )
        return selected

    def evaluate(self, frame: pl.DataFrame) -> list[Violation]:
        """Evaluate the constraint against the asset frame.

        Args:
            frame: Asset frame built by ``assets_to_frame``

        Returns:
            One violation per offending asset (per offending member for IAM
            constraints), in frame order
        """
        selected = self.select(frame)
        if selected.is_empty():
            return []
        return self._find_violations(selected)

    def _find_violations(self, frame: pl.DataFrame) -> list[Violation]:
        raise NotImplementedError

    def _violation(self, resource: str, message: str, **metadata: Any) -> Violation:
        return Violation(
            constraint=self.name,
            resource=resource,
            message=message,
            severity=self.severity,
            metadata=metadata,
        )


class FieldConstraint(Constraint):
    """Base class for constraints on a single resource data field."""

    def __init__(self, name: str, field: str, **options: Any):
        super().__init__(name, **options)
        self.field = field
        self.json_path = field_json_path(field)

    def _with_value(self, frame: pl.DataFrame) -> pl.DataFrame:
        return frame.select(
            "name",
            pl.col("data").str.json_path_match(self.json_path).alias("value"),
        )


class RequiredFieldConstraint(FieldConstraint):
    """Requires a field to be present in the resource data.

    Example:
        >>> constraint = RequiredFieldConstraint("require-env-label", field="labels.env")
        >>> [v.message for v in constraint.evaluate(frame)]
        ["Field 'labels.env' is missing"]
    """

    kind = "required_field"

    def _find_violations(self, frame: pl.DataFrame) -> list[Violation]:
        missing = self._with_value(frame).filter(pl.col("value").is_null())
        return [
            self._violation(row["name"], f"Field '{self.field}' is missing", field=self.field)
            for row in missing.iter_rows(named=True)
        ]


class AllowedValuesConstraint(FieldConstraint):
    """Restricts a field to a set of values. Absent fields are not checked."""

    kind = "allowed_values"

    def __init__(self, name: str, field: str, values: Sequence[Any], **options: Any):
        values = scalar_values(values)
        super().__init__(name, field, **options)
        self.values = [normalize_value(value) for value in values]

    def _find_violations(self, frame: pl.DataFrame) -> list[Violation]:
        offending = self._with_value(frame).filter(
            pl.col("value").is_not_null() & ~pl.col("value").is_in(self.values)
        )
        allowed = ", ".join(self.values)
        return [
            self._violation(
                row["name"],
                f"Field '{self.field}' has value '{row['value']}', allowed values are [{allowed}]",
                field=self.field,
                value=row["value"],
            )
            for row in offending.iter_rows(named=True)
        ]


class DeniedValuesConstraint(FieldConstraint):
    """Forbids a set of values for a field."""

    kind = "denied_values"

    def __init__(self, name: str, field: str, values: Sequence[Any], **options: Any):
        values = scalar_values(values)
        super().__init__(name, field, **options)
        self.values = [normalize_value(value) for value in values]

    def _find_violations(self, frame: pl.DataFrame) -> list[Violation]:
        offending = self._with_value(frame).filter(pl.col("value").is_in(self.values))
        return [
            self._violation(
                row["name"],
                f"Field '{self.field}' has denied value '{row['value']}'",
                field=self.field,
                value=row["value"],
            )
            for row in offending.iter_rows(named=True)
        ]


class FieldPatternConstraint(FieldConstraint):
    """Requires a present field to fully match a regular expression."""

    kind = "field_pattern"

    def __init__(self, name: str, field: str, pattern: str, **options: Any):
        self.anchored = full_match_pattern(pattern)
        super().__init__(name, field, **options)
        self.pattern = pattern

    def _find_violations(self, frame: pl.DataFrame) -> list[Violation]:
        offending = self._with_value(frame).filter(
            pl.col("value").is_not_null()
            & ~pl.col("value").str.contains(self.anchored)
        )
        return [
            self._violation(
                row["name"],
                f"Field '{self.field}' value '{row['value']}' does not match '{self.pattern}'",
                field=self.field,
                value=row["value"],
            )
            for row in offending.iter_rows(named=True)
        ]


class IamMemberAllowlistConstraint(Constraint):
    """Requires every IAM member to fully match one of the allowed patterns.

    Example:
        >>> constraint = IamMemberAllowlistConstraint(
        ...     "internal-members-only", patterns=["user:.*@example\\.com"]
        ... )
    """

    kind = "iam_member_allowlist"

    def __init__(self, name: str, patterns: Sequence[str], **options: Any):
        patterns = scalar_values(patterns, "pattern")
        self.anchored = [full_match_pattern(pattern) for pattern in patterns]
        super().__init__(name, **options)
        self.patterns = patterns

    def _find_violations(self, frame: pl.DataFrame) -> list[Violation]:
        members = (
            frame.select(
                "name",
                pl.col("iam_policy")
                .str.json_decode(_IAM_POLICY_DTYPE)
                .struct.field("bindings")
                .alias("binding"),
            )
            .explode("binding")
            .filter(pl.col("binding").is_not_null())
            .unnest("binding")
            .explode("members")
            .filter(pl.col("members").is_not_null())
            .rename({"members": "member"})
        )
        allowed = pl.any_horizontal(
            [pl.col("member").str.contains(pattern) for pattern in self.anchored]
        )
        offending = members.filter(~allowed)
        return [
            self._violation(
                row["name"],
                f"IAM member '{row['member']}' in role '{row['role']}' is not allowed",
                role=row["role"],
                member=row["member"],
            )
            for row in offending.iter_rows(named=True)
        ]
