"""Policy library loading.

A policy library is a YAML file, or a directory searched recursively for
``*.yaml`` and ``*.yml`` files. Every YAML document in the library declares
one constraint:

    kind: allowed_values
    name: storage-location-eu
    severity: high
    match:
      asset_types: ["storage.googleapis.com/Bucket"]
      ancestries: ["organization/123"]
    params:
      field: location
      values: ["EU", "EUROPE-WEST1"]

Files are read in sorted path order so evaluation order is stable.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from tfvalidator.core.exceptions import PolicyError
from tfvalidator.policy.constraints import (
    SEVERITIES,
    AllowedValuesConstraint,
    Constraint,
    DeniedValuesConstraint,
    FieldPatternConstraint,
    IamMemberAllowlistConstraint,
    RequiredFieldConstraint,
)

logger = logging.getLogger(__name__)

POLICY_SUFFIXES = (".yaml", ".yml")

# Registry mapping constraint kinds to constraint classes
CONSTRAINT_REGISTRY: dict[str, type[Constraint]] = {
    cls.kind: cls
    for cls in (
        RequiredFieldConstraint,
        AllowedValuesConstraint,
        DeniedValuesConstraint,
        FieldPatternConstraint,
        IamMemberAllowlistConstraint,
    )
}

_CONSTRAINT_KEYS = {"kind", "name", "severity", "match", "params"}
_MATCH_KEYS = {"asset_types", "ancestries"}


def load_policy_library(policy_path: Path) -> list[Constraint]:
    """Load every constraint of a policy library.

    Args:
        policy_path: YAML file or directory holding the library

    Returns:
        Constraints in library order (sorted file path, then document order)

    Raises:
        PolicyError: If the path does not exist, a file is not valid YAML, a
                    document does not describe a valid constraint, or two
                    constraints share a name

    Example:
        >>> constraints = load_policy_library(Path("policies/"))
        >>> [c.name for c in constraints]
        ['require-env-label', 'storage-location-eu']
    """
    if not policy_path.exists():
        raise PolicyError(
            f"Policy path not found: {policy_path}",
            policy_path=str(policy_path),
        )

    constraints: list[Constraint] = []
    seen: dict[str, Path] = {}

    for path in policy_files(policy_path):
        for constraint in _load_file(path):
            if constraint.name in seen:
                raise PolicyError(
                    f"Duplicate constraint name '{constraint.name}'",
                    policy_path=str(path),
                    constraint=constraint.name,
                    reason=f"Already defined in {seen[constraint.name]}",
                )
            seen[constraint.name] = path
            constraints.append(constraint)

    if not constraints:
        logger.warning("Policy library %s contains no constraints", policy_path)
    else:
        logger.info("Loaded %d constraints from %s", len(constraints), policy_path)

    return constraints


def policy_files(policy_path: Path) -> list[Path]:
    """List the YAML files of a policy library in evaluation order."""
    if policy_path.is_file():
        return [policy_path]
    return sorted(
        path
        for path in policy_path.rglob("*")
        if path.is_file() and path.suffix.lower() in POLICY_SUFFIXES
    )


def _load_file(path: Path) -> list[Constraint]:
    try:
        with path.open("r", encoding="utf-8") as f:
            documents = [document for document in yaml.safe_load_all(f) if document is not None]
    except yaml.YAMLError as e:
        raise PolicyError(
            f"Policy file is not valid YAML: {path}",
            policy_path=str(path),
            reason=str(e),
        ) from e
    except OSError as e:
        raise PolicyError(
            f"Cannot read policy file: {path}",
            policy_path=str(path),
            reason=str(e),
        ) from e

    return [parse_constraint(document, path) for document in documents]


def parse_constraint(document: Any, path: Path) -> Constraint:
    """Construct a constraint from one YAML document.

    Args:
        document: Parsed YAML document
        path: File the document came from (for error context)

    Returns:
        Constructed constraint

    Raises:
        PolicyError: If the document does not describe a valid constraint
    """
    _validate_document(document, path)

    kind = document["kind"]
    name = document["name"]
    match = document.get("match") or {}
    params = document.get("params") or {}
    constraint_class = CONSTRAINT_REGISTRY[kind]

    try:
        return constraint_class(
            name=name,
            severity=document.get("severity", "high"),
            asset_types=match.get("asset_types"),
            ancestries=match.get("ancestries"),
            **params,
        )
    except TypeError as e:
        raise PolicyError(
            f"Invalid params for constraint '{name}' of kind '{kind}': {e}",
            policy_path=str(path),
            constraint=name,
            field="params",
            reason=str(e),
        ) from e
    except ValueError as e:
        raise PolicyError(
            f"Constraint '{name}' rejected its configuration: {e}",
            policy_path=str(path),
            constraint=name,
            field="params",
            reason=str(e),
        ) from e


def _validate_document(document: Any, path: Path) -> None:
    if not isinstance(document, dict):
        raise PolicyError(
            f"Constraint must be a YAML mapping, got: {type(document).__name__}",
            policy_path=str(path),
            reason="Invalid constraint document type",
        )

    for key in ("kind", "name"):
        if not isinstance(document.get(key), str) or not document[key]:
            raise PolicyError(
                f"Constraint is missing required '{key}' field",
                policy_path=str(path),
                constraint=document.get("name") if isinstance(document.get("name"), str) else None,
                field=key,
                reason="Required field missing",
            )

    name = document["name"]
    unknown = sorted(set(document) - _CONSTRAINT_KEYS)
    if unknown:
        raise PolicyError(
            f"Constraint '{name}' has unknown fields: {', '.join(unknown)}",
            policy_path=str(path),
            constraint=name,
            field=unknown[0],
            reason="Unknown field",
        )

    kind = document["kind"]
    if kind not in CONSTRAINT_REGISTRY:
        available = ", ".join(sorted(CONSTRAINT_REGISTRY))
        raise PolicyError(
            f"Unknown constraint kind '{kind}'. Available kinds: {available}",
            policy_path=str(path),
            constraint=name,
            field="kind",
            reason="Constraint kind not found in registry",
        )

    if "severity" in document and document["severity"] not in SEVERITIES:
        raise PolicyError(
            f"Constraint '{name}' severity must be one of {', '.join(SEVERITIES)}, "
            f"got: {document['severity']}",
            policy_path=str(path),
            constraint=name,
            field="severity",
            reason="Invalid severity value",
        )

    match = document.get("match")
    if match is not None:
        if not isinstance(match, dict):
            raise PolicyError(
                f"Constraint '{name}' match must be a mapping, got: {type(match).__name__}",
                policy_path=str(path),
                constraint=name,
                field="match",
                reason="Invalid field type",
            )
        for key, value in match.items():
            if key not in _MATCH_KEYS:
                raise PolicyError(
                    f"Constraint '{name}' has unknown match field '{key}'",
                    policy_path=str(path),
                    constraint=name,
                    field=f"match.{key}",
                    reason="Unknown field",
                )
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                raise PolicyError(
                    f"Constraint '{name}' match.{key} must be a list of strings",
                    policy_path=str(path),
                    constraint=name,
                    field=f"match.{key}",
                    reason="Invalid field type",
                )

    params = document.get("params")
    if params is not None and not isinstance(params, dict):
        raise PolicyError(
            f"Constraint '{name}' params must be a mapping, got: {type(params).__name__}",
            policy_path=str(path),
            constraint=name,
            field="params",
            reason="Invalid field type",
        )
