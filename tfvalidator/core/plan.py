"""Terraform plan reading.

Reads a plan file into a flat list of managed resources. The layout of the
file depends on the negotiated plan format version:

- 0.12: the JSON document produced by ``terraform show -json``. Resources
  come from ``planned_values.root_module`` and its ``child_modules``.
- 0.11: the legacy module-list JSON, where every module lists its resources
  with flattened ``primary.attributes`` (``labels.env``, ``tags.#``,
  ``tags.0``). Attributes are rebuilt into nested values.

Data sources are skipped in both layouts: they describe existing
infrastructure, not planned changes.
"""

import json
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tfvalidator.core.exceptions import PlanError
from tfvalidator.core.versions import TerraformVersion

logger = logging.getLogger(__name__)

# Count markers in flattened 0.11 attributes ("tags.#", "labels.%")
_COUNT_MARKERS = ("#", "%")


@dataclass(frozen=True)
class PlanResource:
    """A managed resource read from a plan.

    Attributes:
        address: Full Terraform address (e.g. "module.net.google_compute_network.vpc")
        type: Terraform resource type (e.g. "google_compute_network")
        name: Resource name within its module
        module: Module address, empty for the root module
        values: Planned attribute values
    """

    address: str
    type: str
    name: str
    module: str = ""
    values: dict[str, Any] = field(default_factory=dict)


def read_plan(path: Path, version: TerraformVersion) -> list[PlanResource]:
    """Read the managed resources of a plan file.

    Args:
        path: Path to the plan JSON file
        version: Plan format version to read the file as

    Returns:
        Managed resources in document order

    Raises:
        PlanError: If the file is missing, is not valid JSON, or does not have
                  the layout of the requested version

    Example:
        >>> resources = read_plan(Path("plan.json"), TerraformVersion.TF12)
        >>> [r.address for r in resources]
        ['google_storage_bucket.logs']
    """
    document = _load_json(path, version)
    reader = _READERS[version]
    resources = reader(document, path)
    logger.info("Read %d managed resources from %s (format %s)", len(resources), path, version)
    return resources


def _load_json(path: Path, version: TerraformVersion) -> dict[str, Any]:
    if not path.exists():
        raise PlanError(
            f"Plan file not found: {path}",
            file_path=str(path),
            tf_version=version.value,
        )

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise PlanError(
            f"Plan file is not valid JSON: {path}",
            file_path=str(path),
            tf_version=version.value,
            reason=str(e),
        ) from e
    except OSError as e:
        raise PlanError(
            f"Cannot read plan file: {path}",
            file_path=str(path),
            tf_version=version.value,
            reason=str(e),
        ) from e

    if not isinstance(document, dict):
        raise PlanError(
            f"Plan file must contain a JSON object, got: {type(document).__name__}",
            file_path=str(path),
            tf_version=version.value,
        )

    return document


def _read_json_plan(document: dict[str, Any], path: Path) -> list[PlanResource]:
    """Read a ``terraform show -json`` document."""
    planned_values = document.get("planned_values")
    if not isinstance(planned_values, dict):
        raise PlanError(
            "Plan has no 'planned_values'; it does not look like a Terraform 0.12 "
            "JSON plan. Use --tf-version 0.11 for legacy plans.",
            file_path=str(path),
            tf_version=TerraformVersion.TF12.value,
        )

    terraform_version = document.get("terraform_version")
    if terraform_version and not str(terraform_version).startswith("0.12"):
        logger.warning(
            "Plan %s was produced by Terraform %s, reading it as format %s",
            path,
            terraform_version,
            TerraformVersion.TF12,
        )

    root_module = planned_values.get("root_module") or {}
    return list(_walk_module(root_module))


def _walk_module(module: dict[str, Any]) -> Iterator[PlanResource]:
    module_address = module.get("address", "")

    for resource in module.get("resources") or []:
        if resource.get("mode", "managed") != "managed":
            continue

        yield PlanResource(
            address=resource["address"],
            type=resource["type"],
            name=resource["name"],
            module=module_address,
            values=resource.get("values") or {},
        )

    for child in module.get("child_modules") or []:
        yield from _walk_module(child)


def _read_legacy_plan(document: dict[str, Any], path: Path) -> list[PlanResource]:
    """Read a legacy (0.11) module-list document."""
    modules = document.get("modules")
    if not isinstance(modules, list):
        raise PlanError(
            "Plan has no 'modules' list; it does not look like a Terraform 0.11 "
            "plan. Use --tf-version 0.12 for 'terraform show -json' output.",
            file_path=str(path),
            tf_version=TerraformVersion.TF11.value,
        )

    resources: list[PlanResource] = []
    for module in modules:
        module_address = _legacy_module_address(module.get("path") or ["root"])

        for key, resource in sorted((module.get("resources") or {}).items()):
            if key.startswith("data."):
                continue

            resource_type = resource.get("type") or key.split(".")[0]
            # "type.name" or "type.name.<count index>"
            name = key.split(".")[1] if "." in key else key
            address = f"{module_address}.{key}" if module_address else key
            attributes = (resource.get("primary") or {}).get("attributes") or {}

            resources.append(
                PlanResource(
                    address=address,
                    type=resource_type,
                    name=name,
                    module=module_address,
                    values=unflatten_attributes(attributes),
                )
            )

    return resources


def _legacy_module_address(module_path: list[str]) -> str:
    return ".".join(f"module.{segment}" for segment in module_path[1:])


def unflatten_attributes(attributes: dict[str, str]) -> dict[str, Any]:
    """Rebuild nested values from flattened 0.11 attributes.

    Args:
        attributes: Flat attribute map as stored in legacy plans

    Returns:
        Nested dictionary; maps whose keys are all indices become lists

    Example:
        >>> unflatten_attributes({"labels.%": "1", "labels.env": "prod",
        ...                       "tags.#": "2", "tags.0": "a", "tags.1": "b"})
        {'labels': {'env': 'prod'}, 'tags': ['a', 'b']}
    """
    nested: dict[str, Any] = {}

    for key in sorted(attributes):
        parts = key.split(".")
        if parts[-1] in _COUNT_MARKERS:
            continue

        node = nested
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[parts[-1]] = attributes[key]

    return _listify(nested)


def _listify(value: Any) -> Any:
    if not isinstance(value, dict):
        return value

    converted = {key: _listify(item) for key, item in value.items()}
    if converted and all(key.isdigit() for key in converted):
        return [converted[key] for key in sorted(converted, key=int)]
    return converted


_READERS: dict[TerraformVersion, Callable[[dict[str, Any], Path], list[PlanResource]]] = {
    TerraformVersion.TF11: _read_legacy_plan,
    TerraformVersion.TF12: _read_json_plan,
}
