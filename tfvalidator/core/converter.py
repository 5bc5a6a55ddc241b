"""Conversion of Terraform plan resources into canonical assets.

The converter reads a plan with ``read_plan``, looks every resource up in the
resource registry and produces one asset per full resource name:

- Supported resources become assets carrying their planned attributes
- IAM resources are merged into the IAM policy of the asset they target
- Unsupported resource types are skipped and logged

Assets are returned ordered by name so output is stable across runs.
"""

import logging
from pathlib import Path
from typing import Any

from tfvalidator.core.assets import Asset, AssetResource, IamBinding
from tfvalidator.core.exceptions import ConversionError
from tfvalidator.core.plan import PlanResource, read_plan
from tfvalidator.core.resources import (
    PROJECT_ASSET_TYPE,
    IamMapping,
    IamMode,
    ResourceMapping,
    get_mapping,
    list_resources,
)
from tfvalidator.core.versions import TerraformVersion

logger = logging.getLogger(__name__)

PROJECT_PARENT = "//cloudresourcemanager.googleapis.com/projects/{project}"
ORGANIZATION_PARENT = "//cloudresourcemanager.googleapis.com/organizations/{org_id}"
FOLDER_PARENT = "//cloudresourcemanager.googleapis.com/folders/{folder_id}"


class Converter:
    """Default plan converter and resource lister.

    Example:
        >>> converter = Converter()
        >>> assets = converter.convert(
        ...     Path("plan.json"), TerraformVersion.TF12, project="my-project"
        ... )
        >>> [asset.asset_type for asset in assets]
        ['storage.googleapis.com/Bucket']
    """

    def convert(
        self,
        plan: Path,
        version: TerraformVersion,
        project: str | None = None,
        ancestry: str | None = None,
    ) -> list[Asset]:
        """Convert the managed resources of a plan into assets.

        Args:
            plan: Path to the plan file
            version: Plan format version to read the file as
            project: Project used for resources that do not declare one
            ancestry: Ancestry path of the project (e.g. "organization/1/folder/2")

        Returns:
            Assets ordered by name

        Raises:
            PlanError: If the plan file cannot be read
            ConversionError: If a supported resource lacks a field its asset
                            name needs, or no project can be resolved
        """
        assets: dict[str, Asset] = {}
        skipped = 0

        for resource in read_plan(plan, version):
            mapping = get_mapping(resource.type)
            if mapping is None:
                logger.info("Skipping unsupported resource %s", resource.address)
                skipped += 1
                continue

            if isinstance(mapping, IamMapping):
                self._merge_iam(assets, resource, mapping, project, ancestry)
            else:
                self._add_resource(assets, resource, mapping, project, ancestry)

        logger.info("Converted %d assets (%d resources skipped)", len(assets), skipped)
        return [assets[name] for name in sorted(assets)]

    def supported_resources(self) -> list[str]:
        """List the Terraform resource types this converter supports."""
        return list_resources()

    def _add_resource(
        self,
        assets: dict[str, Asset],
        resource: PlanResource,
        mapping: ResourceMapping,
        project: str | None,
        ancestry: str | None,
    ) -> None:
        data = drop_nulls(resource.values)
        project_id = _resolve_project(resource, data, mapping.project_field, project)
        name = _asset_name(resource, data, mapping.name_template, project_id)

        asset_resource = AssetResource(
            version=mapping.version,
            discovery_name=mapping.discovery_name,
            parent=_parent(mapping, data, project_id),
            data=data,
        )
        ancestry_path = _ancestry_path(mapping.asset_type, data, project_id, ancestry)

        existing = assets.get(name)
        if existing is None:
            assets[name] = Asset(
                name=name,
                asset_type=mapping.asset_type,
                ancestry_path=ancestry_path,
                resource=asset_resource,
            )
            return

        if existing.resource is not None:
            logger.warning("Resource %s redefines asset %s", resource.address, name)
        existing.resource = asset_resource
        existing.ancestry_path = ancestry_path

    def _merge_iam(
        self,
        assets: dict[str, Asset],
        resource: PlanResource,
        mapping: IamMapping,
        project: str | None,
        ancestry: str | None,
    ) -> None:
        data = drop_nulls(resource.values)
        project_id = _resolve_project(resource, data, mapping.project_field, project)
        name = _asset_name(resource, data, mapping.name_template, project_id)

        role = data.get("role")
        if not role:
            raise ConversionError(
                f"IAM resource {resource.address} has no role",
                address=resource.address,
                resource_type=resource.type,
                field="role",
            )

        asset = assets.get(name)
        if asset is None:
            asset = assets[name] = Asset(
                name=name,
                asset_type=mapping.asset_type,
                ancestry_path=_ancestry_path(mapping.asset_type, {}, project_id, ancestry),
            )

        if mapping.mode is IamMode.BINDING:
            members = data.get("members") or []
            asset.iam_bindings[role] = IamBinding(role=role, members=sorted(set(members)))
            return

        member = data.get("member")
        if not member:
            raise ConversionError(
                f"IAM resource {resource.address} has no member",
                address=resource.address,
                resource_type=resource.type,
                field="member",
            )
        binding = asset.iam_bindings.setdefault(role, IamBinding(role=role))
        if member not in binding.members:
            binding.members.append(member)


def drop_nulls(value: Any) -> Any:
    """Remove null values from nested dictionaries and lists.

    Example:
        >>> drop_nulls({"name": "logs", "labels": {"env": None}, "cors": [None]})
        {'name': 'logs', 'labels': {}, 'cors': []}
    """
    if isinstance(value, dict):
        return {key: drop_nulls(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [drop_nulls(item) for item in value if item is not None]
    return value


def _resolve_project(
    resource: PlanResource, data: dict[str, Any], project_field: str, project: str | None
) -> str:
    project_id = data.get(project_field) or project
    if not project_id:
        raise ConversionError(
            f"Cannot determine the project of {resource.address}; "
            f"set '{project_field}' on the resource or pass --project",
            address=resource.address,
            resource_type=resource.type,
            field=project_field,
        )
    return str(project_id)


def _asset_name(
    resource: PlanResource, data: dict[str, Any], template: str, project_id: str
) -> str:
    fields = dict(data)
    fields["project"] = project_id
    location = data.get("location") or data.get("zone") or data.get("region")
    if location:
        fields["location"] = location

    try:
        return template.format(**fields)
    except KeyError as e:
        missing = e.args[0]
        raise ConversionError(
            f"Resource {resource.address} has no '{missing}' attribute",
            address=resource.address,
            resource_type=resource.type,
            field=missing,
        ) from e


def _ancestry_path(
    asset_type: str, data: dict[str, Any], project_id: str, ancestry: str | None
) -> str:
    if ancestry:
        return f"{ancestry.strip('/')}/project/{project_id}"

    # Projects declare their own parent
    if asset_type == PROJECT_ASSET_TYPE:
        if data.get("org_id"):
            return f"organization/{data['org_id']}/project/{project_id}"
        if data.get("folder_id"):
            return f"folder/{data['folder_id']}/project/{project_id}"

    return f"project/{project_id}"


def _parent(mapping: ResourceMapping, data: dict[str, Any], project_id: str) -> str | None:
    if mapping.asset_type != PROJECT_ASSET_TYPE:
        return PROJECT_PARENT.format(project=project_id)

    if data.get("org_id"):
        return ORGANIZATION_PARENT.format(org_id=data["org_id"])
    if data.get("folder_id"):
        return FOLDER_PARENT.format(folder_id=data["folder_id"])
    return None
