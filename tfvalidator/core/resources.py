"""Registry of supported Terraform resource types.

Each supported resource type maps to the asset it converts into. The
converter looks mappings up by Terraform type, and the
``list-supported-resources`` command lists the registered types.

Two kinds of mapping exist:
- ResourceMapping: the resource becomes an asset of its own
- IamMapping: the resource grants IAM roles on another asset and is merged
  into that asset's IAM policy

The registry supports:
- Registration of mappings by Terraform type
- Retrieval of a mapping by type (None for unsupported types)
- Listing registered types
"""

from dataclasses import dataclass
from enum import Enum

PROJECT_ASSET_TYPE = "cloudresourcemanager.googleapis.com/Project"
PROJECT_NAME_TEMPLATE = "//cloudresourcemanager.googleapis.com/projects/{project}"


@dataclass(frozen=True)
class ResourceMapping:
    """How a Terraform resource type converts into an asset.

    Attributes:
        asset_type: Asset type of the converted resource
        name_template: ``str.format`` template for the asset name. Fields are
                       resource attributes plus ``project`` and ``location``.
        discovery_name: Resource kind in the owning API
        version: API version of the resource payload
        project_field: Attribute holding the owning project
    """

    asset_type: str
    name_template: str
    discovery_name: str
    version: str = "v1"
    project_field: str = "project"


class IamMode(Enum):
    """How an IAM resource combines with existing bindings.

    Attributes:
        BINDING: Authoritative for its role; replaces the role's members
        MEMBER: Additive; grants the role to one more member
    """

    BINDING = "binding"
    MEMBER = "member"


@dataclass(frozen=True)
class IamMapping:
    """How a Terraform IAM resource type attaches to an asset.

    Attributes:
        asset_type: Asset type of the asset receiving the binding
        name_template: ``str.format`` template for the receiving asset's name
        mode: Whether the resource replaces or extends the role's members
        project_field: Attribute holding the owning project
    """

    asset_type: str
    name_template: str
    mode: IamMode
    project_field: str = "project"


TypeMapping = ResourceMapping | IamMapping

# Registry mapping Terraform resource types to their conversion
RESOURCES: dict[str, TypeMapping] = {}


def register_resource(resource_type: str, mapping: TypeMapping) -> None:
    """Register the conversion of a Terraform resource type.

    Args:
        resource_type: Terraform resource type (e.g. "google_storage_bucket")
        mapping: How the resource converts into an asset

    Example:
        >>> register_resource(
        ...     "google_pubsub_topic",
        ...     ResourceMapping(
        ...         asset_type="pubsub.googleapis.com/Topic",
        ...         name_template="//pubsub.googleapis.com/projects/{project}/topics/{name}",
        ...         discovery_name="Topic",
        ...     ),
        ... )
    """
    RESOURCES[resource_type] = mapping


def get_mapping(resource_type: str) -> TypeMapping | None:
    """Return the mapping for a Terraform resource type, or None if unsupported."""
    return RESOURCES.get(resource_type)


def list_resources() -> list[str]:
    """List supported Terraform resource types, sorted."""
    return sorted(RESOURCES)


def _register_google_resources() -> None:
    compute = "//compute.googleapis.com/projects/{project}"

    register_resource(
        "google_compute_disk",
        ResourceMapping(
            asset_type="compute.googleapis.com/Disk",
            name_template=compute + "/zones/{zone}/disks/{name}",
            discovery_name="Disk",
        ),
    )
    register_resource(
        "google_compute_firewall",
        ResourceMapping(
            asset_type="compute.googleapis.com/Firewall",
            name_template=compute + "/global/firewalls/{name}",
            discovery_name="Firewall",
        ),
    )
    register_resource(
        "google_compute_forwarding_rule",
        ResourceMapping(
            asset_type="compute.googleapis.com/ForwardingRule",
            name_template=compute + "/regions/{region}/forwardingRules/{name}",
            discovery_name="ForwardingRule",
        ),
    )
    register_resource(
        "google_compute_instance",
        ResourceMapping(
            asset_type="compute.googleapis.com/Instance",
            name_template=compute + "/zones/{zone}/instances/{name}",
            discovery_name="Instance",
        ),
    )
    register_resource(
        "google_compute_network",
        ResourceMapping(
            asset_type="compute.googleapis.com/Network",
            name_template=compute + "/global/networks/{name}",
            discovery_name="Network",
        ),
    )
    register_resource(
        "google_compute_subnetwork",
        ResourceMapping(
            asset_type="compute.googleapis.com/Subnetwork",
            name_template=compute + "/regions/{region}/subnetworks/{name}",
            discovery_name="Subnetwork",
        ),
    )
    register_resource(
        "google_container_cluster",
        ResourceMapping(
            asset_type="container.googleapis.com/Cluster",
            name_template=(
                "//container.googleapis.com/projects/{project}/locations/{location}/clusters/{name}"
            ),
            discovery_name="Cluster",
            version="v1beta1",
        ),
    )
    register_resource(
        "google_project",
        ResourceMapping(
            asset_type=PROJECT_ASSET_TYPE,
            name_template=PROJECT_NAME_TEMPLATE,
            discovery_name="Project",
            project_field="project_id",
        ),
    )
    register_resource(
        "google_sql_database_instance",
        ResourceMapping(
            asset_type="sqladmin.googleapis.com/Instance",
            name_template="//cloudsql.googleapis.com/projects/{project}/instances/{name}",
            discovery_name="DatabaseInstance",
            version="v1beta4",
        ),
    )
    register_resource(
        "google_storage_bucket",
        ResourceMapping(
            asset_type="storage.googleapis.com/Bucket",
            name_template="//storage.googleapis.com/{name}",
            discovery_name="Bucket",
        ),
    )
    register_resource(
        "google_bigquery_dataset",
        ResourceMapping(
            asset_type="bigquery.googleapis.com/Dataset",
            name_template="//bigquery.googleapis.com/projects/{project}/datasets/{dataset_id}",
            discovery_name="Dataset",
            version="v2",
        ),
    )
    register_resource(
        "google_pubsub_topic",
        ResourceMapping(
            asset_type="pubsub.googleapis.com/Topic",
            name_template="//pubsub.googleapis.com/projects/{project}/topics/{name}",
            discovery_name="Topic",
        ),
    )
    register_resource(
        "google_kms_key_ring",
        ResourceMapping(
            asset_type="cloudkms.googleapis.com/KeyRing",
            name_template=(
                "//cloudkms.googleapis.com/projects/{project}/locations/{location}/keyRings/{name}"
            ),
            discovery_name="KeyRing",
        ),
    )
    register_resource(
        "google_spanner_instance",
        ResourceMapping(
            asset_type="spanner.googleapis.com/Instance",
            name_template="//spanner.googleapis.com/projects/{project}/instances/{name}",
            discovery_name="Instance",
        ),
    )
    register_resource(
        "google_project_iam_binding",
        IamMapping(
            asset_type=PROJECT_ASSET_TYPE,
            name_template=PROJECT_NAME_TEMPLATE,
            mode=IamMode.BINDING,
        ),
    )
    register_resource(
        "google_project_iam_member",
        IamMapping(
            asset_type=PROJECT_ASSET_TYPE,
            name_template=PROJECT_NAME_TEMPLATE,
            mode=IamMode.MEMBER,
        ),
    )


_register_google_resources()
