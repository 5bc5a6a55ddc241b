"""Canonical asset representation.

Assets follow the Cloud Asset Inventory layout: a full resource name, an
asset type, the ancestry path of the owning project and, optionally, the
resource data and the IAM policy attached to it.

The policy engine evaluates assets as a Polars DataFrame built by
``assets_to_frame``; nested resource data and IAM policies are carried as
JSON strings so constraints can address fields with JSONPath.
"""

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import polars as pl

# Column layout of the asset frame
ASSET_FRAME_SCHEMA = {
    "name": pl.Utf8,
    "asset_type": pl.Utf8,
    "ancestry_path": pl.Utf8,
    "data": pl.Utf8,
    "iam_policy": pl.Utf8,
}


@dataclass
class AssetResource:
    """Resource payload of an asset."""

    version: str
    discovery_name: str
    parent: str | None
    data: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "version": self.version,
            "discovery_name": self.discovery_name,
        }
        if self.parent is not None:
            payload["parent"] = self.parent
        payload["data"] = self.data
        return payload


@dataclass
class IamBinding:
    """One role and the members granted it."""

    role: str
    members: list[str] = field(default_factory=list)


@dataclass
class Asset:
    """A canonical asset produced from one or more plan resources.

    Attributes:
        name: Full resource name (e.g. "//storage.googleapis.com/logs")
        asset_type: Asset type (e.g. "storage.googleapis.com/Bucket")
        ancestry_path: Ancestry of the owning project
                       (e.g. "organization/1/folder/2/project/my-project")
        resource: Resource payload, None for assets known only through IAM
        iam_bindings: IAM bindings attached to the asset, keyed by role
    """

    name: str
    asset_type: str
    ancestry_path: str
    resource: AssetResource | None = None
    iam_bindings: dict[str, IamBinding] = field(default_factory=dict)

    def iam_policy(self) -> dict[str, Any] | None:
        """Return the IAM policy in Cloud Asset Inventory layout, or None."""
        if not self.iam_bindings:
            return None
        return {
            "bindings": [
                {"role": binding.role, "members": sorted(binding.members)}
                for binding in sorted(self.iam_bindings.values(), key=lambda b: b.role)
            ]
        }

    def to_json(self) -> dict[str, Any]:
        """Serialize the asset for JSON output.

        Example:
            >>> asset = Asset(
            ...     name="//storage.googleapis.com/logs",
            ...     asset_type="storage.googleapis.com/Bucket",
            ...     ancestry_path="project/my-project",
            ... )
            >>> asset.to_json()
            {'name': '//storage.googleapis.com/logs', 'asset_type': 'storage.googleapis.com/Bucket', 'ancestry_path': 'project/my-project'}
        """
        payload: dict[str, Any] = {
            "name": self.name,
            "asset_type": self.asset_type,
            "ancestry_path": self.ancestry_path,
        }
        if self.resource is not None:
            payload["resource"] = self.resource.to_json()
        iam_policy = self.iam_policy()
        if iam_policy is not None:
            payload["iam_policy"] = iam_policy
        return payload


def assets_to_frame(assets: Sequence[Asset]) -> pl.DataFrame:
    """Build the DataFrame the policy engine evaluates.

    Args:
        assets: Assets to evaluate

    Returns:
        DataFrame with one row per asset and the ASSET_FRAME_SCHEMA columns.
        ``data`` and ``iam_policy`` hold JSON objects ("{}" when absent).
    """
    rows = [
        {
            "name": asset.name,
            "asset_type": asset.asset_type,
            "ancestry_path": asset.ancestry_path,
            "data": json.dumps(asset.resource.data if asset.resource else {}, sort_keys=True),
            "iam_policy": json.dumps(asset.iam_policy() or {}, sort_keys=True),
        }
        for asset in assets
    ]
    return pl.DataFrame(rows, schema=ASSET_FRAME_SCHEMA)
