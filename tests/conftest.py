"""Shared test fixtures, recording collaborators and Hypothesis strategies."""

import json
import logging
from pathlib import Path
from typing import Any

import pytest
from hypothesis import strategies as st

from tfvalidator.cli.logging_config import HANDLER_NAME, LOGGER_NAME, get_console_logger
from tfvalidator.cli.registry import Collaborators
from tfvalidator.core.assets import Asset, AssetResource
from tfvalidator.core.versions import TerraformVersion, supported_versions
from tfvalidator.policy.result import Violation

PLAN_012: dict[str, Any] = {
    "format_version": "0.1",
    "terraform_version": "0.12.31",
    "planned_values": {
        "root_module": {
            "resources": [
                {
                    "address": "google_storage_bucket.logs",
                    "mode": "managed",
                    "type": "google_storage_bucket",
                    "name": "logs",
                    "values": {
                        "name": "acme-logs",
                        "location": "EU",
                        "project": "acme-prod",
                        "labels": {"env": "prod"},
                        "storage_class": None,
                    },
                },
                {
                    "address": "google_compute_instance.web",
                    "mode": "managed",
                    "type": "google_compute_instance",
                    "name": "web",
                    "values": {
                        "name": "web",
                        "zone": "europe-west1-b",
                        "machine_type": "n1-standard-1",
                        "project": "acme-prod",
                        "labels": {},
                    },
                },
                {
                    "address": "data.google_project.current",
                    "mode": "data",
                    "type": "google_project",
                    "name": "current",
                    "values": {"project_id": "acme-prod"},
                },
                {
                    "address": "google_dns_record_set.www",
                    "mode": "managed",
                    "type": "google_dns_record_set",
                    "name": "www",
                    "values": {"name": "www.example.com."},
                },
                {
                    "address": "google_project_iam_member.viewer",
                    "mode": "managed",
                    "type": "google_project_iam_member",
                    "name": "viewer",
                    "values": {
                        "project": "acme-prod",
                        "role": "roles/viewer",
                        "member": "user:alice@example.com",
                    },
                },
            ],
            "child_modules": [
                {
                    "address": "module.network",
                    "resources": [
                        {
                            "address": "module.network.google_compute_network.vpc",
                            "mode": "managed",
                            "type": "google_compute_network",
                            "name": "vpc",
                            "values": {"name": "vpc", "auto_create_subnetworks": False},
                        }
                    ],
                }
            ],
        }
    },
}

PLAN_011: dict[str, Any] = {
    "version": 3,
    "terraform_version": "0.11.14",
    "modules": [
        {
            "path": ["root"],
            "resources": {
                "google_storage_bucket.logs": {
                    "type": "google_storage_bucket",
                    "primary": {
                        "id": "acme-logs",
                        "attributes": {
                            "name": "acme-logs",
                            "location": "EU",
                            "project": "acme-prod",
                            "labels.%": "1",
                            "labels.env": "prod",
                        },
                    },
                },
                "data.google_project.current": {
                    "type": "google_project",
                    "primary": {"attributes": {"project_id": "acme-prod"}},
                },
            },
        },
        {
            "path": ["root", "network"],
            "resources": {
                "google_compute_network.vpc": {
                    "type": "google_compute_network",
                    "primary": {"attributes": {"name": "vpc", "project": "acme-prod"}},
                }
            },
        },
    ],
}

STORAGE_POLICY = """
kind: allowed_values
name: storage-location-us
match:
  asset_types: ["storage.googleapis.com/Bucket"]
params:
  field: location
  values: ["US"]
"""

COMPUTE_POLICY = """
kind: required_field
name: instance-env-label
severity: medium
match:
  asset_types: ["compute.googleapis.com/Instance"]
params:
  field: labels.env
"""


@pytest.fixture(autouse=True)
def restore_logging():
    """Remove the log handlers an invocation installed."""
    yield
    for logger in (logging.getLogger(), get_console_logger()):
        for handler in list(logger.handlers):
            if handler.get_name() == HANDLER_NAME:
                logger.removeHandler(handler)
    logging.getLogger(LOGGER_NAME).setLevel(logging.NOTSET)


@pytest.fixture
def plan_012(tmp_path: Path) -> Path:
    """Write a Terraform 0.12 JSON plan and return its path."""
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(PLAN_012))
    return path


@pytest.fixture
def plan_011(tmp_path: Path) -> Path:
    """Write a legacy Terraform 0.11 plan and return its path."""
    path = tmp_path / "plan-011.json"
    path.write_text(json.dumps(PLAN_011))
    return path


@pytest.fixture
def policy_dir(tmp_path: Path) -> Path:
    """Write a policy library with one storage and one compute constraint."""
    path = tmp_path / "policies"
    (path / "compute").mkdir(parents=True)
    (path / "storage.yaml").write_text(STORAGE_POLICY)
    (path / "compute" / "labels.yml").write_text(COMPUTE_POLICY)
    return path


def sample_asset(name: str = "//storage.googleapis.com/acme-logs") -> Asset:
    """Build a bucket asset for tests that do not read plans."""
    return Asset(
        name=name,
        asset_type="storage.googleapis.com/Bucket",
        ancestry_path="project/acme-prod",
        resource=AssetResource(
            version="v1",
            discovery_name="Bucket",
            parent="//cloudresourcemanager.googleapis.com/projects/acme-prod",
            data={"name": "acme-logs", "location": "EU"},
        ),
    )


class RecordingConverter:
    """Converter and lister that record their calls."""

    def __init__(self, assets: list[Asset] | None = None, error: Exception | None = None):
        self.assets = assets if assets is not None else [sample_asset()]
        self.error = error
        self.calls: list[dict[str, Any]] = []
        self.list_calls = 0

    def convert(
        self,
        plan: Path,
        version: TerraformVersion,
        project: str | None = None,
        ancestry: str | None = None,
    ) -> list[Asset]:
        self.calls.append(
            {"plan": plan, "version": version, "project": project, "ancestry": ancestry}
        )
        if self.error is not None:
            raise self.error
        return list(self.assets)

    def supported_resources(self) -> list[str]:
        self.list_calls += 1
        return ["google_storage_bucket", "google_compute_instance"]


class RecordingPolicyEngine:
    """Policy engine that records its calls and returns canned violations."""

    def __init__(self, violations: list[Violation] | None = None, error: Exception | None = None):
        self.violations = violations or []
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def validate(self, assets, policy_path: Path) -> list[Violation]:
        self.calls.append({"assets": list(assets), "policy_path": policy_path})
        if self.error is not None:
            raise self.error
        return list(self.violations)


def recording_collaborators(
    converter: RecordingConverter | None = None,
    policy_engine: RecordingPolicyEngine | None = None,
) -> Collaborators:
    """Build collaborators from fresh recording fakes."""
    converter = converter or RecordingConverter()
    return Collaborators(
        converter=converter,
        policy_engine=policy_engine or RecordingPolicyEngine(),
        lister=converter,
    )


def unsupported_versions() -> st.SearchStrategy[str]:
    """Non-empty --tf-version values outside the supported set."""
    return st.text(alphabet="0123456789.abvx", min_size=1, max_size=8).filter(
        lambda value: value not in supported_versions()
    )


def project_ids() -> st.SearchStrategy[str]:
    """Valid-looking GCP project IDs."""
    return st.from_regex(r"[a-z][a-z0-9-]{4,20}[a-z0-9]", fullmatch=True)


def ancestry_paths() -> st.SearchStrategy[str]:
    """Ancestry paths such as organization/123/folder/456."""
    return st.lists(
        st.tuples(st.sampled_from(["organization", "folder"]), st.integers(1, 10**12)),
        min_size=1,
        max_size=3,
    ).map(lambda parts: "/".join(f"{kind}/{number}" for kind, number in parts))
