"""Property-based tests for command dispatch.

This module tests universal properties of the dispatch pipeline including:
- Version negotiation runs before every subcommand
- Required flags are enforced before any collaborator call
- Each subcommand calls exactly the collaborators it owns
- Failures map to exit code 1
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from tests.conftest import (
    RecordingConverter,
    RecordingPolicyEngine,
    ancestry_paths,
    project_ids,
    recording_collaborators,
    sample_asset,
    unsupported_versions,
)
from tfvalidator.cli.app import main
from tfvalidator.cli.exit_codes import ExitCode
from tfvalidator.core.exceptions import PlanError, PolicyError
from tfvalidator.core.versions import TerraformVersion
from tfvalidator.policy.result import Violation

SUBCOMMAND_ARGS = {
    "convert": ["convert", "plan.json"],
    "validate": ["validate", "plan.json", "--policy-path", "policies"],
    "list-supported-resources": ["list-supported-resources"],
    "version": ["version"],
}


# Feature: dispatch, Property 1: Unsupported versions block every subcommand
@given(
    subcommand=st.sampled_from(sorted(SUBCOMMAND_ARGS)),
    tf_version=unsupported_versions(),
)
@settings(max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture])
def test_property_unsupported_version_blocks_subcommand(subcommand, tf_version, capsys):
    """Any non-empty unsupported --tf-version exits 1 without running the handler.

    Property: For every subcommand and every value outside the supported set,
    the invocation fails with exit code 1, names the value and the supported
    set on stderr, and never reaches a collaborator.
    """
    converter = RecordingConverter()
    engine = RecordingPolicyEngine()
    collaborators = recording_collaborators(converter, engine)

    exit_code = main(["--tf-version", tf_version, *SUBCOMMAND_ARGS[subcommand]], collaborators)

    captured = capsys.readouterr()
    assert exit_code == ExitCode.ERROR
    assert (
        f"Possible values for --tf-version flag are [0.11, 0.12], got: {tf_version}"
        in captured.err
    )
    assert "Build version" not in captured.out
    assert converter.calls == []
    assert converter.list_calls == 0
    assert engine.calls == []


# Feature: dispatch, Property 2: Supported versions are used unchanged
@given(
    subcommand=st.sampled_from(sorted(SUBCOMMAND_ARGS)),
    tf_version=st.sampled_from([version.value for version in TerraformVersion]),
)
@settings(max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture])
def test_property_supported_version_accepted_without_warning(subcommand, tf_version, capsys):
    """Supported --tf-version values run the subcommand without a warning."""
    converter = RecordingConverter()
    collaborators = recording_collaborators(converter)

    exit_code = main([*SUBCOMMAND_ARGS[subcommand], "--tf-version", tf_version], collaborators)

    captured = capsys.readouterr()
    assert exit_code == ExitCode.SUCCESS
    assert "Warning" not in captured.err
    for call in converter.calls:
        assert call["version"] is TerraformVersion(tf_version)


# Feature: dispatch, Property 3: Convert calls only the converter
@given(project=project_ids(), ancestry=ancestry_paths())
@settings(max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture])
def test_property_convert_calls_converter_once(project, ancestry, capsys):
    """convert makes exactly one converter call and no policy engine call."""
    converter = RecordingConverter()
    engine = RecordingPolicyEngine()

    exit_code = main(
        [
            "--tf-version",
            "0.12",
            "convert",
            "plan.json",
            "--project",
            project,
            "--ancestry",
            ancestry,
        ],
        recording_collaborators(converter, engine),
    )

    captured = capsys.readouterr()
    assert exit_code == ExitCode.SUCCESS
    assert converter.calls == [
        {
            "plan": Path("plan.json"),
            "version": TerraformVersion.TF12,
            "project": project,
            "ancestry": ancestry,
        }
    ]
    assert engine.calls == []
    assert json.loads(captured.out) == [sample_asset().to_json()]


class TestVersionNegotiation:
    """Tests for the --tf-version flag on the command line."""

    def test_empty_version_defaults_with_warning(self, capsys) -> None:
        converter = RecordingConverter()

        exit_code = main(["convert", "plan.json"], recording_collaborators(converter))

        captured = capsys.readouterr()
        assert exit_code == ExitCode.SUCCESS
        assert "Warning: --tf-version flag not defined, using default value: 0.11" in captured.err
        assert converter.calls[0]["version"] is TerraformVersion.TF11

    def test_explicit_empty_version_defaults(self, capsys) -> None:
        exit_code = main(["--tf-version", "", "version"], recording_collaborators())

        captured = capsys.readouterr()
        assert exit_code == ExitCode.SUCCESS
        assert "using default value: 0.11" in captured.err
        assert captured.out.strip() == "Build version: 0.1.0"

    def test_warning_visible_with_verbose(self, capsys) -> None:
        exit_code = main(["--verbose", "version"], recording_collaborators())

        assert exit_code == ExitCode.SUCCESS
        assert "using default value: 0.11" in capsys.readouterr().err

    def test_warning_goes_to_stderr_only(self, capsys) -> None:
        main(["version"], recording_collaborators())

        captured = capsys.readouterr()
        assert "Warning" not in captured.out


class TestValidateDispatch:
    """Tests for the validate subcommand."""

    def test_missing_policy_path_fails_before_collaborators(self, capsys) -> None:
        converter = RecordingConverter()
        engine = RecordingPolicyEngine()

        exit_code = main(
            ["--tf-version", "0.12", "validate", "plan.json"],
            recording_collaborators(converter, engine),
        )

        captured = capsys.readouterr()
        assert exit_code == ExitCode.ERROR
        assert "--policy-path" in captured.err
        assert "not set" in captured.err
        assert converter.calls == []
        assert engine.calls == []

    def test_missing_policy_path_reported_even_with_invalid_version(self, capsys) -> None:
        exit_code = main(["--tf-version", "9.9", "validate", "plan.json"], recording_collaborators())

        captured = capsys.readouterr()
        assert exit_code == ExitCode.ERROR
        assert "--policy-path" in captured.err

    def test_output_json_passes_assets_to_engine(self, capsys) -> None:
        converter = RecordingConverter()
        violation = Violation(
            constraint="storage-location-us",
            resource="//storage.googleapis.com/acme-logs",
            message="Field 'location' has value 'EU', allowed values are [US]",
        )
        engine = RecordingPolicyEngine(violations=[violation])

        exit_code = main(
            [
                "--tf-version",
                "0.12",
                "validate",
                "plan.json",
                "--policy-path",
                "policies",
                "--output-json",
            ],
            recording_collaborators(converter, engine),
        )

        captured = capsys.readouterr()
        assert exit_code == ExitCode.VIOLATIONS_FOUND
        assert len(converter.calls) == 1
        assert len(engine.calls) == 1
        assert engine.calls[0]["assets"] == converter.assets
        assert engine.calls[0]["policy_path"] == Path("policies")
        assert json.loads(captured.out) == [violation.to_json()]

    def test_no_violations_exits_zero(self, capsys) -> None:
        exit_code = main(
            ["--tf-version", "0.11", "validate", "plan.json", "--policy-path", "policies"],
            recording_collaborators(),
        )

        captured = capsys.readouterr()
        assert exit_code == ExitCode.SUCCESS
        assert captured.out.strip() == "No violations found."

    def test_text_output_lists_violations(self, capsys) -> None:
        engine = RecordingPolicyEngine(
            violations=[Violation("require-labels", "//storage.googleapis.com/acme-logs", "missing")]
        )

        exit_code = main(
            ["--tf-version", "0.12", "validate", "plan.json", "--policy-path", "p"],
            recording_collaborators(policy_engine=engine),
        )

        lines = capsys.readouterr().out.splitlines()
        assert exit_code == ExitCode.VIOLATIONS_FOUND
        assert lines == [
            "Found Violations:",
            "Constraint require-labels on resource //storage.googleapis.com/acme-logs: missing",
        ]


class TestFailures:
    """Tests for failure reporting and exit codes."""

    @pytest.mark.parametrize(
        "error",
        [
            PlanError("Plan file not found: plan.json", file_path="plan.json"),
            PolicyError("Policy path not found: policies", policy_path="policies"),
        ],
    )
    def test_collaborator_error_exits_one(self, error, capsys) -> None:
        converter = RecordingConverter(error=error) if isinstance(error, PlanError) else None
        engine = RecordingPolicyEngine(error=error) if isinstance(error, PolicyError) else None

        exit_code = main(
            ["--tf-version", "0.12", "validate", "plan.json", "--policy-path", "policies"],
            recording_collaborators(converter, engine),
        )

        captured = capsys.readouterr()
        assert exit_code == ExitCode.ERROR
        assert f"Error: {error.message}\n" in captured.err
        assert "Context:" in captured.err
        assert "Stack trace" not in captured.err

    def test_verbose_prints_stack_trace(self, capsys) -> None:
        converter = RecordingConverter(error=PlanError("boom", file_path="plan.json"))

        exit_code = main(
            ["--verbose", "--tf-version", "0.12", "convert", "plan.json"],
            recording_collaborators(converter),
        )

        captured = capsys.readouterr()
        assert exit_code == ExitCode.ERROR
        assert "Stack trace" in captured.err
        assert "PlanError" in captured.err

    def test_unexpected_exception_exits_one(self, capsys) -> None:
        converter = RecordingConverter(error=RuntimeError("disk on fire"))

        exit_code = main(
            ["--tf-version", "0.12", "convert", "plan.json"], recording_collaborators(converter)
        )

        assert exit_code == ExitCode.ERROR
        assert "Error: disk on fire" in capsys.readouterr().err

    @pytest.mark.parametrize(
        "argv",
        [
            ["frobnicate"],
            ["--tf-version", "0.12", "frobnicate"],
            ["--no-such-flag", "version"],
            ["convert", "plan.json", "--no-such-flag"],
        ],
    )
    def test_usage_errors_exit_one(self, argv, capsys) -> None:
        converter = RecordingConverter()

        exit_code = main(argv, recording_collaborators(converter))

        assert exit_code == ExitCode.ERROR
        assert "Error:" in capsys.readouterr().err
        assert converter.calls == []


class TestOtherSubcommands:
    """Tests for help, version and list-supported-resources."""

    def test_no_arguments_prints_usage(self, capsys) -> None:
        converter = RecordingConverter()

        exit_code = main([], recording_collaborators(converter))

        captured = capsys.readouterr()
        assert exit_code == ExitCode.SUCCESS
        assert "Usage" in captured.out
        assert converter.calls == []

    def test_version_subcommand(self, capsys) -> None:
        exit_code = main(["--tf-version", "0.12", "version"], recording_collaborators())

        assert exit_code == ExitCode.SUCCESS
        assert capsys.readouterr().out.strip() == "Build version: 0.1.0"

    def test_list_supported_resources_sorted(self, capsys) -> None:
        converter = RecordingConverter()

        exit_code = main(
            ["--tf-version", "0.12", "list-supported-resources"], recording_collaborators(converter)
        )

        assert exit_code == ExitCode.SUCCESS
        assert capsys.readouterr().out.splitlines() == [
            "google_compute_instance",
            "google_storage_bucket",
        ]
        assert converter.list_calls == 1
        assert converter.calls == []

    def test_defaults_used_when_no_collaborators_given(self, capsys) -> None:
        converter = RecordingConverter()

        with patch(
            "tfvalidator.cli.app.default_collaborators",
            return_value=recording_collaborators(converter),
        ) as factory:
            exit_code = main(["--tf-version", "0.12", "convert", "plan.json"])

        assert exit_code == ExitCode.SUCCESS
        factory.assert_called_once_with()
        assert len(converter.calls) == 1
        capsys.readouterr()
