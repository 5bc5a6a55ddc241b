"""Tests for the subcommand registry and settings."""

import dataclasses
from pathlib import Path

import pytest

from tfvalidator.cli import commands
from tfvalidator.cli.registry import (
    SUBCOMMANDS,
    Subcommand,
    default_collaborators,
    find_subcommand,
    get_subcommand,
    list_subcommands,
    register_subcommand,
)
from tfvalidator.cli.settings import ConvertSettings, Settings, ValidateSettings
from tfvalidator.core.converter import Converter
from tfvalidator.core.versions import TerraformVersion
from tfvalidator.policy.engine import ConstraintEngine


class TestSubcommandRegistry:
    """Tests for subcommand registration and lookup."""

    def test_builtin_subcommands_in_registration_order(self) -> None:
        assert [s.name for s in list_subcommands()] == [
            "convert",
            "validate",
            "list-supported-resources",
            "version",
        ]

    def test_get_subcommand(self) -> None:
        subcommand = get_subcommand("validate")

        assert subcommand.declare is commands.validate
        assert subcommand.handler is commands.run_validate

    def test_get_unknown_subcommand(self) -> None:
        with pytest.raises(KeyError, match="Available subcommands: convert"):
            get_subcommand("frobnicate")

    def test_find_subcommand_by_declaration(self) -> None:
        assert find_subcommand(commands.version).name == "version"
        assert find_subcommand(print) is None

    def test_duplicate_registration_rejected(self) -> None:
        with pytest.raises(ValueError, match="already registered"):
            register_subcommand(
                Subcommand(name="version", declare=commands.version, handler=commands.run_version)
            )
        assert SUBCOMMANDS["version"].handler is commands.run_version


def test_default_collaborators() -> None:
    collaborators = default_collaborators()

    assert isinstance(collaborators.converter, Converter)
    assert collaborators.lister is collaborators.converter
    assert isinstance(collaborators.policy_engine, ConstraintEngine)


class TestSettings:
    """Tests for the invocation settings records."""

    def test_declarations_build_settings_groups(self) -> None:
        assert commands.convert(Path("plan.json"), project="p") == ConvertSettings(
            plan=Path("plan.json"), project="p"
        )
        assert commands.validate(Path("plan.json"), policy_path=Path("policies")) == ValidateSettings(
            plan=Path("plan.json"), policy_path=Path("policies")
        )

    def test_settings_are_frozen(self) -> None:
        settings = Settings(
            verbose=False,
            tf_version=TerraformVersion.TF12,
            command=ConvertSettings(plan=Path("plan.json")),
        )

        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.tf_version = TerraformVersion.TF11
        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.command.project = "other"
