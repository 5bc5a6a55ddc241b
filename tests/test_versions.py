"""Tests for plan format versions and version negotiation."""

import logging

import pytest
from hypothesis import given, settings

from tests.conftest import unsupported_versions
from tfvalidator.core.exceptions import ConfigurationError
from tfvalidator.core.versions import (
    DEFAULT_VERSION,
    NegotiationStatus,
    TerraformVersion,
    negotiate_version,
    parse_version,
    supported_versions,
)

CONSOLE = logging.getLogger("tests.console")


# Feature: versions, Property 1: parse_version is total
@given(raw=unsupported_versions())
@settings(max_examples=100)
def test_property_unsupported_values_rejected(raw):
    """Every non-empty value outside the supported set parses as REJECTED."""
    negotiated = parse_version(raw)

    assert negotiated.status is NegotiationStatus.REJECTED
    assert negotiated.version is None
    assert negotiated.raw == raw


# Feature: versions, Property 2: negotiation fails on rejected values
@given(raw=unsupported_versions())
@settings(max_examples=50)
def test_property_negotiation_raises_configuration_error(raw):
    """Rejected values raise ConfigurationError naming the value and the supported set."""
    with pytest.raises(ConfigurationError) as exc_info:
        negotiate_version(raw, CONSOLE)

    error = exc_info.value
    assert error.message == f"Possible values for --tf-version flag are [0.11, 0.12], got: {raw}"
    assert error.context["flag"] == "--tf-version"
    assert error.context["value"] == raw
    assert error.context["supported"] == ["0.11", "0.12"]


class TestParseVersion:
    """Tests for parse_version."""

    @pytest.mark.parametrize("version", list(TerraformVersion))
    def test_supported_values_accepted(self, version) -> None:
        negotiated = parse_version(version.value)

        assert negotiated.status is NegotiationStatus.ACCEPTED
        assert negotiated.version is version

    def test_empty_value_defaulted(self) -> None:
        negotiated = parse_version("")

        assert negotiated.status is NegotiationStatus.DEFAULTED
        assert negotiated.version is DEFAULT_VERSION is TerraformVersion.TF11

    @pytest.mark.parametrize("raw", [" 0.12", "0.12 ", "v0.12", "0.1", "12", "TF12"])
    def test_near_misses_rejected(self, raw) -> None:
        assert parse_version(raw).status is NegotiationStatus.REJECTED


class TestNegotiateVersion:
    """Tests for negotiate_version."""

    def test_default_warns(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="tests.console"):
            version = negotiate_version("", CONSOLE)

        assert version is TerraformVersion.TF11
        assert "Warning: --tf-version flag not defined, using default value: 0.11" in caplog.text

    @pytest.mark.parametrize("raw", ["0.11", "0.12"])
    def test_supported_does_not_warn(self, raw, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="tests.console"):
            version = negotiate_version(raw, CONSOLE)

        assert version.value == raw
        assert caplog.records == []


def test_supported_versions_in_declaration_order() -> None:
    assert supported_versions() == ["0.11", "0.12"]


def test_version_str_is_value() -> None:
    assert str(TerraformVersion.TF12) == "0.12"
    assert f"{TerraformVersion.TF11}" == "0.11"
