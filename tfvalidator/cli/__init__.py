"""CLI interface for terraform-validator.

This package provides the ``terraform-validator`` command: converting plans
into assets, validating them against a policy library, and listing the
supported resource types.
"""
