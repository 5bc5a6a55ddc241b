"""Output formatting for CLI commands.

This module provides:
- handle_error: Formatted error messages with context and optional stack traces
- print_json: Indented JSON on stdout
- print_violations: Violations as text lines or as a JSON array

Command results go to stdout; errors and diagnostics go to stderr.
"""

import json
import sys
import traceback
from collections.abc import Sequence
from typing import Any

from tfvalidator.core.exceptions import TfValidatorError
from tfvalidator.policy.result import Violation

NO_VIOLATIONS = "No violations found."
VIOLATIONS_HEADER = "Found Violations:"


def print_json(payload: Any) -> None:
    """Print a JSON document to stdout with 2-space indentation."""
    print(json.dumps(payload, indent=2))


def print_violations(violations: Sequence[Violation], output_json: bool = False) -> None:
    """Print validation results to stdout.

    Args:
        violations: Violations reported by the policy engine
        output_json: Print a JSON array instead of text lines

    Example:
        >>> print_violations([])
        No violations found.
        >>> print_violations([Violation("c", "r", "m")])
        Found Violations:
        Constraint c on resource r: m
    """
    if output_json:
        print_json([violation.to_json() for violation in violations])
        return

    if not violations:
        print(NO_VIOLATIONS)
        return

    print(VIOLATIONS_HEADER)
    for violation in violations:
        print(violation.format())


def handle_error(error: Exception, verbose: bool = False) -> None:
    """Format and display error message with context.

    Displays error messages to stderr with optional context fields from
    TfValidatorError exceptions. When verbose mode is enabled, also displays
    the full stack trace.

    Args:
        error: Exception to display
        verbose: Whether to show stack trace (default False)

    Example:
        try:
            # ... operation ...
        except TfValidatorError as e:
            handle_error(e, verbose=True)
    """
    context = getattr(error, "context", None)
    # The Context block lists what str(error) would append
    message = error.message if context and isinstance(error, TfValidatorError) else error
    print(f"Error: {message}", file=sys.stderr)

    if context:
        print("Context:", file=sys.stderr)
        for key, value in context.items():
            print(f"  {key}: {value}", file=sys.stderr)

    if verbose:
        print("\nStack trace:", file=sys.stderr)
        traceback.print_exception(error, file=sys.stderr)
