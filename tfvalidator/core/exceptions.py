"""Custom exception classes for terraform-validator error handling.

This module defines the exception hierarchy shared by the command line and
its collaborators:
- ConfigurationError: Invalid global configuration (e.g. --tf-version)
- MissingRequiredFlagError: A required flag or argument was not supplied
- CollaboratorError: Failures surfaced from the converter or policy engine
    - PlanError: The plan file could not be read or has the wrong layout
    - ConversionError: A plan resource could not be converted to an asset
    - PolicyError: The policy library could not be loaded or evaluated

All exceptions inherit from TfValidatorError for consistent error handling.
"""

from typing import Any


class TfValidatorError(Exception):
    """Base exception for all terraform-validator errors.

    Provides a common base class so the execution entrypoint can report every
    known failure the same way and map it to an exit code.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error description
            context: Optional dictionary of contextual information (flag names,
                    values, file paths, resource addresses, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return a formatted error message with context."""
        if not self.context:
            return self.message

        context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"{self.message} [{context_str}]"


class ConfigurationError(TfValidatorError):
    """Exception raised when a global flag holds an unusable value.

    Raised by the version negotiator when --tf-version is neither empty nor a
    member of the supported version set. Always fatal: the selected subcommand
    never runs.

    Context typically includes:
        - flag: Name of the offending flag
        - value: Value received on the command line
        - supported: Values the flag accepts
    """

    def __init__(
        self,
        message: str,
        flag: str | None = None,
        value: str | None = None,
        supported: list[str] | None = None,
        **extra_context: Any,
    ) -> None:
        """Initialize configuration error with flag details.

        Args:
            message: Human-readable error description
            flag: Name of the offending flag (e.g. "--tf-version")
            value: Value received on the command line
            supported: Values the flag accepts
            **extra_context: Additional context information
        """
        context: dict[str, Any] = {}
        if flag is not None:
            context["flag"] = flag
        if value is not None:
            context["value"] = value
        if supported is not None:
            context["supported"] = supported
        context.update(extra_context)

        super().__init__(message, context)


class MissingRequiredFlagError(TfValidatorError):
    """Exception raised when a required flag or argument is absent.

    Raised while parsing the command line, before any handler logic or
    collaborator call takes place.

    Context typically includes:
        - flag: Name of the missing flag or argument
        - command: Subcommand that requires it
    """

    def __init__(
        self,
        message: str,
        flag: str | None = None,
        command: str | None = None,
        **extra_context: Any,
    ) -> None:
        """Initialize missing flag error.

        Args:
            message: Human-readable error description
            flag: Name of the missing flag (e.g. "--policy-path")
            command: Subcommand that was invoked
            **extra_context: Additional context information
        """
        context: dict[str, Any] = {}
        if flag is not None:
            context["flag"] = flag
        if command is not None:
            context["command"] = command
        context.update(extra_context)

        super().__init__(message, context)


class CollaboratorError(TfValidatorError):
    """Base exception for failures surfaced from a collaborator.

    The converter and the policy engine raise subclasses of this exception.
    The command line propagates them unchanged to the entrypoint; there is no
    partial-success mode.
    """


class PlanError(CollaboratorError):
    """Exception raised when a plan file cannot be read.

    Context typically includes:
        - file_path: Path to the plan file
        - tf_version: Plan format version the file was read as
        - reason: Specific reason for the failure
    """

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        tf_version: str | None = None,
        reason: str | None = None,
        **extra_context: Any,
    ) -> None:
        """Initialize plan error with input file details.

        Args:
            message: Human-readable error description
            file_path: Path to the plan file that failed
            tf_version: Plan format version the file was read as
            reason: Specific reason for the failure
            **extra_context: Additional context information
        """
        context: dict[str, Any] = {}
        if file_path is not None:
            context["file_path"] = file_path
        if tf_version is not None:
            context["tf_version"] = tf_version
        if reason is not None:
            context["reason"] = reason
        context.update(extra_context)

        super().__init__(message, context)


class ConversionError(CollaboratorError):
    """Exception raised when a plan resource cannot be converted to an asset.

    Context typically includes:
        - address: Terraform address of the resource
        - resource_type: Terraform resource type
        - field: Attribute that was missing or invalid
    """

    def __init__(
        self,
        message: str,
        address: str | None = None,
        resource_type: str | None = None,
        field: str | None = None,
        **extra_context: Any,
    ) -> None:
        """Initialize conversion error with resource details.

        Args:
            message: Human-readable error description
            address: Terraform address of the resource
            resource_type: Terraform resource type
            field: Attribute that was missing or invalid
            **extra_context: Additional context information
        """
        context: dict[str, Any] = {}
        if address is not None:
            context["address"] = address
        if resource_type is not None:
            context["resource_type"] = resource_type
        if field is not None:
            context["field"] = field
        context.update(extra_context)

        super().__init__(message, context)


class PolicyError(CollaboratorError):
    """Exception raised when the policy library cannot be loaded or evaluated.

    Context typically includes:
        - policy_path: File or directory holding the offending constraint
        - constraint: Name of the constraint, when known
        - field: Key of the constraint document that is invalid
        - reason: Specific reason for the failure
    """

    def __init__(
        self,
        message: str,
        policy_path: str | None = None,
        constraint: str | None = None,
        field: str | None = None,
        reason: str | None = None,
        **extra_context: Any,
    ) -> None:
        """Initialize policy error with library details.

        Args:
            message: Human-readable error description
            policy_path: File or directory holding the offending constraint
            constraint: Name of the constraint, when known
            field: Key of the constraint document that is invalid
            reason: Specific reason for the failure
            **extra_context: Additional context information
        """
        context: dict[str, Any] = {}
        if policy_path is not None:
            context["policy_path"] = policy_path
        if constraint is not None:
            context["constraint"] = constraint
        if field is not None:
            context["field"] = field
        if reason is not None:
            context["reason"] = reason
        context.update(extra_context)

        super().__init__(message, context)
