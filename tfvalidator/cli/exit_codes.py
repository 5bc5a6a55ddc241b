"""Exit code constants for CLI commands.

Exit codes:
    0: SUCCESS - Operation completed successfully
    1: ERROR - Any failure (configuration, usage, missing flag, collaborator
       or unexpected error)
    2: VIOLATIONS_FOUND - validate completed and reported violations
"""


class ExitCode:
    """Standard exit codes for CLI commands.

    Example:
        >>> from tfvalidator.cli.exit_codes import ExitCode
        >>> import sys
        >>>
        >>> try:
        ...     # ... operation ...
        ...     sys.exit(ExitCode.SUCCESS)
        ... except TfValidatorError:
        ...     sys.exit(ExitCode.ERROR)
    """

    SUCCESS = 0
    """Operation completed successfully."""

    ERROR = 1
    """Any failure, reported on stderr."""

    VIOLATIONS_FOUND = 2
    """Policy validation completed and found violations."""
