"""Cyclopts application, dispatch pipeline and execution entrypoint.

The CLI provides the following commands:
- convert: Convert a plan into assets
- validate: Validate a plan against a policy library
- list-supported-resources: List supported Terraform resource types
- version: Print the build version

Global flags (``--verbose``, ``--tf-version``) belong to the meta launcher
and may appear before or after the subcommand. The launcher runs one ordered
pipeline per invocation:

1. parse the subcommand and its flags
2. route logging according to ``--verbose``
3. negotiate the plan format version
4. build the invocation ``Settings``
5. run the subcommand handler

Parser callbacks never run subcommand logic, so nothing executes before the
version has been negotiated.
"""

import logging
import sys
from collections.abc import Sequence
from typing import Annotated

from cyclopts import App, Parameter
from cyclopts.exceptions import MissingArgumentError

from tfvalidator import __version__
# Imported for its subcommand registrations
from tfvalidator.cli import commands  # noqa: F401
from tfvalidator.cli.exit_codes import ExitCode
from tfvalidator.cli.logging_config import configure_logging, get_console_logger
from tfvalidator.cli.output import handle_error
from tfvalidator.cli.registry import (
    Collaborators,
    default_collaborators,
    find_subcommand,
    list_subcommands,
)
from tfvalidator.cli.settings import Settings
from tfvalidator.core.exceptions import MissingRequiredFlagError
from tfvalidator.core.versions import negotiate_version, supported_versions

logger = logging.getLogger(__name__)

TF_VERSION_HELP = (
    "Terraform version (required), possible values are "
    f"[{', '.join(supported_versions())}]"
)


def create_app(collaborators: Collaborators) -> App:
    """Build the application with its subcommands and meta launcher.

    Args:
        collaborators: Components the subcommand handlers delegate to

    Returns:
        The application; invoke it through ``app.meta``
    """
    app = App(
        name="terraform-validator",
        help="Validate Terraform plans against organizational policy",
        version=__version__,
    )

    for subcommand in list_subcommands():
        app.command(subcommand.declare, name=subcommand.name)

    @app.meta.default
    def launcher(
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        verbose: Annotated[bool, Parameter(negative="", help="Print log output")] = False,
        tf_version: Annotated[str, Parameter(help=TF_VERSION_HELP)] = "",
    ) -> int:
        try:
            return dispatch(app, tokens, verbose, tf_version, collaborators)
        except Exception as e:
            handle_error(e, verbose=verbose)
            return ExitCode.ERROR

    return app


def dispatch(
    app: App,
    tokens: Sequence[str],
    verbose: bool,
    tf_version: str,
    collaborators: Collaborators,
) -> int:
    """Run the dispatch pipeline for one invocation.

    Args:
        app: Application holding the subcommands
        tokens: Command-line tokens left after the global flags
        verbose: Value of --verbose
        tf_version: Raw value of --tf-version
        collaborators: Components the handler delegates to

    Returns:
        Exit code of the handler

    Raises:
        MissingRequiredFlagError: If a required flag or argument is absent
        CycloptsError: If the tokens do not form a valid command line
        ConfigurationError: If --tf-version holds an unsupported value
        CollaboratorError: If the handler's collaborators fail
    """
    try:
        command, bound, _ = app.parse_args(list(tokens), print_error=False, exit_on_error=False)
    except MissingArgumentError as e:
        raise _missing_flag_error(e) from e

    subcommand = find_subcommand(command)
    if subcommand is None:
        # No subcommand selected: cyclopts resolved to its help page
        command(*bound.args, **bound.kwargs)
        return ExitCode.SUCCESS

    configure_logging(verbose)
    version = negotiate_version(tf_version, get_console_logger())

    settings = Settings(
        verbose=verbose,
        tf_version=version,
        command=subcommand.declare(*bound.args, **bound.kwargs),
    )
    logger.debug("Running %s with %s", subcommand.name, settings)

    return subcommand.handler(settings, collaborators)


def _missing_flag_error(error: MissingArgumentError) -> MissingRequiredFlagError:
    flag = error.argument.name if error.argument is not None else None
    command = " ".join(error.command_chain) if error.command_chain else None
    return MissingRequiredFlagError(
        f'Required flag "{flag}" not set',
        flag=flag,
        command=command,
    )


def main(
    argv: Sequence[str] | None = None,
    collaborators: Collaborators | None = None,
) -> int:
    """Execution entrypoint.

    Args:
        argv: Command-line tokens, defaults to ``sys.argv[1:]``
        collaborators: Components to run the subcommands against, defaults to
                       the built-in converter and policy engine

    Returns:
        Exit code: 0 on success, 1 on any error, 2 when validate finds
        violations

    Example:
        >>> main(["--tf-version", "0.12", "version"])
        Build version: 0.1.0
        0
    """
    app = create_app(collaborators if collaborators is not None else default_collaborators())
    tokens = list(sys.argv[1:] if argv is None else argv)

    try:
        result = app.meta(
            tokens,
            print_error=False,
            exit_on_error=False,
            result_action="return_value",
        )
    except Exception as e:
        handle_error(e)
        return ExitCode.ERROR

    # Help and --version print and return None
    return result if isinstance(result, int) else ExitCode.SUCCESS


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())
