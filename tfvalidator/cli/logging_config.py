"""Log routing for CLI invocations.

Two streams exist:

- Diagnostics: module loggers under ``tfvalidator``. Shown on stderr with
  ``--verbose`` and discarded otherwise.
- Console: the ``tfvalidator.console`` logger for user-facing warnings. It
  does not propagate and always writes to stderr, regardless of
  ``--verbose``.

Handlers installed here are named so that reconfiguring replaces only them
and leaves handlers added by other code (test harnesses, embedding
applications) untouched.
"""

import logging
import sys

LOGGER_NAME = "tfvalidator"
CONSOLE_LOGGER_NAME = "tfvalidator.console"
HANDLER_NAME = "tfvalidator"

DIAGNOSTIC_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
CONSOLE_FORMAT = "%(asctime)s %(message)s"
CONSOLE_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def configure_logging(verbose: bool) -> None:
    """Route diagnostics for this invocation.

    Must run before anything logs, in particular before version negotiation
    emits its default-version warning.

    Args:
        verbose: Show diagnostics on stderr instead of discarding them

    Example:
        >>> configure_logging(verbose=True)
        >>> logging.getLogger("tfvalidator.core.plan").info("Read 3 resources")
        2024-01-01 12:00:00,000 INFO tfvalidator.core.plan: Read 3 resources
    """
    root = logging.getLogger()
    _remove_installed_handlers(root)

    handler: logging.Handler
    if verbose:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(DIAGNOSTIC_FORMAT))
    else:
        handler = logging.NullHandler()
    handler.set_name(HANDLER_NAME)
    root.addHandler(handler)

    logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG if verbose else logging.WARNING)

    _configure_console()


def get_console_logger() -> logging.Logger:
    """Return the logger for user-facing warnings."""
    return logging.getLogger(CONSOLE_LOGGER_NAME)


def _configure_console() -> None:
    console = get_console_logger()
    _remove_installed_handlers(console)

    # Bound to the current stderr, which may be replaced between invocations
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT))
    handler.set_name(HANDLER_NAME)

    console.addHandler(handler)
    console.setLevel(logging.INFO)
    console.propagate = False


def _remove_installed_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            logger.removeHandler(handler)
            handler.close()
