"""CLI entry point for terraform-validator.

Enables invocation via `python -m tfvalidator`.
"""

import sys

from tfvalidator.cli.app import main

if __name__ == "__main__":
    sys.exit(main())
