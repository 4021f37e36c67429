"""CLI command implementations for the sheetnest application.

This package contains subcommands for the sheetnest CLI, including:
- validate: Validate a nesting job file
"""

from sheetnest.cli.commands.validate import job_advisories, validate_command

__all__ = ["job_advisories", "validate_command"]
