"""spotsync command-line interface."""

from spotsync.cli.main import app, cli_main

__all__ = ["app", "cli_main"]
