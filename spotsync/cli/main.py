"""spotsync CLI - Main application entry point.

Registers the store commands and the global options."""

from __future__ import annotations

from typing import Optional

import typer

from spotsync.cli.sync import compare, migrate, stats, synchronize, validate
from spotsync.core.logging import configure_logging

app = typer.Typer(
    name="spotsync",
    help="Move chemical spot-test records between stores",
    add_completion=False,
)

app.command("migrate", rich_help_panel="Transfer")(migrate.command)
app.command("sync", rich_help_panel="Transfer")(synchronize.command)
app.command("compare", rich_help_panel="Inspect")(compare.command)
app.command("validate", rich_help_panel="Inspect")(validate.command)
app.command("stats", rich_help_panel="Inspect")(stats.command)


def version_callback(value: bool) -> None:
    """Show version and exit.

    Args:
        value: True if --version flag provided
    """
    if value:
        from spotsync import __version__

        typer.echo(f"spotsync version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-V", help="Enable debug logging"
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only log warnings and errors"
    ),
) -> None:
    """spotsync - Spot-test record synchronization.

    Keeps the embedded test dataset and the hosted database in step.

    Examples:
        # Check the embedded dataset
        spotsync validate local

        # What differs between the two stores?
        spotsync compare local remote

        # Upload the dataset
        spotsync migrate local remote

    For help on a specific command:
        spotsync <command> --help
    """
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "WARNING"
    else:
        level = "INFO"
    configure_logging(level=level)


def cli_main() -> None:
    """Entry point for console_scripts."""
    app()


if __name__ == "__main__":
    cli_main()
