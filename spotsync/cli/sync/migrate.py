"""Migrate command - Transfer tests between stores.

Transfers every test from a source store to a target store in paced
batches, with progress tracking and optional count verification."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer
from rich.progress import Progress, TaskID

from spotsync.cli.sync.base import SyncCommand
from spotsync.core.sync.migrator import MigrationProgress, TransferEngine
from spotsync.core.sync.models import MigrationOptions, SyncReport


class MigrateCommand(SyncCommand):
    """Transfer tests between stores."""

    def __init__(self) -> None:
        """Initialize migrate command."""
        super().__init__()
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def execute(
        self,
        source_backend: str,
        target_backend: str,
        config_path: Optional[Path] = None,
        project: Optional[Path] = None,
        verify: bool = False,
        format: str = "table",
        **overrides: Any,
    ) -> int:
        """Migrate tests.

        Args:
            source_backend: Source backend (memory/local/remote)
            target_backend: Target backend
            config_path: Explicit config file
            project: Project directory
            verify: Compare counts after a successful run
            format: Output format
            **overrides: MigrationOptions fields set on the command line

        Returns:
            0 on success, 1 on error
        """
        try:
            self.check_format(format)
            config = self.get_config(config_path, project)
            options = MigrationOptions.from_config(config.sync, **overrides)
            source = self.get_store(config, source_backend)
            target = self.get_store(config, target_backend)

            if format == "table":
                self.print_info(f"Migrating from {source_backend} to {target_backend}")

            report, verified = self.run(self._migrate(source, target, options, verify))
            self.display_report(report, format, "Migration")

            if verified is False:
                self.print_error("Verification failed: store counts differ")
                return 1
            return 0 if report.success else 1

        except Exception as e:
            return self.handle_error(e, "Migration failed")

    async def _migrate(
        self,
        source: Any,
        target: Any,
        options: MigrationOptions,
        verify: bool,
    ) -> tuple[SyncReport, Optional[bool]]:
        cancel_event = asyncio.Event()
        self.install_cancel_handler(cancel_event)
        engine = TransferEngine(
            source,
            target,
            options,
            cancel_event=cancel_event,
            progress_callback=self._progress_callback,
        )
        try:
            with Progress(console=self.console, transient=True) as progress:
                self._progress = progress
                self._task = progress.add_task("Migrating...", total=100)
                report = await engine.migrate()
            self._progress = None

            verified = None
            if verify and report.success and not options.dry_run:
                verified = await engine.verify()
            return report, verified
        finally:
            await self.close_stores(source, target)

    def _progress_callback(self, progress: MigrationProgress) -> None:
        """Update progress display.

        Args:
            progress: Progress data
        """
        if self._progress and self._task is not None:
            self._progress.update(
                self._task,
                completed=progress.percentage,
                description=f"Migrating {progress.current_test}...",
            )


def _positive_timeout(value: Optional[float]) -> Optional[float]:
    if value is not None and value <= 0:
        raise typer.BadParameter("must be greater than 0")
    return value


def command(
    source: str = typer.Argument(..., help="Source backend (memory/local/remote)"),
    target: str = typer.Argument(..., help="Target backend (memory/local/remote)"),
    overwrite: Optional[bool] = typer.Option(
        None, "--overwrite/--no-overwrite", help="Update tests already in the target"
    ),
    validate_data: Optional[bool] = typer.Option(
        None, "--validate/--no-validate", help="Refuse to write when data has defects"
    ),
    skip_existing: Optional[bool] = typer.Option(
        None,
        "--skip-existing/--no-skip-existing",
        help="Leave out tests whose id is already in the target",
    ),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", "-b", min=1, help="Tests per batch"
    ),
    batch_delay: Optional[float] = typer.Option(
        None, "--batch-delay", min=0.0, help="Seconds to pause between batches"
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        callback=_positive_timeout,
        help="Per-call timeout in seconds (> 0)",
    ),
    concurrent: Optional[bool] = typer.Option(
        None,
        "--concurrent/--sequential",
        help="Write the tests of a batch concurrently",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Clean and count tests without writing"
    ),
    created_by: Optional[str] = typer.Option(
        None, "--created-by", help="Author stamped on cleaned tests"
    ),
    verify: bool = typer.Option(
        False, "--verify/--no-verify", help="Compare store counts afterwards"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file"
    ),
    project: Optional[Path] = typer.Option(
        None, "--project", "-p", help="Project directory"
    ),
    format: str = typer.Option(
        "table", "--format", "-f", help="Output format (table/json)"
    ),
) -> None:
    """Migrate tests from one store to another.

    Reads the whole source, leaves out tests the target already has,
    validates the rest and writes them in paced batches. One failing test
    never stops the run.

    Examples:
        # Copy the embedded dataset to the remote database
        spotsync migrate local remote

        # See what would be written
        spotsync migrate local remote --dry-run

        # Faster batches, overwriting tests already present
        spotsync migrate local remote -b 25 --batch-delay 0 --overwrite
    """
    cmd = MigrateCommand()
    exit_code = cmd.execute(
        source,
        target,
        config_path,
        project,
        verify,
        format,
        overwrite=overwrite,
        validate_data=validate_data,
        skip_existing=skip_existing,
        batch_size=batch_size,
        batch_delay_sec=batch_delay,
        call_timeout_sec=timeout,
        concurrent=concurrent,
        dry_run=dry_run,
        created_by=created_by,
    )
    if exit_code != 0:
        raise typer.Exit(code=exit_code)
