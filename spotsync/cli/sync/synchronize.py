"""Sync command - Copy missing tests between two stores."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from spotsync.cli.sync.base import SyncCommand
from spotsync.core.sync.manager import Synchronizer
from spotsync.core.sync.models import MigrationOptions, SyncReport
from spotsync.storage.base import RecordStore


class SyncStoresCommand(SyncCommand):
    """Reconcile two stores."""

    def execute(
        self,
        store_a: str,
        store_b: str,
        reverse: bool = False,
        config_path: Optional[Path] = None,
        project: Optional[Path] = None,
        batch_size: Optional[int] = None,
        format: str = "table",
    ) -> int:
        """Synchronize two stores.

        Args:
            store_a: Store whose extra tests are copied
            store_b: Store receiving them
            reverse: Prepare B's extra tests for A instead, writing nothing
            config_path: Explicit config file
            project: Project directory
            batch_size: Override the configured batch size
            format: Output format (table/json)

        Returns:
            0 on success, 1 otherwise
        """
        try:
            self.check_format(format)
            config = self.get_config(config_path, project)
            options = MigrationOptions.from_config(config.sync, batch_size=batch_size)
            a = self.get_store(config, store_a)
            b = self.get_store(config, store_b)

            report = self.run(self._synchronize(a, b, options, reverse))
            title = "Reverse Preparation" if reverse else "Synchronization"
            self.display_report(report, format, title)
            return 0 if report.success else 1

        except Exception as e:
            return self.handle_error(e, "Synchronization failed")

    async def _synchronize(
        self,
        a: RecordStore,
        b: RecordStore,
        options: MigrationOptions,
        reverse: bool,
    ) -> SyncReport:
        cancel_event = asyncio.Event()
        self.install_cancel_handler(cancel_event)
        synchronizer = Synchronizer(a, b, options, cancel_event=cancel_event)
        try:
            if reverse:
                return await synchronizer.prepare_reverse()
            return await synchronizer.synchronize()
        finally:
            await self.close_stores(a, b)


def command(
    store_a: str = typer.Argument("local", help="Store whose extra tests are copied"),
    store_b: str = typer.Argument("remote", help="Store receiving them"),
    reverse: bool = typer.Option(
        False,
        "--reverse",
        help="Prepare tests found only in the second store, without writing",
    ),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", "-b", min=1, help="Tests per batch"
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
    """Copy tests missing from the second store into it.

    Tests present in both stores are left untouched. With --reverse the
    tests found only in the second store are cleaned and counted for the
    first one, which is never written.

    Examples:
        spotsync sync
        spotsync sync local remote --reverse
    """
    cmd = SyncStoresCommand()
    exit_code = cmd.execute(
        store_a, store_b, reverse, config_path, project, batch_size, format
    )
    if exit_code != 0:
        raise typer.Exit(code=exit_code)
