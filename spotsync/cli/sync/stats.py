"""Stats command - Show dataset statistics."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from spotsync.cli.sync.base import SyncCommand
from spotsync.core.sync.statistics import TestStatistics, compute_statistics
from spotsync.storage.base import RecordStore


class StatsCommand(SyncCommand):
    """Display dataset statistics."""

    def execute(
        self,
        backend: str,
        config_path: Optional[Path] = None,
        project: Optional[Path] = None,
        format: str = "table",
    ) -> int:
        """Show statistics for one store.

        Returns:
            0 on success, 1 on error
        """
        try:
            self.check_format(format)
            config = self.get_config(config_path, project)
            store = self.get_store(config, backend)
            stats = self.run(self._compute(store))

            data = stats.to_dict()
            data["backend"] = backend
            if format == "json":
                self.print_json(data)
            else:
                self._display_table(stats, backend)
            return 0

        except Exception as e:
            return self.handle_error(e, "Failed to get statistics")

    async def _compute(self, store: RecordStore) -> TestStatistics:
        try:
            return compute_statistics(await store.list_all())
        finally:
            await self.close_stores(store)

    def _display_table(self, stats: TestStatistics, backend: str) -> None:
        """Display stats as tables."""
        self.console.print()
        self.console.print(
            self.create_stats_table(
                {
                    "backend": backend,
                    "total_tests": stats.total_tests,
                    "total_results": stats.total_results,
                    "unique_substances": stats.unique_substances,
                    "unique_colors": stats.unique_colors,
                },
                "Dataset Statistics",
            )
        )

        if stats.tests_by_type:
            table = Table(title="Tests by Type")
            table.add_column("Type", style="cyan")
            table.add_column("Tests", style="green", justify="right")
            for test_type, count in sorted(stats.tests_by_type.items()):
                table.add_row(test_type, str(count))
            self.console.print(table)


def command(
    backend: str = typer.Argument("local", help="Store backend"),
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
    """Show dataset statistics.

    Examples:
        spotsync stats
        spotsync stats remote --format json
    """
    cmd = StatsCommand()
    exit_code = cmd.execute(backend, config_path, project, format)
    if exit_code != 0:
        raise typer.Exit(code=exit_code)
