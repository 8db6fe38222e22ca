"""Compare command - Show differences between two stores."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from spotsync.cli.sync.base import MAX_ERRORS_SHOWN, SyncCommand
from spotsync.core.sync.differ import compare_stores
from spotsync.core.sync.models import DiffReport
from spotsync.storage.base import RecordStore


class CompareCommand(SyncCommand):
    """Compare the contents of two stores."""

    def execute(
        self,
        store_a: str,
        store_b: str,
        config_path: Optional[Path] = None,
        project: Optional[Path] = None,
        show_fields: bool = True,
        format: str = "table",
    ) -> int:
        """Compare two stores.

        Args:
            store_a: First backend
            store_b: Second backend
            config_path: Explicit config file
            project: Project directory
            show_fields: List per-field differences of shared tests
            format: Output format (table/json)

        Returns:
            0 when both stores could be read, 1 otherwise
        """
        try:
            self.check_format(format)
            config = self.get_config(config_path, project)
            a = self.get_store(config, store_a)
            b = self.get_store(config, store_b)
            diff = self.run(self._compare(a, b))

            if format == "json":
                self.print_json(diff.to_dict())
            else:
                self._display_table(diff, store_a, store_b, show_fields)
            return 1 if diff.errors else 0

        except Exception as e:
            return self.handle_error(e, "Comparison failed")

    async def _compare(self, a: RecordStore, b: RecordStore) -> DiffReport:
        try:
            return await compare_stores(a, b)
        finally:
            await self.close_stores(a, b)

    def _display_table(
        self, diff: DiffReport, name_a: str, name_b: str, show_fields: bool
    ) -> None:
        self.console.print()
        self.console.print(
            self.create_stats_table(
                {
                    f"{name_a}_tests": diff.count_a,
                    f"{name_b}_tests": diff.count_b,
                    f"only_in_{name_a}": len(diff.only_in_a),
                    f"only_in_{name_b}": len(diff.only_in_b),
                    "in_both": len(diff.common_ids),
                    "field_differences": len(diff.field_differences),
                },
                "Store Comparison",
            )
        )

        if diff.errors:
            self.print_list("stores could not be read", diff.errors)
        elif diff.is_in_sync:
            self.print_success("Stores hold the same tests")

        for label, ids in ((name_a, diff.only_in_a), (name_b, diff.only_in_b)):
            if ids:
                self.print_list(f"tests only in {label}", ids)

        if show_fields and diff.field_differences:
            table = Table(title="Field Differences")
            table.add_column("Test", style="cyan")
            table.add_column("Field")
            table.add_column(name_a, style="yellow")
            table.add_column(name_b, style="magenta")
            limit = MAX_ERRORS_SHOWN * 4
            for difference in diff.field_differences[:limit]:
                table.add_row(
                    difference.id,
                    difference.field,
                    escape(str(difference.value_a)),
                    escape(str(difference.value_b)),
                )
            self.console.print(table)
            remaining = len(diff.field_differences) - limit
            if remaining > 0:
                self.console.print(f"  ... and {remaining} more")


def command(
    store_a: str = typer.Argument("local", help="First store backend"),
    store_b: str = typer.Argument("remote", help="Second store backend"),
    show_fields: bool = typer.Option(
        True, "--fields/--no-fields", help="List field differences of shared tests"
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
    """Compare the tests held by two stores.

    Reports tests present on only one side and, for tests in both, the
    fields whose values differ. Nothing is written.

    Examples:
        spotsync compare
        spotsync compare local remote --format json
    """
    cmd = CompareCommand()
    exit_code = cmd.execute(store_a, store_b, config_path, project, show_fields, format)
    if exit_code != 0:
        raise typer.Exit(code=exit_code)
