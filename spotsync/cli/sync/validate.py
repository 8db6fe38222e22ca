"""Validate command - Check a store's tests before a transfer.

Runs the pre-flight validator (the gate a migration applies) and the
fuller dataset audit, which also reports warnings such as missing
translations."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from spotsync.cli.sync.base import SyncCommand
from spotsync.core.models.records import TestRecord
from spotsync.core.sync.audit import AuditResult, audit_records
from spotsync.core.sync.validator import validate_records
from spotsync.storage.base import RecordStore


class ValidateCommand(SyncCommand):
    """Validate and audit the tests of one store."""

    def execute(
        self,
        backend: str,
        config_path: Optional[Path] = None,
        project: Optional[Path] = None,
        show_warnings: bool = False,
        format: str = "table",
    ) -> int:
        """Validate a store.

        Returns:
            0 when no defects or audit errors were found, 1 otherwise
        """
        try:
            self.check_format(format)
            config = self.get_config(config_path, project)
            store = self.get_store(config, backend)
            records = self.run(self._load(store))

            defects = validate_records(records)
            audit = audit_records(records)

            if format == "json":
                self.print_json({"defects": defects, "audit": audit.to_dict()})
            else:
                self._display_table(backend, defects, audit, show_warnings)
            return 1 if defects or not audit.is_valid else 0

        except Exception as e:
            return self.handle_error(e, "Validation failed")

    async def _load(self, store: RecordStore) -> List[TestRecord]:
        try:
            return await store.list_all()
        finally:
            await self.close_stores(store)

    def _display_table(
        self,
        backend: str,
        defects: List[str],
        audit: AuditResult,
        show_warnings: bool,
    ) -> None:
        self.console.print()
        summary = audit.to_dict()["summary"]
        summary["defects"] = len(defects)
        summary["warnings"] = len(audit.warnings)
        self.console.print(self.create_stats_table(summary, f"Validation: {backend}"))

        if not defects and audit.is_valid:
            self.print_success("All tests are ready for transfer")
        if defects:
            self.print_list("defects block a validated transfer", defects)
        if audit.errors:
            self.print_list("audit errors", audit.errors)
        if show_warnings and audit.warnings:
            self.print_list("audit warnings", audit.warnings, limit=len(audit.warnings))
        elif audit.warnings:
            self.print_info(
                f"{len(audit.warnings)} warnings (use --warnings to list them)"
            )


def command(
    backend: str = typer.Argument("local", help="Store backend to validate"),
    show_warnings: bool = typer.Option(
        False, "--warnings", "-w", help="List every audit warning"
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
    """Validate the tests of a store.

    Examples:
        spotsync validate
        spotsync validate remote --warnings
    """
    cmd = ValidateCommand()
    exit_code = cmd.execute(backend, config_path, project, show_warnings, format)
    if exit_code != 0:
        raise typer.Exit(code=exit_code)
