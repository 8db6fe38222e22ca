"""Base class for sync CLI commands.

Provides config loading, store creation, async execution and the shared
rich output helpers."""

from __future__ import annotations

import asyncio
import json
import signal
from contextlib import suppress
from pathlib import Path
from typing import Any, Awaitable, Dict, Optional, TypeVar

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from spotsync.core.config import Config
from spotsync.core.exceptions import get_error_info
from spotsync.core.sync.models import SyncReport
from spotsync.storage.base import RecordStore

T = TypeVar("T")

OUTPUT_FORMATS = ("table", "json")
MAX_ERRORS_SHOWN = 5


class SyncCommand:
    """Base class for sync commands."""

    def __init__(self) -> None:
        """Initialize sync command."""
        self.console = Console()

    def get_config(
        self, config_path: Optional[Path] = None, project: Optional[Path] = None
    ) -> Config:
        """Load configuration.

        Args:
            config_path: Explicit config file
            project: Project directory

        Returns:
            Config object
        """
        from spotsync.core.config_loaders import load_config

        return load_config(config_path, base_path=project)

    def get_store(self, config: Config, backend: str) -> RecordStore:
        """Create a record store for a backend name."""
        from spotsync.storage.factory import get_store

        return get_store(config, backend)

    @staticmethod
    async def close_stores(*stores: RecordStore) -> None:
        """Release any network resources held by the stores."""
        for store in stores:
            aclose = getattr(store, "aclose", None)
            if aclose is not None:
                await aclose()

    @staticmethod
    def run(coro: Awaitable[T]) -> T:
        """Run a coroutine to completion on a fresh event loop."""
        return asyncio.run(coro)

    @staticmethod
    def install_cancel_handler(cancel_event: asyncio.Event) -> None:
        """Set cancel_event on Ctrl-C instead of tearing down the loop.

        Must be called from inside the running loop. Platforms without
        loop signal handlers keep the default KeyboardInterrupt.
        """
        loop = asyncio.get_running_loop()
        with suppress(NotImplementedError):
            loop.add_signal_handler(signal.SIGINT, cancel_event.set)

    def check_format(self, format: str) -> None:
        if format not in OUTPUT_FORMATS:
            raise ValueError(
                f"Unknown output format: {format} "
                f"(expected one of {', '.join(OUTPUT_FORMATS)})"
            )

    def print_success(self, message: str) -> None:
        """Print success message."""
        self.console.print(f"[green]SUCCESS[/green]: {escape(message)}")

    def print_error(self, message: str) -> None:
        """Print error message."""
        self.console.print(f"[red]ERROR[/red]: {escape(message)}")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self.console.print(f"[blue]INFO[/blue]: {escape(message)}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self.console.print(f"[yellow]WARNING[/yellow]: {escape(message)}")

    def print_json(self, data: Any) -> None:
        """Print data as indented JSON."""
        self.console.print_json(json.dumps(data, ensure_ascii=False, default=str))

    def print_list(
        self, title: str, items: list[str], limit: int = MAX_ERRORS_SHOWN
    ) -> None:
        """Print the first ``limit`` items of a list under a warning."""
        self.print_warning(f"{len(items)} {title}")
        for item in items[:limit]:
            self.console.print(f"  - {item}", markup=False)
        if len(items) > limit:
            self.console.print(f"  ... and {len(items) - limit} more")

    def create_stats_table(self, stats: Dict[str, Any], title: str) -> Table:
        """Create a two-column table for statistics display.

        Args:
            stats: Metric name to value
            title: Table title

        Returns:
            Rich Table object
        """
        table = Table(title=title)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        for key, value in stats.items():
            display_key = key.replace("_", " ").title()
            table.add_row(display_key, escape(str(value)))

        return table

    def display_report(self, report: SyncReport, format: str, title: str) -> None:
        """Display a run report as JSON or as a summary table.

        Args:
            report: Report to show
            format: Output format (table/json)
            title: Table title
        """
        if format == "json":
            self.print_json(report.to_dict())
            return

        self.console.print()
        if report.success:
            self.print_success(report.message)
        else:
            self.print_error(report.message)

        table = self.create_stats_table(
            {
                "transferred": report.transferred,
                "failed": report.failed,
                "skipped": report.skipped,
                "duration": f"{report.duration_ms / 1000:.1f}s",
                "source_backend": report.source_backend,
                "target_backend": report.target_backend,
            },
            title,
        )
        self.console.print(table)

        if report.errors:
            self.console.print()
            self.print_list("errors occurred", report.errors)

    def handle_error(self, error: Exception, context: str) -> int:
        """Handle error and return exit code.

        Args:
            error: Exception that occurred
            context: Context message

        Returns:
            Exit code (1)
        """
        self.print_error(f"{context}: {error}")
        info = get_error_info(error)
        for step in info["how_to_fix"]:
            self.console.print(f"  [dim]->[/dim] {escape(step)}")
        return 1
