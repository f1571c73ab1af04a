"""
CLI Renderer
============

Rich terminal output for a run:

- a spinner while resource types are being listed,
- a table of found resources once the scan completes,
- a progress bar while batches are deleted,
- tables of deletions and errors once the nuke phase completes.

Large inventories are summarised by type instead of listed row by row.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.status import Status
from rich.table import Table
from rich.text import Text

from cloudsweep.core.utils import remove_newlines, truncate
from cloudsweep.reporting.events import (
    Complete,
    GeneralError,
    NukeComplete,
    NukeProgress,
    NukeStarted,
    ResourceDeleted,
    ResourceFound,
    ScanComplete,
    ScanProgress,
    ScanStarted,
)
from cloudsweep.reporting.renderers.base import Renderer

logger = logging.getLogger(__name__)

# Above this many findings the found table collapses to per-type counts
MAX_RESOURCES_FOR_DETAILED_TABLE = 500
ERROR_CELL_WIDTH = 40


class CLIRenderer(Renderer):
    """
    Render a run to the terminal with Rich.

    Parameters
    ----------
    console : Console, optional
        Rich Console to draw on. Defaults to stdout.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self.found: List[ResourceFound] = []
        self.deleted: List[ResourceDeleted] = []
        self.errors: List[GeneralError] = []
        self._status: Optional[Status] = None
        self._progress: Optional[Progress] = None
        self._task_id = None

    # =========================================================================
    # Scan phase
    # =========================================================================

    def on_scan_started(self, event: ScanStarted) -> None:
        header = Text()
        header.append("\nResource Discovery\n", style="bold blue")
        regions = list(event.regions)
        region_text = ", ".join(regions) if len(regions) <= 5 else f"{len(regions)} regions"
        header.append(f"Regions: {region_text}\n", style="dim")
        header.append(f"Resource types: {len(event.resource_types)}", style="dim")
        if event.exclude_after:
            header.append(f"\nCreated before: {event.exclude_after}", style="dim")
        if event.include_after:
            header.append(f"\nCreated after: {event.include_after}", style="dim")
        self.console.print(Panel(header, border_style="blue"))

        self._status = self.console.status("Searching for resources...", spinner="dots")
        self._status.start()

    def on_scan_progress(self, event: ScanProgress) -> None:
        if self._status is not None:
            self._status.update(f"Searching {event.resource_type} in {event.region}...")

    def on_resource_found(self, event: ResourceFound) -> None:
        self.found.append(event)

    def on_scan_complete(self, event: ScanComplete) -> None:
        self._stop_status()
        if not self.found:
            self.console.print("\n[green]No resources found.[/green]")
            return
        if len(self.found) > MAX_RESOURCES_FOR_DETAILED_TABLE:
            self._print_found_by_type()
        else:
            self._print_found_table()

    def _print_found_table(self) -> None:
        table = Table(title="\nFound Resources", title_style="bold")
        table.add_column("Resource Type", style="cyan", no_wrap=True)
        table.add_column("Region", style="yellow", no_wrap=True)
        table.add_column("Identifier", style="white")
        table.add_column("Nukable", justify="center")

        for found in self.found:
            if found.nukable:
                status = "[green]yes[/green]"
            else:
                status = Text(truncate(remove_newlines(found.reason), ERROR_CELL_WIDTH), style="red")
            table.add_row(found.resource_type, found.region, found.identifier, status)
        self.console.print(table)

    def _print_found_by_type(self) -> None:
        counts: Dict[str, int] = Counter(f.resource_type for f in self.found)
        table = Table(
            title=f"\nFound {len(self.found)} Resources (summary by type)",
            title_style="bold",
        )
        table.add_column("Resource Type", style="cyan")
        table.add_column("Count", justify="right")
        for resource_type, count in sorted(counts.items()):
            table.add_row(resource_type, str(count))
        self.console.print(table)

    # =========================================================================
    # Nuke phase
    # =========================================================================

    def on_nuke_started(self, event: NukeStarted) -> None:
        self._stop_status()
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=self.console,
        )
        self._progress.start()
        self._task_id = self._progress.add_task("Nuking resources...", total=event.total)

    def on_nuke_progress(self, event: NukeProgress) -> None:
        if self._progress is not None:
            self._progress.update(
                self._task_id,
                description=f"Nuking {event.batch_size} {event.resource_type} in {event.region}",
            )

    def on_resource_deleted(self, event: ResourceDeleted) -> None:
        self.deleted.append(event)
        if self._progress is not None:
            self._progress.advance(self._task_id)

    def on_general_error(self, event: GeneralError) -> None:
        self.errors.append(event)

    def on_nuke_complete(self, event: NukeComplete) -> None:
        self._stop_progress()
        if self.deleted:
            self._print_deleted_table()
        succeeded = sum(1 for d in self.deleted if d.success)
        failed = len(self.deleted) - succeeded
        style = "green" if failed == 0 else "yellow"
        self.console.print(
            f"\n[{style} bold]Nuked {succeeded} resource(s), {failed} failed.[/{style} bold]"
        )

    def _print_deleted_table(self) -> None:
        table = Table(title="\nNuke Results", title_style="bold")
        table.add_column("Resource Type", style="cyan", no_wrap=True)
        table.add_column("Region", style="yellow", no_wrap=True)
        table.add_column("Identifier", style="white")
        table.add_column("Status", justify="center")
        for deleted in self.deleted:
            if deleted.success:
                status = "[green]deleted[/green]"
            else:
                status = Text(truncate(remove_newlines(deleted.error), ERROR_CELL_WIDTH), style="red")
            table.add_row(deleted.resource_type, deleted.region, deleted.identifier, status)
        self.console.print(table)

    # =========================================================================
    # Completion
    # =========================================================================

    def on_complete(self, event: Complete) -> None:
        self._stop_status()
        self._stop_progress()
        if self.errors:
            self._print_errors()

    def _print_errors(self) -> None:
        table = Table(title="\n[yellow]Errors[/yellow]", title_style="bold")
        table.add_column("Resource Type", style="cyan", no_wrap=True)
        table.add_column("Description", style="white")
        table.add_column("Error", style="red")
        for error in self.errors:
            table.add_row(
                error.resource_type,
                error.description,
                Text(truncate(remove_newlines(error.error), ERROR_CELL_WIDTH)),
            )
        self.console.print(table)

    def _stop_status(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

    def _stop_progress(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
