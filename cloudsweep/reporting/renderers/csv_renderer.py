"""
CSV Renderer
============

Buffers a run's events and writes a spreadsheet-friendly CSV when the run
completes: a commented metadata header, then one row per found resource
(inspect runs) or per deletion outcome (nuke runs).

Example
-------
>>> with open("sweep.csv", "w", newline="", encoding="utf-8") as f:
...     collector.add_renderer(CSVRenderer(f, command="inspect-aws"))
...     orchestrator.run(...)
"""

from __future__ import annotations

import csv
import logging
from datetime import datetime, timezone
from typing import List, TextIO

from cloudsweep.reporting.events import Complete
from cloudsweep.reporting.renderers.summary import SummaryRenderer

logger = logging.getLogger(__name__)


class CSVRenderer(SummaryRenderer):
    """
    Write the run as CSV on completion.

    Parameters
    ----------
    writer : TextIO
        Stream opened with ``newline=""``.
    command : str, optional
        Name of the command, written into the metadata header.
    """

    FOUND_COLUMNS = ["Region", "Resource Type", "Identifier", "Nukable", "Reason"]
    NUKE_COLUMNS = ["Region", "Resource Type", "Identifier", "Status", "Error"]

    def __init__(self, writer: TextIO, command: str = "") -> None:
        super().__init__()
        self.writer = writer
        self.command = command

    def on_complete(self, event: Complete) -> None:
        writer = csv.writer(self.writer, quoting=csv.QUOTE_MINIMAL)
        self._write_metadata(writer)
        if self.nuke_started:
            writer.writerow(self.NUKE_COLUMNS)
            for d in self.deleted:
                writer.writerow(
                    [
                        d.region,
                        d.resource_type,
                        d.identifier,
                        "deleted" if d.success else "failed",
                        d.error,
                    ]
                )
            rows = len(self.deleted)
        else:
            writer.writerow(self.FOUND_COLUMNS)
            for f in self.found:
                writer.writerow([f.region, f.resource_type, f.identifier, f.nukable, f.reason])
            rows = len(self.found)
        self.writer.flush()
        logger.debug("Wrote %d CSV rows", rows)

    def _write_metadata(self, writer) -> None:
        regions: List[str] = list(self.scan.regions) if self.scan else []
        writer.writerow(["# Run Metadata"])
        writer.writerow(["# Command:", self.command])
        writer.writerow(["# Regions Scanned:", len(regions)])
        if len(regions) <= 5:
            writer.writerow(["# Region List:", ", ".join(regions)])
        if self.nuke_started:
            summary = self.nuke_summary()
            writer.writerow(["# Deleted:", summary.deleted])
            writer.writerow(["# Failed:", summary.failed])
        else:
            summary = self.inspect_summary()
            writer.writerow(["# Total Resources:", summary.total_resources])
            writer.writerow(["# Nukable:", summary.nukable])
        writer.writerow(["# General Errors:", len(self.errors)])
        writer.writerow(["# Run Time:", datetime.now(timezone.utc).isoformat()])
        writer.writerow([])
