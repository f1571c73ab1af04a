"""
Renderers
=========

Event consumers that turn a run into output.

Available Renderers
-------------------
CLIRenderer
    Rich terminal output with spinner, progress bar and tables.
JSONRenderer
    One JSON document per run, written on completion.
CSVRenderer
    Spreadsheet-friendly rows, written on completion.
SummaryRenderer
    Counts only; the base of the buffered renderers.
"""

from cloudsweep.reporting.renderers.base import Renderer
from cloudsweep.reporting.renderers.cli import CLIRenderer
from cloudsweep.reporting.renderers.csv_renderer import CSVRenderer
from cloudsweep.reporting.renderers.json_renderer import JSONRenderer
from cloudsweep.reporting.renderers.summary import (
    InspectSummary,
    NukeSummary,
    SummaryRenderer,
)

__all__ = [
    "Renderer",
    "CLIRenderer",
    "CSVRenderer",
    "JSONRenderer",
    "SummaryRenderer",
    "InspectSummary",
    "NukeSummary",
]
