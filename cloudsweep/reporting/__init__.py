"""
Reporting
=========

Event-driven reporting: a :class:`Collector` receives the events of a run
and forwards them to renderers (terminal, JSON, CSV).

Example
-------
>>> from cloudsweep.reporting import Collector, CLIRenderer
>>>
>>> collector = Collector([CLIRenderer()])
>>> collector.scan_started(["us-east-1"], ["ec2"])
>>> collector.record_found("ec2", "us-east-1", "i-0abc")
>>> collector.scan_complete()
>>> collector.complete()
"""

from cloudsweep.reporting.collector import Collector
from cloudsweep.reporting.output import open_output
from cloudsweep.reporting.renderers import (
    CLIRenderer,
    CSVRenderer,
    InspectSummary,
    JSONRenderer,
    NukeSummary,
    Renderer,
    SummaryRenderer,
)

__all__ = [
    "Collector",
    "open_output",
    "Renderer",
    "CLIRenderer",
    "CSVRenderer",
    "JSONRenderer",
    "SummaryRenderer",
    "InspectSummary",
    "NukeSummary",
]
