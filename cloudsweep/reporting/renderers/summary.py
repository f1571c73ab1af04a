"""
Summary aggregation.

:class:`SummaryRenderer` records the events of a run and derives
:class:`InspectSummary` / :class:`NukeSummary` from them. The JSON and CSV
renderers build on it; it is also handy on its own in tests and for exit
code decisions.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from cloudsweep.reporting.events import (
    GeneralError,
    NukeStarted,
    ResourceDeleted,
    ResourceFound,
    ScanStarted,
)
from cloudsweep.reporting.renderers.base import Renderer


@dataclass
class InspectSummary:
    total_resources: int = 0
    nukable: int = 0
    non_nukable: int = 0
    general_errors: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)
    by_region: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class NukeSummary:
    found: int = 0
    total: int = 0
    deleted: int = 0
    failed: int = 0
    general_errors: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SummaryRenderer(Renderer):
    """Keeps every finding, deletion and general error of a run."""

    def __init__(self) -> None:
        self.scan: Optional[ScanStarted] = None
        self.found: List[ResourceFound] = []
        self.deleted: List[ResourceDeleted] = []
        self.errors: List[GeneralError] = []
        self.nuke_started = False
        self.nuke_total = 0

    def on_scan_started(self, event: ScanStarted) -> None:
        self.scan = event

    def on_resource_found(self, event: ResourceFound) -> None:
        self.found.append(event)

    def on_nuke_started(self, event: NukeStarted) -> None:
        self.nuke_started = True
        self.nuke_total = event.total

    def on_resource_deleted(self, event: ResourceDeleted) -> None:
        self.deleted.append(event)

    def on_general_error(self, event: GeneralError) -> None:
        self.errors.append(event)

    @property
    def has_failures(self) -> bool:
        return bool(self.errors) or any(not d.success for d in self.deleted)

    def inspect_summary(self) -> InspectSummary:
        by_type: Dict[str, int] = OrderedDict()
        by_region: Dict[str, int] = OrderedDict()
        nukable = 0
        for found in self.found:
            by_type[found.resource_type] = by_type.get(found.resource_type, 0) + 1
            by_region[found.region] = by_region.get(found.region, 0) + 1
            if found.nukable:
                nukable += 1
        return InspectSummary(
            total_resources=len(self.found),
            nukable=nukable,
            non_nukable=len(self.found) - nukable,
            general_errors=len(self.errors),
            by_type=dict(by_type),
            by_region=dict(by_region),
        )

    def nuke_summary(self) -> NukeSummary:
        deleted = sum(1 for d in self.deleted if d.success)
        return NukeSummary(
            found=len(self.found),
            total=len(self.deleted),
            deleted=deleted,
            failed=len(self.deleted) - deleted,
            general_errors=len(self.errors),
        )
