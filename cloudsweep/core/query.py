"""
Query and Scope
===============

A :class:`Query` captures what one invocation targets: regions, resource
types, the creation-time window and the run flags. A :class:`Scope`
identifies where a resource lives (AWS region or GCP project).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from cloudsweep.core.exceptions import ConfigurationError
from cloudsweep.core.filters import TimeWindow
from cloudsweep.core.timeutil import format_timestamp

# Pseudo-region for account-wide AWS resources
GLOBAL_REGION = "global"
ALL = "all"


@dataclass(frozen=True)
class Scope:
    """Where a resource lives. A scope with only a project id is valid."""

    region: str = ""
    project_id: str = ""

    @property
    def is_global(self) -> bool:
        return self.region == GLOBAL_REGION

    def __str__(self) -> str:
        if self.project_id and self.region:
            return f"{self.project_id}/{self.region}"
        return self.project_id or self.region


def _normalize(values: Optional[Iterable[str]]) -> List[str]:
    result = []
    for value in values or ():
        value = value.strip()
        if value and value not in result:
            result.append(value)
    return result


def _is_all(values: Sequence[str]) -> bool:
    return not values or ALL in values


@dataclass
class Query:
    """
    Targets and flags for one invocation.

    Parameters
    ----------
    regions, exclude_regions : list of str
        Regions to include and exclude. Empty includes means all.
    resource_types, exclude_resource_types : list of str
        Resource type names to include and exclude. Empty includes (or the
        literal ``"all"``) means all.
    exclude_after : datetime, optional
        Only resources created at or before this instant are eligible.
    include_after : datetime, optional
        Only resources created at or after this instant are eligible.
    default_only : bool
        Only target default resources (default VPC components).
    timeout : float, optional
        Run-wide deadline in seconds.
    exclude_first_seen : bool
        Ignore first-seen tags entirely.
    inclusive : bool, default=True
        Whether the time bounds themselves are inside the window.

    Raises
    ------
    ConfigurationError
        If the time window is empty or a type is both included and
        excluded.
    """

    regions: List[str] = field(default_factory=list)
    exclude_regions: List[str] = field(default_factory=list)
    resource_types: List[str] = field(default_factory=list)
    exclude_resource_types: List[str] = field(default_factory=list)
    exclude_after: Optional[datetime] = None
    include_after: Optional[datetime] = None
    default_only: bool = False
    timeout: Optional[float] = None
    exclude_first_seen: bool = False
    inclusive: bool = True

    def __post_init__(self) -> None:
        self.regions = _normalize(self.regions)
        self.exclude_regions = _normalize(self.exclude_regions)
        self.resource_types = _normalize(self.resource_types)
        self.exclude_resource_types = _normalize(self.exclude_resource_types)

        if self.time_window.is_empty_window():
            raise ConfigurationError(
                "include-after must not be later than exclude-after",
                details={
                    "include_after": format_timestamp(self.include_after),
                    "exclude_after": format_timestamp(self.exclude_after),
                },
            )
        overlap = set(self.resource_types) & set(self.exclude_resource_types)
        if overlap:
            raise ConfigurationError(
                "resource types cannot be both included and excluded",
                details={"resource_types": sorted(overlap)},
            )
        if self.timeout is not None and self.timeout < 0:
            raise ConfigurationError("timeout must not be negative")

    @property
    def time_window(self) -> TimeWindow:
        return TimeWindow(
            exclude_after=self.exclude_after,
            include_after=self.include_after,
            inclusive=self.inclusive,
        )

    def validate(
        self,
        known_resource_types: Optional[Iterable[str]] = None,
        known_regions: Optional[Iterable[str]] = None,
    ) -> Query:
        """
        Check names against what the provider actually offers.

        Raises
        ------
        ConfigurationError
            If a resource type or region is unknown.
        """
        if known_resource_types is not None:
            known = set(known_resource_types)
            unknown = [
                t
                for t in self.resource_types + self.exclude_resource_types
                if t != ALL and t not in known
            ]
            if unknown:
                raise ConfigurationError(
                    f"invalid resource type(s): {', '.join(unknown)}",
                    details={"hint": "use --list-resource-types to see valid names"},
                )
        if known_regions is not None:
            known = set(known_regions) | {GLOBAL_REGION}
            unknown = [r for r in self.regions + self.exclude_regions if r != ALL and r not in known]
            if unknown:
                raise ConfigurationError(f"invalid region(s): {', '.join(unknown)}")
        return self

    def is_resource_type_allowed(self, resource_type: str) -> bool:
        if resource_type in self.exclude_resource_types:
            return False
        return _is_all(self.resource_types) or resource_type in self.resource_types

    def target_resource_types(self, available: Sequence[str]) -> List[str]:
        """Filter ``available`` down to the query's types, keeping its order."""
        return [t for t in available if self.is_resource_type_allowed(t)]

    def target_regions(self, available: Sequence[str]) -> List[str]:
        """Filter ``available`` down to the query's regions, keeping its order."""
        if _is_all(self.regions):
            selected = list(available)
        else:
            selected = [r for r in available if r in self.regions]
        return [r for r in selected if r not in self.exclude_regions]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "regions": self.regions,
            "exclude_regions": self.exclude_regions,
            "resource_types": self.resource_types,
            "exclude_resource_types": self.exclude_resource_types,
            "exclude_after": format_timestamp(self.exclude_after) if self.exclude_after else None,
            "include_after": format_timestamp(self.include_after) if self.include_after else None,
            "default_only": self.default_only,
            "exclude_first_seen": self.exclude_first_seen,
            "timeout": self.timeout,
        }
