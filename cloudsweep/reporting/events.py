"""
Run Events
==========

The closed set of events a run emits. Events are frozen dataclasses with
primitive fields only, so renderers never hold references to provider
objects.

Order within one run::

    ScanStarted, ScanProgress*, ResourceFound*, ScanComplete,
    [NukeStarted, (NukeProgress, ResourceDeleted*)*, NukeComplete],
    Complete

``GeneralError`` may appear anywhere before ``Complete``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Tuple, Union, get_args


@dataclass(frozen=True)
class ScanStarted:
    regions: Tuple[str, ...] = ()
    resource_types: Tuple[str, ...] = ()
    exclude_after: str = ""
    include_after: str = ""


@dataclass(frozen=True)
class ScanProgress:
    resource_type: str
    region: str


@dataclass(frozen=True)
class ResourceFound:
    resource_type: str
    region: str
    identifier: str
    nukable: bool = True
    reason: str = ""


@dataclass(frozen=True)
class ScanComplete:
    pass


@dataclass(frozen=True)
class NukeStarted:
    total: int


@dataclass(frozen=True)
class NukeProgress:
    resource_type: str
    region: str
    batch_size: int


@dataclass(frozen=True)
class ResourceDeleted:
    resource_type: str
    region: str
    identifier: str
    success: bool
    error: str = ""


@dataclass(frozen=True)
class GeneralError:
    """An error not tied to one identifier (a failed listing, a broken batch)."""

    resource_type: str
    description: str
    error: str


@dataclass(frozen=True)
class NukeComplete:
    pass


@dataclass(frozen=True)
class Complete:
    pass


Event = Union[
    ScanStarted,
    ScanProgress,
    ResourceFound,
    ScanComplete,
    NukeStarted,
    NukeProgress,
    ResourceDeleted,
    GeneralError,
    NukeComplete,
    Complete,
]

EVENT_TYPES: Tuple[type, ...] = get_args(Event)


def event_to_dict(event: Event) -> Dict[str, Any]:
    """Serialize an event with its type name under ``"event"``."""
    data = asdict(event)
    for key, value in data.items():
        if isinstance(value, tuple):
            data[key] = list(value)
    data["event"] = type(event).__name__
    return data
