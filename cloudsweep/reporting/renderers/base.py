"""
Renderer base class.

A renderer receives every event of a run through :meth:`Renderer.on_event`,
which dispatches to one ``on_<event>`` hook per event type. Hooks default
to doing nothing; subclasses override the ones they care about.
"""

from __future__ import annotations

from typing import Dict

from cloudsweep.reporting.events import (
    EVENT_TYPES,
    Complete,
    Event,
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

_HANDLERS: Dict[type, str] = {
    ScanStarted: "on_scan_started",
    ScanProgress: "on_scan_progress",
    ResourceFound: "on_resource_found",
    ScanComplete: "on_scan_complete",
    NukeStarted: "on_nuke_started",
    NukeProgress: "on_nuke_progress",
    ResourceDeleted: "on_resource_deleted",
    GeneralError: "on_general_error",
    NukeComplete: "on_nuke_complete",
    Complete: "on_complete",
}

if set(_HANDLERS) != set(EVENT_TYPES):
    raise TypeError(
        "renderer dispatch table out of sync with event types: "
        f"{sorted(t.__name__ for t in set(EVENT_TYPES) ^ set(_HANDLERS))}"
    )


class Renderer:
    """Base renderer. Override the hooks you need."""

    def on_event(self, event: Event) -> None:
        handler = _HANDLERS.get(type(event))
        if handler is None:
            raise TypeError(f"unknown event type: {type(event).__name__}")
        getattr(self, handler)(event)

    def on_scan_started(self, event: ScanStarted) -> None:
        pass

    def on_scan_progress(self, event: ScanProgress) -> None:
        pass

    def on_resource_found(self, event: ResourceFound) -> None:
        pass

    def on_scan_complete(self, event: ScanComplete) -> None:
        pass

    def on_nuke_started(self, event: NukeStarted) -> None:
        pass

    def on_nuke_progress(self, event: NukeProgress) -> None:
        pass

    def on_resource_deleted(self, event: ResourceDeleted) -> None:
        pass

    def on_general_error(self, event: GeneralError) -> None:
        pass

    def on_nuke_complete(self, event: NukeComplete) -> None:
        pass

    def on_complete(self, event: Complete) -> None:
        pass
