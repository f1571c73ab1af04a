"""
Event Collector
===============

One :class:`Collector` per invocation fans events out to the registered
renderers. Emission is serialized with a lock, so discovery threads can
record findings concurrently. After :meth:`Collector.complete` the
collector is closed and further events are dropped.

Example
-------
>>> collector = Collector()
>>> collector.add_renderer(JSONRenderer(sys.stdout, command="inspect-aws"))
>>> collector.record_found("ec2", "us-east-1", "i-0abc", nukable=True)
>>> collector.complete()
True
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Sequence

from cloudsweep.reporting.events import (
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
from cloudsweep.reporting.renderers.base import Renderer

logger = logging.getLogger(__name__)


def _error_text(error: Optional[BaseException]) -> str:
    return "" if error is None else str(error)


class Collector:
    """Thread-safe event fan-out with an open/closed lifecycle."""

    def __init__(self, renderers: Optional[Sequence[Renderer]] = None) -> None:
        self._renderers: List[Renderer] = list(renderers or [])
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def add_renderer(self, renderer: Renderer) -> None:
        """Register a renderer. Call before any event is emitted."""
        with self._lock:
            self._renderers.append(renderer)

    def emit(self, event: Event) -> None:
        """Deliver ``event`` to every renderer, unless closed."""
        with self._lock:
            if self._closed:
                return
            self._deliver(event)

    def _deliver(self, event: Event) -> None:
        for renderer in self._renderers:
            try:
                renderer.on_event(event)
            except Exception:
                logger.exception(
                    "Renderer %s failed on %s", type(renderer).__name__, type(event).__name__
                )

    def complete(self) -> bool:
        """
        Emit ``Complete`` and close. Only the first call has any effect.

        Returns
        -------
        bool
            True if this call closed the collector.
        """
        with self._lock:
            if self._closed:
                return False
            self._deliver(Complete())
            self._closed = True
            return True

    # =========================================================================
    # Recording helpers
    # =========================================================================

    def scan_started(
        self,
        regions: Sequence[str],
        resource_types: Sequence[str],
        exclude_after: str = "",
        include_after: str = "",
    ) -> None:
        self.emit(
            ScanStarted(
                regions=tuple(regions),
                resource_types=tuple(resource_types),
                exclude_after=exclude_after,
                include_after=include_after,
            )
        )

    def scan_progress(self, resource_type: str, region: str) -> None:
        self.emit(ScanProgress(resource_type=resource_type, region=region))

    def record_found(
        self,
        resource_type: str,
        region: str,
        identifier: str,
        nukable: bool = True,
        error: Optional[BaseException] = None,
    ) -> None:
        self.emit(
            ResourceFound(
                resource_type=resource_type,
                region=region,
                identifier=identifier,
                nukable=nukable,
                reason=_error_text(error),
            )
        )

    def scan_complete(self) -> None:
        self.emit(ScanComplete())

    def nuke_started(self, total: int) -> None:
        self.emit(NukeStarted(total=total))

    def nuke_progress(self, resource_type: str, region: str, batch_size: int) -> None:
        self.emit(NukeProgress(resource_type=resource_type, region=region, batch_size=batch_size))

    def record_deleted(
        self,
        resource_type: str,
        region: str,
        identifier: str,
        error: Optional[BaseException] = None,
    ) -> None:
        self.emit(
            ResourceDeleted(
                resource_type=resource_type,
                region=region,
                identifier=identifier,
                success=error is None,
                error=_error_text(error),
            )
        )

    def record_error(self, resource_type: str, description: str, error: BaseException) -> None:
        self.emit(
            GeneralError(
                resource_type=resource_type,
                description=description,
                error=_error_text(error),
            )
        )

    def nuke_complete(self) -> None:
        self.emit(NukeComplete())
