"""
Run Context
===========

A :class:`RunContext` travels with every discovery and deletion call. It
carries an optional deadline, a cancellation event, and the per-run flags
that listers need (``default_only``, ``exclude_first_seen``).

Contexts are cheap and immutable apart from cancellation; deriving a child
with :meth:`RunContext.with_timeout` never extends the parent's deadline,
and cancelling a parent cancels every child.

Example
-------
>>> ctx = RunContext(timeout=300)
>>> child = ctx.with_timeout(30)
>>> child.remaining() <= 30
True
"""

from __future__ import annotations

import threading
import time
from typing import Optional

from cloudsweep.core.exceptions import OperationTimeoutError


class RunContext:
    """
    Deadline, cancellation and per-run flags for one invocation.

    Parameters
    ----------
    timeout : float, optional
        Seconds until the deadline. ``None`` or ``0`` means no deadline.
    default_only : bool, default=False
        Listers return only default resources (default VPCs, default
        security groups).
    exclude_first_seen : bool, default=False
        Listers must not read or write the first-seen tag.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        default_only: bool = False,
        exclude_first_seen: bool = False,
        _parent: Optional[RunContext] = None,
        _deadline: Optional[float] = None,
    ) -> None:
        self.default_only = default_only
        self.exclude_first_seen = exclude_first_seen
        self._parent = _parent
        self._cancelled = threading.Event()

        deadline = _deadline
        if timeout:
            deadline = time.monotonic() + timeout
        if _parent is not None and _parent.deadline is not None:
            deadline = _parent.deadline if deadline is None else min(deadline, _parent.deadline)
        self.deadline: Optional[float] = deadline

    @classmethod
    def background(cls) -> RunContext:
        """A context with no deadline and default flags."""
        return cls()

    def with_timeout(self, timeout: Optional[float]) -> RunContext:
        """
        Derive a child context whose deadline is at most ``timeout`` away.

        A falsy ``timeout`` yields a child that only inherits the
        parent's deadline.
        """
        return RunContext(
            timeout=timeout,
            default_only=self.default_only,
            exclude_first_seen=self.exclude_first_seen,
            _parent=self,
        )

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        self._cancelled.set()

    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._parent is not None and self._parent.cancelled()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, ``None`` when unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def expired(self) -> bool:
        """True once the deadline passed or the context was cancelled."""
        if self.cancelled():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(self, operation: str = "operation") -> None:
        """
        Raise if the context is no longer live.

        Raises
        ------
        OperationTimeoutError
            If the deadline passed or the context was cancelled.
        """
        if self.cancelled():
            raise OperationTimeoutError(f"{operation} cancelled")
        if self.expired():
            raise OperationTimeoutError(f"{operation} exceeded its deadline")

    def __repr__(self) -> str:
        return (
            f"RunContext(remaining={self.remaining()!r}, "
            f"default_only={self.default_only}, "
            f"exclude_first_seen={self.exclude_first_seen})"
        )
