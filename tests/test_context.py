"""
Tests for RunContext deadlines and cancellation.
"""

import time

import pytest

from cloudsweep.core.context import RunContext
from cloudsweep.core.exceptions import OperationTimeoutError


class TestRunContext:
    """Tests for RunContext."""

    def test_background(self):
        """Test the background context never expires."""
        ctx = RunContext.background()
        assert ctx.deadline is None
        assert ctx.remaining() is None
        assert not ctx.expired()
        ctx.check()

    def test_zero_timeout_is_unbounded(self):
        """Test a zero timeout means no deadline."""
        assert RunContext(timeout=0).deadline is None

    def test_child_never_extends_parent(self):
        """Test a child deadline is capped by its parent."""
        parent = RunContext(timeout=10)
        child = parent.with_timeout(3600)
        assert child.deadline == parent.deadline

    def test_child_can_shorten(self):
        """Test a shorter child timeout wins."""
        parent = RunContext(timeout=3600)
        child = parent.with_timeout(5)
        assert child.remaining() <= 5

    def test_child_inherits_flags(self):
        """Test run flags travel to children."""
        child = RunContext(default_only=True, exclude_first_seen=True).with_timeout(None)
        assert child.default_only
        assert child.exclude_first_seen

    def test_expired(self):
        """Test a context past its deadline raises on check."""
        ctx = RunContext(timeout=0.001)
        time.sleep(0.01)
        assert ctx.expired()
        assert ctx.remaining() == 0.0
        with pytest.raises(OperationTimeoutError):
            ctx.check("listing")

    def test_cancel_propagates_to_children(self):
        """Test cancelling a parent cancels derived contexts."""
        parent = RunContext()
        child = parent.with_timeout(None)
        parent.cancel()
        assert child.cancelled()
        assert child.expired()
        with pytest.raises(OperationTimeoutError, match="cancelled"):
            child.check()

    def test_cancel_does_not_propagate_up(self):
        """Test cancelling a child leaves the parent live."""
        parent = RunContext()
        parent.with_timeout(None).cancel()
        assert not parent.cancelled()
