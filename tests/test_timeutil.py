"""
Tests for duration and timestamp helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from cloudsweep.core.exceptions import ConfigurationError
from cloudsweep.core.timeutil import (
    duration_to_cutoff,
    ensure_utc,
    format_timestamp,
    parse_duration,
    parse_timestamp,
)


class TestParseDuration:
    """Tests for parse_duration."""

    @pytest.mark.parametrize(
        "value,seconds",
        [
            ("10s", 10),
            ("5m", 300),
            ("2h", 7200),
            ("7d", 604800),
            ("1w", 604800),
            ("1h30m", 5400),
            ("500ms", 0.5),
        ],
    )
    def test_valid(self, value, seconds):
        """Test supported units and combinations."""
        assert parse_duration(value).total_seconds() == pytest.approx(seconds)

    @pytest.mark.parametrize("value", [None, "", "0", "0s", "  "])
    def test_unset(self, value):
        """Test empty and zero durations mean unset."""
        assert parse_duration(value) is None

    @pytest.mark.parametrize("value", ["soon", "10", "5x", "h1", "1h 30m"])
    def test_invalid(self, value):
        """Test malformed durations raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            parse_duration(value)


class TestTimestamps:
    """Tests for cutoffs and timestamp formats."""

    def test_duration_to_cutoff(self):
        """Test the cutoff is now minus the duration."""
        now = datetime(2024, 5, 8, tzinfo=timezone.utc)
        assert duration_to_cutoff("7d", now=now) == datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert duration_to_cutoff("", now=now) is None

    def test_format(self):
        """Test RFC3339 output in UTC."""
        value = datetime(2024, 5, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(value) == "2024-05-01T12:00:00Z"

    def test_parse_rfc3339(self):
        """Test RFC3339 input with a Z suffix."""
        assert parse_timestamp("2024-05-01T12:00:00Z") == datetime(
            2024, 5, 1, 12, 0, tzinfo=timezone.utc
        )

    def test_parse_legacy(self):
        """Test the legacy space-separated format."""
        assert parse_timestamp("2024-05-01 12:00:00") == datetime(
            2024, 5, 1, 12, 0, tzinfo=timezone.utc
        )

    def test_parse_invalid(self):
        """Test garbage raises ValueError."""
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")

    def test_ensure_utc(self):
        """Test naive values are tagged as UTC."""
        assert ensure_utc(datetime(2024, 1, 1)).tzinfo == timezone.utc
