"""
Tests for helpers shared by the AWS plug-ins.
"""

from unittest.mock import MagicMock

from cloudsweep.core.context import RunContext
from cloudsweep.resources.common import (
    EXCLUSION_TAG_KEY,
    FIRST_SEEN_TAG_KEY,
    get_or_create_first_seen,
    is_excluded,
    tags_to_dict,
    waiter_config,
)


class TestIsExcluded:
    """Tests for the exclusion tag check."""

    def test_true_value_excludes(self):
        """Test that the tag set to true excludes."""
        assert is_excluded({EXCLUSION_TAG_KEY: "true"})

    def test_case_insensitive(self):
        """Test that key and value are compared ignoring case."""
        assert is_excluded({"Cloud-Nuke-Excluded": "TRUE"})

    def test_other_values(self):
        """Test that other values and missing tags do not exclude."""
        assert not is_excluded({EXCLUSION_TAG_KEY: "false"})
        assert not is_excluded({EXCLUSION_TAG_KEY: "yes"})
        assert not is_excluded({"Name": "true"})
        assert not is_excluded({})
        assert not is_excluded(None)


class TestTags:
    """Tests for tag helpers."""

    def test_tags_to_dict(self):
        """Test that AWS tag lists become dicts."""
        assert tags_to_dict([{"Key": "a", "Value": "1"}, {"Key": "b"}]) == {"a": "1", "b": ""}
        assert tags_to_dict(None) == {}

    def test_first_seen_disabled(self):
        """Test that no tag is read or written when first-seen is excluded."""
        ec2 = MagicMock()

        assert get_or_create_first_seen(RunContext(exclude_first_seen=True), ec2, "vpc-1", {}) is None
        ec2.create_tags.assert_not_called()

    def test_first_seen_written_once(self):
        """Test that a missing first-seen tag is created with the current time."""
        ec2 = MagicMock()

        seen = get_or_create_first_seen(RunContext(), ec2, "vpc-1", {})

        assert seen is not None
        tags = ec2.create_tags.call_args.kwargs["Tags"]
        assert tags[0]["Key"] == FIRST_SEEN_TAG_KEY


class TestWaiterConfig:
    """Tests for waiter settings."""

    def test_without_deadline(self):
        """Test the defaults when the context has no deadline."""
        assert waiter_config(RunContext()) == {"Delay": 15, "MaxAttempts": 40}

    def test_deadline_caps_attempts(self):
        """Test that attempts fit inside the remaining time."""
        config = waiter_config(RunContext(timeout=60))
        assert config["MaxAttempts"] <= 4
        assert config["MaxAttempts"] >= 1
