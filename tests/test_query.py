"""
Tests for Query and Scope.
"""

from datetime import datetime, timedelta, timezone

import pytest

from cloudsweep.core.exceptions import ConfigurationError
from cloudsweep.core.query import ALL, GLOBAL_REGION, Query, Scope

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


class TestScope:
    """Tests for Scope rendering and equality."""

    def test_str(self):
        """Test the three rendering forms."""
        assert str(Scope(region="us-east-1")) == "us-east-1"
        assert str(Scope(project_id="sandbox")) == "sandbox"
        assert str(Scope(region="europe-west1", project_id="sandbox")) == "sandbox/europe-west1"

    def test_equality_on_both_fields(self):
        """Test scopes compare by region and project."""
        assert Scope(region="us-east-1") == Scope(region="us-east-1")
        assert Scope(region="us-east-1") != Scope(region="us-east-1", project_id="p")

    def test_global(self):
        """Test the global pseudo-region is flagged."""
        assert Scope(region=GLOBAL_REGION).is_global
        assert not Scope(region="us-east-1").is_global


class TestQueryValidation:
    """Tests for Query construction checks."""

    def test_inverted_window(self):
        """Test include_after later than exclude_after is rejected."""
        with pytest.raises(ConfigurationError):
            Query(exclude_after=NOW, include_after=NOW + timedelta(days=1))

    def test_equal_bounds_allowed(self):
        """Test equal bounds are a valid inclusive window."""
        Query(exclude_after=NOW, include_after=NOW)

    def test_type_in_both_lists(self):
        """Test a type both included and excluded is rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            Query(resource_types=["ec2"], exclude_resource_types=["ec2"])
        assert exc_info.value.details["resource_types"] == ["ec2"]

    def test_negative_timeout(self):
        """Test a negative timeout is rejected."""
        with pytest.raises(ConfigurationError):
            Query(timeout=-1)

    def test_values_normalized(self):
        """Test blanks and duplicates are dropped."""
        query = Query(regions=[" us-east-1 ", "", "us-east-1"])
        assert query.regions == ["us-east-1"]

    def test_validate_unknown_type(self):
        """Test unknown resource types are rejected."""
        with pytest.raises(ConfigurationError):
            Query(resource_types=["ec3"]).validate(known_resource_types=["ec2"])

    def test_validate_all_keyword(self):
        """Test the all keyword is always a known type."""
        query = Query(resource_types=[ALL])
        assert query.validate(known_resource_types=["ec2"]) is query

    def test_validate_unknown_region(self):
        """Test unknown regions are rejected and global is always known."""
        Query(regions=[GLOBAL_REGION]).validate(known_regions=["us-east-1"])
        with pytest.raises(ConfigurationError):
            Query(regions=["mars-1"]).validate(known_regions=["us-east-1"])


class TestQueryTargets:
    """Tests for type and region selection."""

    def test_empty_means_all(self):
        """Test an empty include list allows every type."""
        query = Query(exclude_resource_types=["s3"])
        assert query.target_resource_types(["ec2", "s3", "sqs"]) == ["ec2", "sqs"]

    def test_all_keyword(self):
        """Test the literal all allows every type."""
        assert Query(resource_types=[ALL]).is_resource_type_allowed("sqs")

    def test_included_only(self):
        """Test only included types are allowed, in the available order."""
        query = Query(resource_types=["sqs", "ec2"])
        assert query.target_resource_types(["ec2", "s3", "sqs"]) == ["ec2", "sqs"]

    def test_regions(self):
        """Test region inclusion and exclusion."""
        available = ["eu-west-1", "us-east-1", "us-west-2"]
        assert Query().target_regions(available) == available
        assert Query(exclude_regions=["us-west-2"]).target_regions(available) == [
            "eu-west-1",
            "us-east-1",
        ]
        assert Query(regions=["us-west-2", "us-east-1"]).target_regions(available) == [
            "us-east-1",
            "us-west-2",
        ]

    def test_time_window(self):
        """Test the window reflects the query bounds."""
        window = Query(exclude_after=NOW, inclusive=False).time_window
        assert window.exclude_after == NOW
        assert window.include_after is None
        assert window.inclusive is False

    def test_to_dict(self):
        """Test serialization formats timestamps."""
        data = Query(regions=["us-east-1"], exclude_after=NOW).to_dict()
        assert data["regions"] == ["us-east-1"]
        assert data["exclude_after"] == "2024-05-01T00:00:00Z"
        assert data["include_after"] is None
