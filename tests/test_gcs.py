"""
Tests for the GCS bucket plug-in.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

from google.api_core import exceptions as google_exceptions

from cloudsweep.core.context import RunContext
from cloudsweep.core.exceptions import InsufficientPermissionError, StepError
from cloudsweep.core.filters import Config, TimeWindow
from cloudsweep.core.query import Scope
from cloudsweep.resources.gcs import delete_blobs, gcs_buckets, list_gcs_buckets

PROJECT = Scope(project_id="test-project")
NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def fake_bucket(name, created=NOW, labels=None):
    bucket = MagicMock()
    bucket.name = name
    bucket.time_created = created
    bucket.labels = labels or {}
    return bucket


class TestListBuckets:
    """Tests for listing GCS buckets."""

    def test_labels_act_as_tags(self, ctx):
        """Test that bucket labels are matched by tag rules."""
        client = MagicMock()
        client.list_buckets.return_value = [
            fake_bucket("ci-cache"),
            fake_bucket("ci-keep", labels={"keep": "true"}),
        ]
        config = Config.from_dict({"gcs-bucket": {"exclude": {"tags": {"keep": "true"}}}})

        assert list_gcs_buckets(ctx, client, PROJECT, config.get("gcs-bucket")) == ["ci-cache"]

    def test_time_window(self, ctx):
        """Test that creation time is checked against the run's window."""
        client = MagicMock()
        client.list_buckets.return_value = [
            fake_bucket("old", created=NOW - timedelta(days=30)),
            fake_bucket("new", created=NOW),
        ]
        config = Config()
        config.apply_time_window(TimeWindow(exclude_after=NOW - timedelta(days=1)))

        assert list_gcs_buckets(ctx, client, PROJECT, config.get("gcs-bucket")) == ["old"]


class TestNukeBuckets:
    """Tests for emptying and deleting GCS buckets."""

    def test_delete_blobs_removes_every_generation(self):
        """Test that all object generations are deleted."""
        blobs = [MagicMock(), MagicMock()]
        client = MagicMock()
        client.list_blobs.return_value = blobs

        delete_blobs(RunContext(), client, "ci-cache")

        client.list_blobs.assert_called_once_with("ci-cache", versions=True)
        for blob in blobs:
            blob.delete.assert_called_once_with()

    def test_nuke_empties_then_deletes(self):
        """Test that the bucket is emptied before it is deleted."""
        client = MagicMock()
        client.list_blobs.return_value = []
        resource = gcs_buckets()
        resource.client = client

        batch = resource.nuke(RunContext(), ["ci-cache"])

        assert batch.succeeded == ["ci-cache"]
        client.bucket.assert_called_once_with("ci-cache")
        client.bucket.return_value.delete.assert_called_once_with()

    def test_forbidden_maps_to_permission_error(self):
        """Test that a 403 from GCS is reported as a permission error."""
        client = MagicMock()
        client.list_blobs.return_value = []
        client.bucket.return_value.delete.side_effect = google_exceptions.Forbidden("denied")
        resource = gcs_buckets()
        resource.client = client

        batch = resource.nuke(RunContext(), ["ci-cache"])

        error = batch.failed[0].error
        assert isinstance(error, StepError)
        assert error.step == 2
        assert isinstance(error.cause, InsufficientPermissionError)

    def test_init_builds_project_client(self):
        """Test that init creates a storage client for the project."""
        resource = gcs_buckets()
        with patch("cloudsweep.resources.gcs.storage.Client") as client_cls:
            resource.init("test-project", PROJECT)

        client_cls.assert_called_once_with(project="test-project")
        assert resource.client is client_cls.return_value
        assert resource.scope.project_id == "test-project"
