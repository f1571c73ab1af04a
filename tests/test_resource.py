"""
Tests for the Resource descriptor.
"""

import pytest
from botocore.exceptions import ClientError

from cloudsweep.core.context import RunContext
from cloudsweep.core.exceptions import (
    CloudSweepError,
    InsufficientPermissionError,
    OperationTimeoutError,
    ResourceFetchError,
    ScanTimeoutError,
)
from cloudsweep.core.filters import Config, ResourceTypeConfig, ResourceValue
from cloudsweep.core.query import Scope
from cloudsweep.core.resource import DEFAULT_BATCH_SIZE, BatchResult, NukeResult, Resource
from cloudsweep.core.strategies import sequential_deleter


def fake_init(resource, cfg):
    resource.client = cfg


def make_resource(names=("a", "b", "c"), **kwargs):
    def lister(ctx, client, scope, config):
        return [n for n in names if config.should_include(ResourceValue(name=n))]

    kwargs.setdefault("nuker", sequential_deleter(lambda ctx, client, i: client.append(i)))
    return Resource(resource_type_name="fake", init_client=fake_init, lister=lister, **kwargs)


class TestResourceBasics:
    """Tests for descriptor accessors."""

    def test_init_binds_scope_and_client(self):
        """Test init stores the scope and builds the client."""
        resource = make_resource()
        client = []
        resource.init(client, Scope(region="us-east-1"))
        assert resource.client is client
        assert resource.scope == Scope(region="us-east-1")

    def test_batch_size(self):
        """Test zero batch size falls back to the default."""
        assert make_resource().max_batch_size() == DEFAULT_BATCH_SIZE
        assert make_resource(batch_size=49).max_batch_size() == 49

    def test_config_lookup(self):
        """Test the type's config is looked up by name unless overridden."""
        config = Config.from_dict({"fake": {"timeout": "1m"}})
        assert make_resource().get_config(config).timeout == "1m"

        custom = ResourceTypeConfig(timeout="2m")
        resource = make_resource(config_getter=lambda c: custom)
        assert resource.get_config(config) is custom

    def test_prepare_context(self):
        """Test the type timeout bounds the derived context."""
        config = Config.from_dict({"fake": {"timeout": "30s"}})
        ctx = make_resource().prepare_context(RunContext(), config)
        assert ctx.remaining() <= 30


class TestGetAndSetIdentifiers:
    """Tests for discovery through the lister."""

    def test_filters_applied(self):
        """Test filtered identifiers are never stored."""
        resource = make_resource()
        resource.init([], Scope(region="us-east-1"))
        config = Config.from_dict({"fake": {"exclude": {"names_regex": ["^b$"]}}})

        assert resource.get_and_set_identifiers(RunContext(), config) == ["a", "c"]
        assert resource.resource_identifiers() == ["a", "c"]

    def test_lister_failure(self):
        """Test lister errors become ResourceFetchError with nothing stored."""

        def broken(ctx, client, scope, config):
            raise RuntimeError("api down")

        resource = Resource("fake", init_client=fake_init, lister=broken)
        resource.init([], Scope(region="us-east-1"))
        with pytest.raises(ResourceFetchError) as exc_info:
            resource.get_and_set_identifiers(RunContext(), Config())
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert resource.identifiers == []

    def test_lister_timeout(self):
        """Test a lister running out of time raises ScanTimeoutError."""

        def slow(ctx, client, scope, config):
            raise OperationTimeoutError("listing exceeded its deadline")

        resource = Resource("fake", init_client=fake_init, lister=slow)
        resource.init([], Scope(region="us-east-1"))
        with pytest.raises(ScanTimeoutError):
            resource.get_and_set_identifiers(RunContext(), Config())


class TestIsNukable:
    """Tests for the permission probe cache."""

    def _probed(self, verifier):
        resource = make_resource(permission_verifier=verifier)
        resource.init([], Scope(region="us-east-1"))
        resource.get_and_set_identifiers(RunContext(), Config())
        return resource

    def test_unprobed_is_nukable(self):
        """Test identifiers without a verifier are nukable."""
        resource = make_resource()
        assert resource.is_nukable("anything") == (True, None)

    def test_probe_results_cached(self):
        """Test probe failures mark identifiers and answers are stable."""
        calls = []

        def verifier(ctx, client, identifier):
            calls.append(identifier)
            if identifier == "b":
                raise ClientError(
                    {"Error": {"Code": "UnauthorizedOperation", "Message": "no"}}, "Terminate"
                )
            raise ClientError({"Error": {"Code": "DryRunOperation", "Message": "ok"}}, "Terminate")

        resource = self._probed(verifier)
        nukable, error = resource.is_nukable("b")
        assert not nukable
        assert isinstance(error, InsufficientPermissionError)
        assert resource.is_nukable("a") == (True, None)
        assert resource.is_nukable("b") == (nukable, error)
        assert calls == ["a", "b", "c"]

    def test_init_resets_cache(self):
        """Test re-initialising clears probe results."""

        def verifier(ctx, client, identifier):
            raise RuntimeError("nope")

        resource = self._probed(verifier)
        assert not resource.is_nukable("a")[0]
        resource.init([], Scope(region="us-west-2"))
        assert resource.is_nukable("a") == (True, None)


class TestNuke:
    """Tests for Resource.nuke."""

    def test_results_per_identifier(self):
        """Test each identifier gets one result."""
        resource = make_resource()
        client = []
        resource.init(client, Scope(region="us-east-1"))

        result = resource.nuke(RunContext(), ["a", "b"])
        assert isinstance(result, BatchResult)
        assert result.succeeded == ["a", "b"]
        assert result.error is None
        assert client == ["a", "b"]

    def test_empty_batch(self):
        """Test nuking nothing returns an empty result."""
        resource = make_resource()
        resource.init([], Scope(region="us-east-1"))
        assert resource.nuke(RunContext(), []).results == []

    def test_missing_nuker(self):
        """Test a type without a nuker fails every identifier."""
        resource = make_resource(nuker=None)
        resource.init([], Scope(region="us-east-1"))
        result = resource.nuke(RunContext(), ["a", "b"])
        assert [r.identifier for r in result.failed] == ["a", "b"]
        assert all(isinstance(r.error, CloudSweepError) for r in result.failed)


class TestBatchResult:
    """Tests for BatchResult aggregation."""

    def test_raise_for_errors(self):
        """Test failures aggregate into one BatchDeleteError."""
        result = BatchResult(
            "fake", [NukeResult("a"), NukeResult("b", RuntimeError("x")), NukeResult("c")]
        )
        assert result.succeeded == ["a", "c"]
        with pytest.raises(CloudSweepError) as exc_info:
            result.raise_for_errors()
        assert exc_info.value.failed_identifiers == ["b"]

    def test_no_errors(self):
        """Test a clean batch does not raise."""
        BatchResult("fake", [NukeResult("a")]).raise_for_errors()
