"""
Resource Descriptor
===================

:class:`Resource` is the contract every resource type plugs into. A
resource type is described by plain functions supplied at construction:

* ``init_client(resource, cfg)`` builds the provider client for a scope;
* ``lister(ctx, client, scope, config)`` returns matching identifiers;
* ``nuker(ctx, client, scope, resource_type, identifiers)`` deletes a
  batch and returns one :class:`NukeResult` per identifier (normally one
  of the strategies in :mod:`cloudsweep.core.strategies`);
* ``permission_verifier(ctx, client, identifier)`` optionally probes
  whether an identifier can be deleted, raising when it cannot.

Example
-------
>>> keypairs = Resource(
...     resource_type_name="ec2-keypairs",
...     init_client=aws_init("ec2"),
...     lister=list_keypairs,
...     nuker=concurrent_deleter(delete_keypair),
... )
>>> keypairs.init(aws_client, Scope(region="us-east-1"))
>>> ids = keypairs.get_and_set_identifiers(RunContext(), config)
>>> result = keypairs.nuke(RunContext(), ids)
>>> result.raise_for_errors()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from cloudsweep.core.context import RunContext
from cloudsweep.core.exceptions import (
    BatchDeleteError,
    CloudSweepError,
    OperationTimeoutError,
    ResourceFetchError,
    ScanTimeoutError,
    transform_error,
)
from cloudsweep.core.filters import Config, ResourceTypeConfig
from cloudsweep.core.query import Scope

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10

C = TypeVar("C")

InitClient = Callable[["Resource", Any], None]
ConfigGetter = Callable[[Config], ResourceTypeConfig]
Lister = Callable[[RunContext, Any, Scope, ResourceTypeConfig], List[str]]
PermissionVerifier = Callable[[RunContext, Any, str], None]
Nuker = Callable[[RunContext, Any, Scope, str, List[str]], List["NukeResult"]]


@dataclass
class NukeResult:
    """Outcome of deleting one identifier. ``error is None`` means success."""

    identifier: str
    error: Optional[BaseException] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class BatchResult:
    """
    Per-identifier results of one nuke call, in input order.

    Attributes
    ----------
    resource_type : str
        Type that was nuked.
    results : list of NukeResult
        One entry per input identifier.
    """

    resource_type: str
    results: List[NukeResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[str]:
        return [r.identifier for r in self.results if r.success]

    @property
    def failed(self) -> List[NukeResult]:
        return [r for r in self.results if not r.success]

    @property
    def error(self) -> Optional[BatchDeleteError]:
        """Aggregate of every failure, ``None`` when all succeeded."""
        failed = self.failed
        if not failed:
            return None
        return BatchDeleteError(
            [(r.identifier, r.error) for r in failed],
            resource_type=self.resource_type,
        )

    def raise_for_errors(self) -> None:
        error = self.error
        if error is not None:
            raise error


@dataclass
class Resource(Generic[C]):
    """
    Descriptor of one resource type and its per-scope runtime state.

    Parameters
    ----------
    resource_type_name : str
        Stable, globally unique type name (``"ec2"``, ``"gcs-bucket"``).
    init_client : callable
        ``init_client(resource, cfg)`` sets ``resource.client`` for a
        scope.
    lister : callable
        Returns the identifiers that pass the type's filters.
    nuker : callable, optional
        Deletion strategy. Without one every identifier fails.
    permission_verifier : callable, optional
        Dry-run probe. Raising marks the identifier as not nukable.
    config_getter : callable, optional
        Extracts this type's filter config. Defaults to a lookup by name.
    batch_size : int, default=0
        Identifiers per nuke call. ``0`` uses :data:`DEFAULT_BATCH_SIZE`.
    is_global : bool, default=False
        Listed once in the ``global`` scope instead of per region.
    ignore_errors : bool, default=False
        Discovery errors for this type never abort a scan.
    """

    resource_type_name: str
    init_client: InitClient
    lister: Lister
    nuker: Optional[Nuker] = None
    permission_verifier: Optional[PermissionVerifier] = None
    config_getter: Optional[ConfigGetter] = None
    batch_size: int = 0
    is_global: bool = False
    ignore_errors: bool = False

    client: Optional[C] = field(default=None, init=False, repr=False)
    scope: Scope = field(default_factory=Scope, init=False)
    identifiers: List[str] = field(default_factory=list, init=False, repr=False)
    _nukable_status: Dict[str, Optional[BaseException]] = field(
        default_factory=dict, init=False, repr=False
    )

    def init(self, cfg: Any, scope: Optional[Scope] = None) -> None:
        """Bind the resource to a scope and build its client."""
        if scope is not None:
            self.scope = scope
        self._nukable_status = {}
        self.identifiers = []
        self.init_client(self, cfg)

    def resource_name(self) -> str:
        return self.resource_type_name

    def max_batch_size(self) -> int:
        return self.batch_size or DEFAULT_BATCH_SIZE

    def resource_identifiers(self) -> List[str]:
        return list(self.identifiers)

    def get_config(self, config: Config) -> ResourceTypeConfig:
        if self.config_getter is not None:
            return self.config_getter(config)
        return config.get(self.resource_type_name)

    def prepare_context(self, ctx: RunContext, config: Config) -> RunContext:
        """Derive a child context bounded by the type's configured timeout."""
        return ctx.with_timeout(self.get_config(config).timeout_seconds)

    def get_and_set_identifiers(self, ctx: RunContext, config: Config) -> List[str]:
        """
        List matching identifiers and probe each one's nukability.

        Returns
        -------
        list of str
            Identifiers that passed the type's filters.

        Raises
        ------
        ResourceFetchError
            If the lister fails. No partial results are kept.
        ScanTimeoutError
            If the lister ran past the context deadline.
        """
        rtc = self.get_config(config)
        try:
            identifiers = list(self.lister(ctx, self.client, self.scope, rtc))
        except OperationTimeoutError as e:
            raise ScanTimeoutError(
                f"Listing {self.resource_type_name} in {self.scope} timed out",
                resource_type=self.resource_type_name,
                region=str(self.scope),
            ) from e
        except Exception as e:
            raise ResourceFetchError(
                f"Failed to list {self.resource_type_name} in {self.scope}: {e}",
                resource_type=self.resource_type_name,
                region=str(self.scope),
            ) from e

        if self.permission_verifier is not None:
            for identifier in identifiers:
                self._nukable_status[identifier] = self._probe(ctx, identifier)

        self.identifiers = identifiers
        logger.debug(
            "Found %d %s in %s", len(identifiers), self.resource_type_name, self.scope
        )
        return list(identifiers)

    def _probe(self, ctx: RunContext, identifier: str) -> Optional[BaseException]:
        try:
            self.permission_verifier(ctx, self.client, identifier)
        except Exception as e:
            error = transform_error(e)
            if error is not None:
                logger.debug(
                    "%s %s is not nukable: %s", self.resource_type_name, identifier, error
                )
            return error
        return None

    def is_nukable(self, identifier: str) -> Tuple[bool, Optional[BaseException]]:
        """Cached probe result. Unprobed identifiers are nukable."""
        error = self._nukable_status.get(identifier)
        return error is None, error

    def nuke(self, ctx: RunContext, identifiers: List[str]) -> BatchResult:
        """
        Delete a batch and report one result per identifier.

        Failures are returned as data; use
        :meth:`BatchResult.raise_for_errors` to turn them into an
        exception.
        """
        batch = BatchResult(resource_type=self.resource_type_name)
        if not identifiers:
            logger.info("No %s to nuke in %s", self.resource_type_name, self.scope)
            return batch

        if self.nuker is None:
            error = CloudSweepError(f"no nuker configured for {self.resource_type_name}")
            batch.results = [NukeResult(i, error) for i in identifiers]
            return batch

        batch.results = self.nuker(
            ctx, self.client, self.scope, self.resource_type_name, list(identifiers)
        )
        for result in batch.results:
            if result.success:
                logger.debug("[OK] Deleted %s %s", self.resource_type_name, result.identifier)
            else:
                logger.error(
                    "[Failed] %s %s: %s",
                    self.resource_type_name,
                    result.identifier,
                    result.error,
                )
        return batch
