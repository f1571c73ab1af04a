"""
Orchestrator
============

Sequences one run: discovery across every (scope, resource type) pair,
confirmation, then batched deletion, reporting each step to a
:class:`~cloudsweep.reporting.Collector`.

State machine::

    IDLE -> DISCOVERING -> AWAITING_CONFIRMATION -> NUKING  -> COMPLETE
                                                 \\-> ABORTED -> COMPLETE

Discovery runs concurrently on a bounded thread pool. Deletion is
sequential: scope by scope, resource type by resource type, batch by
batch, so dependency-ordered types are removed in order.

Example
-------
>>> orchestrator = Orchestrator(
...     collector,
...     resource_factory=get_all_registered_resources,
...     scope_config=region_manager.config_for_scope,
... )
>>> result = orchestrator.run(query, scopes, config, force=False)
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from cloudsweep.core.confirmation import confirm_nuke
from cloudsweep.core.context import RunContext
from cloudsweep.core.exceptions import (
    ResourceFetchError,
    ResourceInspectionError,
    is_rate_limit_error,
)
from cloudsweep.core.filters import Config
from cloudsweep.core.query import Query, Scope
from cloudsweep.core.resource import Resource
from cloudsweep.core.timeutil import format_timestamp
from cloudsweep.core.utils import split
from cloudsweep.reporting.collector import Collector

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 10
DEFAULT_RATE_LIMIT_PAUSE = 60.0

# Dependency order for tearing down default VPC components
DEFAULT_RESOURCE_ORDER = [
    "ec2-endpoint",
    "nat-gateway",
    "network-interface",
    "internet-gateway",
    "ec2-subnet",
    "vpc",
]
SECURITY_GROUP_ONLY_ORDER = ["security-group"]


class RunState(Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    NUKING = "nuking"
    ABORTED = "aborted"
    COMPLETE = "complete"


@dataclass
class ScopeResources:
    """Resources of one scope that have at least one match."""

    scope: Scope
    resources: List[Resource] = field(default_factory=list)

    def total_resource_count(self) -> int:
        return sum(len(r.identifiers) for r in self.resources)


@dataclass
class AccountResources:
    """Everything discovery matched, keyed by scope. Read-only after discovery."""

    scopes: Dict[str, ScopeResources] = field(default_factory=dict)

    def __iter__(self) -> Iterator[ScopeResources]:
        return iter(self.scopes.values())

    def total_resource_count(self) -> int:
        return sum(s.total_resource_count() for s in self)

    def nukable_identifiers(self, resource: Resource) -> List[str]:
        return [i for i in resource.identifiers if resource.is_nukable(i)[0]]

    def total_nukable_count(self) -> int:
        return sum(len(self.nukable_identifiers(r)) for s in self for r in s.resources)

    def is_empty(self) -> bool:
        return self.total_resource_count() == 0


@dataclass
class RunResult:
    account: AccountResources
    nuked: bool = False


def defaults_query(
    regions: Optional[Sequence[str]] = None,
    exclude_regions: Optional[Sequence[str]] = None,
    security_groups_only: bool = False,
) -> Query:
    """Query for the default-VPC teardown workflow."""
    order = SECURITY_GROUP_ONLY_ORDER if security_groups_only else DEFAULT_RESOURCE_ORDER
    return Query(
        regions=list(regions or []),
        exclude_regions=list(exclude_regions or []),
        resource_types=list(order),
        default_only=True,
    )


class Orchestrator:
    """
    Drive discovery, confirmation and deletion for one invocation.

    Parameters
    ----------
    collector : Collector
        Receives every event of the run.
    resource_factory : callable
        Returns fresh :class:`Resource` instances for all registered
        types. Called once per scope.
    scope_config : callable
        Maps a :class:`Scope` to the configuration handed to
        ``Resource.init`` (an ``AWSClient``, a GCP project id).
    max_workers : int, default=10
        Discovery thread pool size.
    ignore_error_types : sequence of str, optional
        Types whose discovery errors are recorded but never abort.
    resource_order : sequence of str, optional
        Explicit type order for discovery output and deletion. Defaults
        to the factory's order.
    batch_pause : float, default=0
        Seconds to wait between nuke batches.
    rate_limit_pause : float, default=60
        Seconds to wait after a batch hit a rate limit.
    confirm : callable, optional
        ``confirm(has_resources, dry_run, force) -> bool``. Defaults to
        :func:`~cloudsweep.core.confirmation.confirm_nuke`.
    """

    def __init__(
        self,
        collector: Collector,
        resource_factory: Callable[[], List[Resource]],
        scope_config: Callable[[Scope], Any],
        max_workers: int = DEFAULT_MAX_WORKERS,
        ignore_error_types: Optional[Sequence[str]] = None,
        resource_order: Optional[Sequence[str]] = None,
        batch_pause: float = 0.0,
        rate_limit_pause: float = DEFAULT_RATE_LIMIT_PAUSE,
        confirm: Optional[Callable[[bool, bool, bool], bool]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.collector = collector
        self.resource_factory = resource_factory
        self.scope_config = scope_config
        self.max_workers = max_workers
        self.ignore_error_types = set(ignore_error_types or ())
        self.resource_order = list(resource_order) if resource_order else None
        self.batch_pause = batch_pause
        self.rate_limit_pause = rate_limit_pause
        self._confirm = confirm or confirm_nuke
        self._sleep = sleep
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    # =========================================================================
    # Discovery
    # =========================================================================

    def _ordered(self, resources: List[Resource]) -> List[Resource]:
        if self.resource_order is None:
            return resources
        position = {name: i for i, name in enumerate(self.resource_order)}
        return sorted(resources, key=lambda r: position.get(r.resource_name(), len(position)))

    def _resources_for_scope(self, query: Query, scope: Scope) -> List[Resource]:
        resources = [
            r
            for r in self.resource_factory()
            if query.is_resource_type_allowed(r.resource_name()) and r.is_global == scope.is_global
        ]
        return self._ordered(resources)

    def _is_ignorable(self, resource: Resource) -> bool:
        return resource.ignore_errors or resource.resource_name() in self.ignore_error_types

    def _discover_one(
        self,
        ctx: RunContext,
        scope: Scope,
        resource: Resource,
        cfg: Any,
        config: Config,
    ) -> List[str]:
        self.collector.scan_progress(resource.resource_name(), str(scope))
        try:
            resource.init(cfg, scope)
        except Exception as e:
            raise ResourceFetchError(
                f"Failed to initialise {resource.resource_name()} client in {scope}: {e}",
                resource_type=resource.resource_name(),
                region=str(scope),
            ) from e
        return resource.get_and_set_identifiers(resource.prepare_context(ctx, config), config)

    def discover(
        self,
        ctx: RunContext,
        query: Query,
        scopes: Sequence[Scope],
        config: Config,
    ) -> AccountResources:
        """
        List every allowed resource type in every scope.

        Returns
        -------
        AccountResources
            Matches, ordered by scope then resource type.

        Raises
        ------
        ResourceInspectionError
            If a non-ignorable resource type failed to list.
        """
        self._state = RunState.DISCOVERING
        plan = [(scope, self._resources_for_scope(query, scope)) for scope in scopes]
        resource_types: List[str] = []
        for _, resources in plan:
            for r in resources:
                if r.resource_name() not in resource_types:
                    resource_types.append(r.resource_name())

        window = config.time_window
        self.collector.scan_started(
            [str(s) for s in scopes],
            resource_types,
            exclude_after=format_timestamp(window.exclude_after) if window.exclude_after else "",
            include_after=format_timestamp(window.include_after) if window.include_after else "",
        )

        configs = {scope: self.scope_config(scope) for scope in scopes}
        discovery_ctx = ctx.with_timeout(None)
        succeeded = set()
        fatal: Optional[tuple] = None

        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="discover")
        try:
            futures = {
                executor.submit(
                    self._discover_one, discovery_ctx, scope, resource, configs[scope], config
                ): (scope, resource)
                for scope, resources in plan
                for resource in resources
            }
            for future in as_completed(futures):
                scope, resource = futures[future]
                try:
                    future.result()
                except Exception as e:
                    self.collector.record_error(
                        resource.resource_name(),
                        f"Unable to inspect {resource.resource_name()} in {scope}",
                        e,
                    )
                    if self._is_ignorable(resource):
                        logger.warning("Ignoring discovery error for %s in %s: %s", resource.resource_name(), scope, e)
                        continue
                    fatal = (scope, resource, e)
                    discovery_ctx.cancel()
                    break
                succeeded.add(id(resource))
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        if fatal is not None:
            scope, resource, error = fatal
            self._state = RunState.ABORTED
            self.collector.scan_complete()
            raise ResourceInspectionError(
                f"Discovery of {resource.resource_name()} in {scope} failed: {error}",
                resource_type=resource.resource_name(),
                region=str(scope),
            ) from error

        account = AccountResources()
        for scope, resources in plan:
            matched = [r for r in resources if id(r) in succeeded and r.identifiers]
            if matched:
                account.scopes[str(scope)] = ScopeResources(scope=scope, resources=matched)
            for resource in matched:
                for identifier in resource.identifiers:
                    nukable, reason = resource.is_nukable(identifier)
                    self.collector.record_found(
                        resource.resource_name(), str(scope), identifier, nukable=nukable, error=reason
                    )
        self.collector.scan_complete()
        self._state = RunState.AWAITING_CONFIRMATION
        logger.info("Discovery found %d resource(s)", account.total_resource_count())
        return account

    # =========================================================================
    # Confirmation
    # =========================================================================

    def confirm(self, account: AccountResources, dry_run: bool = False, force: bool = False) -> bool:
        """Ask for permission to nuke. A False answer moves to ABORTED."""
        approved = self._confirm(account.total_nukable_count() > 0, dry_run, force)
        if not approved:
            self._state = RunState.ABORTED
        return approved

    # =========================================================================
    # Deletion
    # =========================================================================

    def nuke(self, ctx: RunContext, account: AccountResources, config: Config) -> None:
        """
        Delete every nukable identifier in ``account``.

        Per-identifier failures are reported as ``ResourceDeleted`` events
        and never stop the run.
        """
        self._state = RunState.NUKING
        self.collector.nuke_started(account.total_nukable_count())
        first_batch = True

        for scope_resources in account:
            region = str(scope_resources.scope)
            for resource in scope_resources.resources:
                name = resource.resource_name()
                identifiers = account.nukable_identifiers(resource)
                skipped = len(resource.identifiers) - len(identifiers)
                if skipped:
                    logger.info("Skipping %d non-nukable %s in %s", skipped, name, region)
                if not identifiers:
                    continue
                rctx = resource.prepare_context(ctx, config)

                for batch in split(identifiers, resource.max_batch_size()):
                    if not first_batch and self.batch_pause:
                        logger.debug("Sleeping %.0fs before the next batch", self.batch_pause)
                        self._sleep(self.batch_pause)
                    first_batch = False

                    self.collector.nuke_progress(name, region, len(batch))
                    try:
                        result = resource.nuke(rctx, batch)
                    except Exception as e:
                        logger.exception("Failed to nuke %s batch in %s", name, region)
                        self.collector.record_error(name, f"Failed to nuke {name} in {region}", e)
                        continue

                    for item in result.results:
                        self.collector.record_deleted(name, region, item.identifier, item.error)
                    if is_rate_limit_error(result.error):
                        logger.warning(
                            "Rate limited while nuking %s in %s, pausing %.0fs",
                            name,
                            region,
                            self.rate_limit_pause,
                        )
                        self._sleep(self.rate_limit_pause)

        self.collector.nuke_complete()

    # =========================================================================
    # Entry points
    # =========================================================================

    def _prepare(self, query: Query, config: Optional[Config], ctx: Optional[RunContext]):
        config = config or Config()
        config.apply_time_window(query.time_window)
        if ctx is None:
            ctx = RunContext(
                timeout=query.timeout,
                default_only=query.default_only,
                exclude_first_seen=query.exclude_first_seen,
            )
        return config, ctx

    def inspect(
        self,
        query: Query,
        scopes: Sequence[Scope],
        config: Optional[Config] = None,
        ctx: Optional[RunContext] = None,
    ) -> AccountResources:
        """Discover only, then close the collector."""
        config, ctx = self._prepare(query, config, ctx)
        try:
            return self.discover(ctx, query, scopes, config)
        finally:
            self.collector.complete()
            self._state = RunState.COMPLETE

    def run(
        self,
        query: Query,
        scopes: Sequence[Scope],
        config: Optional[Config] = None,
        dry_run: bool = False,
        force: bool = False,
        ctx: Optional[RunContext] = None,
    ) -> RunResult:
        """
        Discover, confirm and nuke. The collector is completed on every path.

        Raises
        ------
        ResourceInspectionError
            If discovery aborted.
        """
        config, ctx = self._prepare(query, config, ctx)
        try:
            account = self.discover(ctx, query, scopes, config)
            if not self.confirm(account, dry_run=dry_run, force=force):
                return RunResult(account=account, nuked=False)
            self.nuke(ctx, account, config)
            return RunResult(account=account, nuked=True)
        finally:
            self.collector.complete()
            self._state = RunState.COMPLETE
