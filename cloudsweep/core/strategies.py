"""
Batch Deletion Strategies
=========================

Factories that turn a per-identifier (or per-batch) delete function into a
nuker with the uniform shape::

    strategy(ctx, client, scope, resource_type, identifiers) -> List[NukeResult]

Every strategy returns exactly one result per input identifier, in input
order, and a failure for one identifier never stops its siblings. Once the
context deadline passes, identifiers not yet attempted get an
:class:`~cloudsweep.core.exceptions.OperationTimeoutError` result.

Example
-------
>>> def delete_queue(ctx, client, url):
...     client.delete_queue(QueueUrl=url)
>>> nuker = concurrent_deleter(delete_queue)
>>> results = nuker(ctx, sqs, scope, "sqs", urls)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Callable, List, Mapping, Optional

from cloudsweep.core.context import RunContext
from cloudsweep.core.exceptions import (
    BatchSizeLimitError,
    OperationTimeoutError,
    StepError,
    transform_error,
)
from cloudsweep.core.query import Scope
from cloudsweep.core.resource import NukeResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT = 10
MAX_BATCH_SIZE_LIMIT = 100

DeleteFunc = Callable[[RunContext, Any, str], None]
BulkDeleteFunc = Callable[[RunContext, Any, List[str]], None]
BulkResultDeleteFunc = Callable[[RunContext, Any, List[str]], Optional[Mapping[str, BaseException]]]
WaitFunc = Callable[[RunContext, Any, str], None]
WaitAllFunc = Callable[[RunContext, Any, List[str]], None]
Strategy = Callable[[RunContext, Any, Scope, str, List[str]], List[NukeResult]]


def _timeout_result(identifier: str, resource_type: str) -> NukeResult:
    return NukeResult(
        identifier,
        OperationTimeoutError(f"{resource_type} {identifier} not attempted before deadline"),
    )


def _attempt(ctx: RunContext, delete: DeleteFunc, client: Any, identifier: str, resource_type: str) -> NukeResult:
    if ctx.expired():
        return _timeout_result(identifier, resource_type)
    try:
        delete(ctx, client, identifier)
    except Exception as e:
        return NukeResult(identifier, transform_error(e))
    return NukeResult(identifier)


def _limit_exceeded(identifiers: List[str]) -> Optional[List[NukeResult]]:
    if len(identifiers) <= MAX_BATCH_SIZE_LIMIT:
        return None
    error = BatchSizeLimitError(len(identifiers), MAX_BATCH_SIZE_LIMIT)
    return [NukeResult(i, error) for i in identifiers]


def _run_concurrently(
    ctx: RunContext,
    delete: DeleteFunc,
    client: Any,
    resource_type: str,
    identifiers: List[str],
    max_workers: int,
) -> List[NukeResult]:
    results: List[Optional[NukeResult]] = [None] * len(identifiers)
    executor = ThreadPoolExecutor(
        max_workers=max(1, min(max_workers, len(identifiers))),
        thread_name_prefix=f"nuke-{resource_type}",
    )
    futures = {
        executor.submit(_attempt, ctx, delete, client, identifier, resource_type): index
        for index, identifier in enumerate(identifiers)
    }
    done, not_done = wait(futures, timeout=ctx.remaining())
    for future in not_done:
        future.cancel()
    # In-flight calls past the deadline keep running in the background
    executor.shutdown(wait=not not_done, cancel_futures=True)

    for future in done:
        results[futures[future]] = future.result()
    return [
        result if result is not None else _timeout_result(identifiers[index], resource_type)
        for index, result in enumerate(results)
    ]


def concurrent_deleter(delete: DeleteFunc, max_workers: int = DEFAULT_MAX_CONCURRENT) -> Strategy:
    """Delete identifiers in parallel, at most ``max_workers`` in flight."""

    def strategy(ctx: RunContext, client: Any, scope: Scope, resource_type: str, identifiers: List[str]) -> List[NukeResult]:
        if not identifiers:
            return []
        refused = _limit_exceeded(identifiers)
        if refused is not None:
            return refused
        logger.info("Deleting %d %s in %s", len(identifiers), resource_type, scope)
        return _run_concurrently(ctx, delete, client, resource_type, identifiers, max_workers)

    return strategy


def sequential_deleter(delete: DeleteFunc) -> Strategy:
    """Delete identifiers one at a time, in order."""

    def strategy(ctx: RunContext, client: Any, scope: Scope, resource_type: str, identifiers: List[str]) -> List[NukeResult]:
        if not identifiers:
            return []
        logger.info("Deleting %d %s in %s", len(identifiers), resource_type, scope)
        return [_attempt(ctx, delete, client, i, resource_type) for i in identifiers]

    return strategy


def bulk_deleter(delete: BulkDeleteFunc) -> Strategy:
    """
    Delete the whole batch with one call.

    The call's error, if any, is attached to every identifier.
    """

    def strategy(ctx: RunContext, client: Any, scope: Scope, resource_type: str, identifiers: List[str]) -> List[NukeResult]:
        if not identifiers:
            return []
        refused = _limit_exceeded(identifiers)
        if refused is not None:
            return refused
        if ctx.expired():
            return [_timeout_result(i, resource_type) for i in identifiers]
        logger.info("Bulk deleting %d %s in %s", len(identifiers), resource_type, scope)
        try:
            delete(ctx, client, list(identifiers))
        except Exception as e:
            error = transform_error(e)
            return [NukeResult(i, error) for i in identifiers]
        return [NukeResult(i) for i in identifiers]

    return strategy


def bulk_result_deleter(delete: BulkResultDeleteFunc) -> Strategy:
    """
    Delete the whole batch with one call that reports per-item failures.

    ``delete`` returns a mapping of failed identifier to error (or
    ``None``); identifiers absent from the mapping succeeded. If the call
    itself raises, its error is attached to every identifier.
    """

    def strategy(ctx: RunContext, client: Any, scope: Scope, resource_type: str, identifiers: List[str]) -> List[NukeResult]:
        if not identifiers:
            return []
        refused = _limit_exceeded(identifiers)
        if refused is not None:
            return refused
        if ctx.expired():
            return [_timeout_result(i, resource_type) for i in identifiers]
        logger.info("Bulk deleting %d %s in %s", len(identifiers), resource_type, scope)
        try:
            failures = delete(ctx, client, list(identifiers)) or {}
        except Exception as e:
            error = transform_error(e)
            return [NukeResult(i, error) for i in identifiers]
        return [
            NukeResult(i, transform_error(failures[i]) if failures.get(i) is not None else None)
            for i in identifiers
        ]

    return strategy


def multi_step_deleter(*steps: DeleteFunc) -> Strategy:
    """
    Run ordered steps per identifier, identifiers processed sequentially.

    The first failing step stops the remaining steps for that identifier
    and is reported as a :class:`StepError` with its 1-based ordinal.
    """

    def delete_all_steps(ctx: RunContext, client: Any, identifier: str, resource_type: str) -> None:
        for ordinal, step in enumerate(steps, start=1):
            try:
                step(ctx, client, identifier)
            except Exception as e:
                raise StepError(
                    ordinal,
                    transform_error(e) or e,
                    resource_id=identifier,
                    resource_type=resource_type,
                ) from e

    def strategy(ctx: RunContext, client: Any, scope: Scope, resource_type: str, identifiers: List[str]) -> List[NukeResult]:
        if not identifiers:
            return []
        logger.info("Deleting %d %s in %s (%d steps)", len(identifiers), resource_type, scope, len(steps))
        results = []
        for identifier in identifiers:
            if ctx.expired():
                results.append(_timeout_result(identifier, resource_type))
                continue
            try:
                delete_all_steps(ctx, client, identifier, resource_type)
            except StepError as e:
                results.append(NukeResult(identifier, e))
            else:
                results.append(NukeResult(identifier))
        return results

    return strategy


def delete_then_wait(delete: DeleteFunc, wait_for: WaitFunc) -> DeleteFunc:
    """Combine a delete and a per-identifier wait into one delete function."""

    def combined(ctx: RunContext, client: Any, identifier: str) -> None:
        delete(ctx, client, identifier)
        wait_for(ctx, client, identifier)

    return combined


def _wait_all(
    ctx: RunContext,
    wait_all: WaitAllFunc,
    client: Any,
    resource_type: str,
    results: List[NukeResult],
) -> List[NukeResult]:
    deleted = [r.identifier for r in results if r.success]
    if not deleted:
        return results
    if ctx.expired():
        error: Optional[BaseException] = OperationTimeoutError(
            f"deadline passed before confirming {resource_type} deletion"
        )
    else:
        try:
            wait_all(ctx, client, deleted)
            error = None
        except Exception as e:
            error = transform_error(e)
    if error is None:
        return results
    waited = set(deleted)
    return [NukeResult(r.identifier, error) if r.identifier in waited else r for r in results]


def sequential_delete_then_wait_all(delete: DeleteFunc, wait_all: WaitAllFunc) -> Strategy:
    """
    Delete one at a time, then wait once for every successful deletion.

    A failed wait is attached to each identifier that was waited on;
    identifiers whose delete failed keep their delete error.
    """
    deleter = sequential_deleter(delete)

    def strategy(ctx: RunContext, client: Any, scope: Scope, resource_type: str, identifiers: List[str]) -> List[NukeResult]:
        results = deleter(ctx, client, scope, resource_type, identifiers)
        return _wait_all(ctx, wait_all, client, resource_type, results)

    return strategy


def concurrent_delete_then_wait_all(
    delete: DeleteFunc,
    wait_all: WaitAllFunc,
    max_workers: int = DEFAULT_MAX_CONCURRENT,
) -> Strategy:
    """Like :func:`sequential_delete_then_wait_all` with a parallel delete phase."""
    deleter = concurrent_deleter(delete, max_workers=max_workers)

    def strategy(ctx: RunContext, client: Any, scope: Scope, resource_type: str, identifiers: List[str]) -> List[NukeResult]:
        results = deleter(ctx, client, scope, resource_type, identifiers)
        return _wait_all(ctx, wait_all, client, resource_type, results)

    return strategy

