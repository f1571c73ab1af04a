"""SQS queues. Identifiers are queue URLs."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from cloudsweep.core.context import RunContext
from cloudsweep.core.filters import ResourceTypeConfig, ResourceValue
from cloudsweep.core.query import Scope
from cloudsweep.core.resource import Resource
from cloudsweep.core.strategies import concurrent_deleter
from cloudsweep.resources.common import aws_init, is_excluded

logger = logging.getLogger(__name__)


def _created_at(sqs: Any, queue_url: str) -> Optional[datetime]:
    attributes = sqs.get_queue_attributes(
        QueueUrl=queue_url, AttributeNames=["CreatedTimestamp"]
    ).get("Attributes", {})
    created = attributes.get("CreatedTimestamp")
    if not created:
        return None
    return datetime.fromtimestamp(int(float(created)), tz=timezone.utc)


def list_queues(ctx: RunContext, sqs: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    identifiers = []
    paginator = sqs.get_paginator("list_queues")
    for page in paginator.paginate():
        ctx.check("listing sqs queues")
        for queue_url in page.get("QueueUrls", []):
            tags = sqs.list_queue_tags(QueueUrl=queue_url).get("Tags", {})
            if is_excluded(tags):
                continue
            value = ResourceValue(
                name=queue_url.rsplit("/", 1)[-1],
                time=_created_at(sqs, queue_url),
                tags=tags,
            )
            if config.should_include(value):
                identifiers.append(queue_url)
    return identifiers


def delete_queue(ctx: RunContext, sqs: Any, queue_url: str) -> None:
    sqs.delete_queue(QueueUrl=queue_url)


def sqs_queues() -> Resource:
    return Resource(
        resource_type_name="sqs",
        init_client=aws_init("sqs"),
        lister=list_queues,
        nuker=concurrent_deleter(delete_queue),
    )
