"""
GCP Cloud Storage buckets.

Scoped by project. Buckets are emptied (every object generation) and then
deleted. Bucket labels play the role of tags in filter rules.
"""

from __future__ import annotations

import logging
from typing import Any, List

from google.cloud import storage

from cloudsweep.core.context import RunContext
from cloudsweep.core.filters import ResourceTypeConfig, ResourceValue
from cloudsweep.core.query import Scope
from cloudsweep.core.resource import Resource
from cloudsweep.core.strategies import multi_step_deleter

logger = logging.getLogger(__name__)


def init_storage_client(resource: Resource, project_id: Any) -> None:
    resource.client = storage.Client(project=project_id)
    resource.scope = Scope(project_id=project_id)


def list_gcs_buckets(
    ctx: RunContext, client: storage.Client, scope: Scope, config: ResourceTypeConfig
) -> List[str]:
    identifiers = []
    for bucket in client.list_buckets():
        ctx.check("listing gcs buckets")
        value = ResourceValue(
            name=bucket.name,
            time=bucket.time_created,
            tags=dict(bucket.labels or {}),
        )
        if config.should_include(value):
            identifiers.append(bucket.name)
    return identifiers


def delete_blobs(ctx: RunContext, client: storage.Client, bucket_name: str) -> None:
    deleted = 0
    for blob in client.list_blobs(bucket_name, versions=True):
        ctx.check(f"emptying bucket {bucket_name}")
        blob.delete()
        deleted += 1
    logger.debug("Deleted %d object(s) from gs://%s", deleted, bucket_name)


def delete_gcs_bucket(ctx: RunContext, client: storage.Client, bucket_name: str) -> None:
    client.bucket(bucket_name).delete()


def gcs_buckets() -> Resource:
    return Resource(
        resource_type_name="gcs-bucket",
        init_client=init_storage_client,
        lister=list_gcs_buckets,
        nuker=multi_step_deleter(delete_blobs, delete_gcs_bucket),
    )
