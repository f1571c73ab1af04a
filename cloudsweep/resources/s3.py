"""
S3 buckets.

Buckets are account-wide, so this type is listed once in the ``global``
scope. A bucket must be empty before it can be deleted: the first step
removes every object version and delete marker, the second deletes the
bucket.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from botocore.exceptions import ClientError

from cloudsweep.core.context import RunContext
from cloudsweep.core.exceptions import DeleteError
from cloudsweep.core.filters import ResourceTypeConfig, ResourceValue
from cloudsweep.core.query import Scope
from cloudsweep.core.resource import Resource
from cloudsweep.core.strategies import multi_step_deleter
from cloudsweep.core.utils import split
from cloudsweep.resources.common import aws_init, is_excluded, tags_to_dict

logger = logging.getLogger(__name__)

# delete_objects accepts at most this many keys per call
MAX_DELETE_OBJECTS = 1000
NO_TAGS_ERROR_CODES = {"NoSuchTagSet", "NoSuchTagSetError"}


def _bucket_tags(s3: Any, bucket: str) -> Dict[str, str]:
    try:
        response = s3.get_bucket_tagging(Bucket=bucket)
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") in NO_TAGS_ERROR_CODES:
            return {}
        raise
    return tags_to_dict(response.get("TagSet"))


def list_buckets(ctx: RunContext, s3: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    ctx.check("listing s3 buckets")
    identifiers = []
    for bucket in s3.list_buckets().get("Buckets", []):
        name = bucket["Name"]
        tags = _bucket_tags(s3, name)
        if is_excluded(tags):
            logger.debug("Skipping %s: exclusion tag set", name)
            continue
        value = ResourceValue(name=name, time=bucket.get("CreationDate"), tags=tags)
        if config.should_include(value):
            identifiers.append(name)
    return identifiers


def empty_bucket(ctx: RunContext, s3: Any, bucket: str) -> None:
    paginator = s3.get_paginator("list_object_versions")
    deleted = 0
    for page in paginator.paginate(Bucket=bucket):
        ctx.check(f"emptying bucket {bucket}")
        objects = [
            {"Key": item["Key"], "VersionId": item["VersionId"]}
            for item in page.get("Versions", []) + page.get("DeleteMarkers", [])
        ]
        for chunk in split(objects, MAX_DELETE_OBJECTS):
            response = s3.delete_objects(Bucket=bucket, Delete={"Objects": chunk, "Quiet": True})
            errors = response.get("Errors", [])
            if errors:
                first = errors[0]
                raise DeleteError(
                    f"failed to delete {len(errors)} object(s), first {first.get('Key')}: "
                    f"{first.get('Message') or first.get('Code')}",
                    resource_id=bucket,
                    resource_type="s3",
                )
            deleted += len(chunk)
    logger.debug("Removed %d object version(s) from %s", deleted, bucket)


def delete_bucket(ctx: RunContext, s3: Any, bucket: str) -> None:
    s3.delete_bucket(Bucket=bucket)


def s3_buckets() -> Resource:
    return Resource(
        resource_type_name="s3",
        init_client=aws_init("s3"),
        lister=list_buckets,
        nuker=multi_step_deleter(empty_bucket, delete_bucket),
        is_global=True,
    )
