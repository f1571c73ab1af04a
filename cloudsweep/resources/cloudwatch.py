"""CloudWatch dashboards, deleted in bulk."""

from __future__ import annotations

from typing import Any, List

from cloudsweep.core.context import RunContext
from cloudsweep.core.filters import ResourceTypeConfig, ResourceValue
from cloudsweep.core.query import Scope
from cloudsweep.core.resource import Resource
from cloudsweep.core.strategies import bulk_deleter
from cloudsweep.resources.common import aws_init


def list_dashboards(ctx: RunContext, cloudwatch: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    identifiers = []
    paginator = cloudwatch.get_paginator("list_dashboards")
    for page in paginator.paginate():
        ctx.check("listing cloudwatch dashboards")
        for entry in page.get("DashboardEntries", []):
            value = ResourceValue(name=entry["DashboardName"], time=entry.get("LastModified"))
            if config.should_include(value):
                identifiers.append(entry["DashboardName"])
    return identifiers


def delete_dashboards(ctx: RunContext, cloudwatch: Any, names: List[str]) -> None:
    cloudwatch.delete_dashboards(DashboardNames=names)


def cloudwatch_dashboards() -> Resource:
    return Resource(
        resource_type_name="cloudwatch-dashboard",
        init_client=aws_init("cloudwatch"),
        lister=list_dashboards,
        nuker=bulk_deleter(delete_dashboards),
    )
