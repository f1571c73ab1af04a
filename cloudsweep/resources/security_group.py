"""
Security groups.

Regular runs delete every non-default group. Default-only runs cannot
delete the ``default`` group of a VPC, so they strip its ingress and
egress rules instead.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from botocore.exceptions import ClientError

from cloudsweep.core.context import RunContext
from cloudsweep.core.exceptions import DependencyError
from cloudsweep.core.filters import ResourceTypeConfig, ResourceValue
from cloudsweep.core.query import Scope
from cloudsweep.core.resource import NukeResult, Resource
from cloudsweep.core.strategies import concurrent_deleter, multi_step_deleter
from cloudsweep.resources.common import aws_init, get_or_create_first_seen, is_excluded, tags_to_dict

logger = logging.getLogger(__name__)

DEFAULT_GROUP_NAME = "default"

# Error codes meaning another resource still references the group
DEPENDENCY_ERROR_CODES = {
    "DependencyViolation": "security group is still attached to a network interface",
    "InvalidGroup.InUse": "security group is referenced by another security group",
}

# Keys accepted back by the revoke calls
_PERMISSION_KEYS = ("IpProtocol", "FromPort", "ToPort", "IpRanges", "Ipv6Ranges", "PrefixListIds")


def list_security_groups(ctx: RunContext, ec2: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    identifiers = []
    paginator = ec2.get_paginator("describe_security_groups")
    for page in paginator.paginate():
        ctx.check("listing security groups")
        for group in page.get("SecurityGroups", []):
            is_default = group.get("GroupName") == DEFAULT_GROUP_NAME
            if is_default != ctx.default_only:
                continue
            tags = tags_to_dict(group.get("Tags"))
            if is_excluded(tags):
                continue
            first_seen = get_or_create_first_seen(ctx, ec2, group["GroupId"], tags)
            value = ResourceValue(name=group.get("GroupName"), time=first_seen, tags=tags)
            if config.should_include(value):
                identifiers.append(group["GroupId"])
    return identifiers


def delete_security_group(ctx: RunContext, ec2: Any, group_id: str) -> None:
    try:
        ec2.delete_security_group(GroupId=group_id)
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        if code in DEPENDENCY_ERROR_CODES:
            raise DependencyError(
                DEPENDENCY_ERROR_CODES[code],
                resource_id=group_id,
                resource_type="security-group",
            ) from e
        raise


def _clean_permissions(permissions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    cleaned = []
    for permission in permissions:
        entry = {k: permission[k] for k in _PERMISSION_KEYS if permission.get(k) not in (None, [])}
        pairs = [
            {k: v for k, v in pair.items() if k in ("GroupId", "UserId")}
            for pair in permission.get("UserIdGroupPairs", [])
        ]
        if pairs:
            entry["UserIdGroupPairs"] = pairs
        cleaned.append(entry)
    return cleaned


def _describe_group(ec2: Any, group_id: str) -> Dict[str, Any]:
    return ec2.describe_security_groups(GroupIds=[group_id])["SecurityGroups"][0]


def revoke_ingress(ctx: RunContext, ec2: Any, group_id: str) -> None:
    permissions = _clean_permissions(_describe_group(ec2, group_id).get("IpPermissions", []))
    if permissions:
        ec2.revoke_security_group_ingress(GroupId=group_id, IpPermissions=permissions)


def revoke_egress(ctx: RunContext, ec2: Any, group_id: str) -> None:
    permissions = _clean_permissions(_describe_group(ec2, group_id).get("IpPermissionsEgress", []))
    if permissions:
        ec2.revoke_security_group_egress(GroupId=group_id, IpPermissions=permissions)


_delete_groups = concurrent_deleter(delete_security_group)
_revoke_default_rules = multi_step_deleter(revoke_ingress, revoke_egress)


def nuke_security_groups(
    ctx: RunContext, ec2: Any, scope: Scope, resource_type: str, identifiers: List[str]
) -> List[NukeResult]:
    if ctx.default_only:
        return _revoke_default_rules(ctx, ec2, scope, resource_type, identifiers)
    return _delete_groups(ctx, ec2, scope, resource_type, identifiers)


def security_groups() -> Resource:
    return Resource(
        resource_type_name="security-group",
        init_client=aws_init("ec2"),
        lister=list_security_groups,
        nuker=nuke_security_groups,
    )
