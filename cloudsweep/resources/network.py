"""
VPC networking resources.

Covers VPC endpoints, NAT gateways, network interfaces, internet
gateways, subnets and VPCs. Each lister honours ``ctx.default_only``:
default-only runs keep the members of default VPCs (the defaults
teardown workflow), regular runs keep everything else.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from cloudsweep.core.context import RunContext
from cloudsweep.core.exceptions import DeleteError
from cloudsweep.core.filters import ResourceTypeConfig, ResourceValue
from cloudsweep.core.query import Scope
from cloudsweep.core.resource import Resource
from cloudsweep.core.strategies import (
    bulk_result_deleter,
    concurrent_delete_then_wait_all,
    multi_step_deleter,
    sequential_deleter,
)
from cloudsweep.resources.common import (
    aws_init,
    default_vpc_ids,
    get_or_create_first_seen,
    in_scope_vpc,
    is_excluded,
    tags_to_dict,
    waiter_config,
)

logger = logging.getLogger(__name__)


# =============================================================================
# VPC endpoints
# =============================================================================


def list_vpc_endpoints(ctx: RunContext, ec2: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    defaults = default_vpc_ids(ec2)
    identifiers = []
    paginator = ec2.get_paginator("describe_vpc_endpoints")
    for page in paginator.paginate():
        ctx.check("listing vpc endpoints")
        for endpoint in page.get("VpcEndpoints", []):
            if endpoint.get("State", "").lower() in ("deleting", "deleted"):
                continue
            if not in_scope_vpc(ctx, endpoint.get("VpcId"), defaults):
                continue
            tags = tags_to_dict(endpoint.get("Tags"))
            if is_excluded(tags):
                continue
            value = ResourceValue(
                name=tags.get("Name"), time=endpoint.get("CreationTimestamp"), tags=tags
            )
            if config.should_include(value):
                identifiers.append(endpoint["VpcEndpointId"])
    return identifiers


def delete_vpc_endpoints(ctx: RunContext, ec2: Any, endpoint_ids: List[str]) -> Dict[str, Exception]:
    response = ec2.delete_vpc_endpoints(VpcEndpointIds=endpoint_ids)
    failures: Dict[str, Exception] = {}
    for item in response.get("Unsuccessful", []):
        error = item.get("Error", {})
        failures[item["ResourceId"]] = DeleteError(
            error.get("Message") or error.get("Code") or "delete failed",
            resource_id=item["ResourceId"],
            resource_type="ec2-endpoint",
        )
    return failures


def vpc_endpoints() -> Resource:
    return Resource(
        resource_type_name="ec2-endpoint",
        init_client=aws_init("ec2"),
        lister=list_vpc_endpoints,
        nuker=bulk_result_deleter(delete_vpc_endpoints),
    )


# =============================================================================
# NAT gateways
# =============================================================================


def list_nat_gateways(ctx: RunContext, ec2: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    defaults = default_vpc_ids(ec2)
    identifiers = []
    paginator = ec2.get_paginator("describe_nat_gateways")
    for page in paginator.paginate(Filters=[{"Name": "state", "Values": ["pending", "available"]}]):
        ctx.check("listing nat gateways")
        for gateway in page.get("NatGateways", []):
            if not in_scope_vpc(ctx, gateway.get("VpcId"), defaults):
                continue
            tags = tags_to_dict(gateway.get("Tags"))
            if is_excluded(tags):
                continue
            value = ResourceValue(name=tags.get("Name"), time=gateway.get("CreateTime"), tags=tags)
            if config.should_include(value):
                identifiers.append(gateway["NatGatewayId"])
    return identifiers


def delete_nat_gateway(ctx: RunContext, ec2: Any, gateway_id: str) -> None:
    ec2.delete_nat_gateway(NatGatewayId=gateway_id)


def wait_nat_gateways_deleted(ctx: RunContext, ec2: Any, gateway_ids: List[str]) -> None:
    ec2.get_waiter("nat_gateway_deleted").wait(
        NatGatewayIds=gateway_ids, WaiterConfig=waiter_config(ctx)
    )


def nat_gateways() -> Resource:
    return Resource(
        resource_type_name="nat-gateway",
        init_client=aws_init("ec2"),
        lister=list_nat_gateways,
        nuker=concurrent_delete_then_wait_all(delete_nat_gateway, wait_nat_gateways_deleted),
    )


# =============================================================================
# Network interfaces
# =============================================================================


def list_network_interfaces(ctx: RunContext, ec2: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    defaults = default_vpc_ids(ec2)
    identifiers = []
    paginator = ec2.get_paginator("describe_network_interfaces")
    for page in paginator.paginate():
        ctx.check("listing network interfaces")
        for interface in page.get("NetworkInterfaces", []):
            # Interfaces owned by AWS services go away with their service
            if interface.get("RequesterManaged"):
                continue
            if not in_scope_vpc(ctx, interface.get("VpcId"), defaults):
                continue
            interface_id = interface["NetworkInterfaceId"]
            tags = tags_to_dict(interface.get("TagSet"))
            if is_excluded(tags):
                continue
            first_seen = get_or_create_first_seen(ctx, ec2, interface_id, tags)
            value = ResourceValue(name=tags.get("Name"), time=first_seen, tags=tags)
            if config.should_include(value):
                identifiers.append(interface_id)
    return identifiers


def detach_network_interface(ctx: RunContext, ec2: Any, interface_id: str) -> None:
    response = ec2.describe_network_interfaces(NetworkInterfaceIds=[interface_id])
    for interface in response.get("NetworkInterfaces", []):
        attachment = interface.get("Attachment") or {}
        if attachment.get("AttachmentId") and attachment.get("Status") in ("attached", "attaching"):
            ec2.detach_network_interface(AttachmentId=attachment["AttachmentId"], Force=True)


def delete_network_interface(ctx: RunContext, ec2: Any, interface_id: str) -> None:
    ec2.delete_network_interface(NetworkInterfaceId=interface_id)


def network_interfaces() -> Resource:
    return Resource(
        resource_type_name="network-interface",
        init_client=aws_init("ec2"),
        lister=list_network_interfaces,
        nuker=multi_step_deleter(detach_network_interface, delete_network_interface),
    )


# =============================================================================
# Internet gateways
# =============================================================================


def _attached_vpc(gateway: Dict[str, Any]) -> Optional[str]:
    for attachment in gateway.get("Attachments", []):
        return attachment.get("VpcId")
    return None


def list_internet_gateways(ctx: RunContext, ec2: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    defaults = default_vpc_ids(ec2)
    identifiers = []
    paginator = ec2.get_paginator("describe_internet_gateways")
    for page in paginator.paginate():
        ctx.check("listing internet gateways")
        for gateway in page.get("InternetGateways", []):
            if not in_scope_vpc(ctx, _attached_vpc(gateway), defaults):
                continue
            gateway_id = gateway["InternetGatewayId"]
            tags = tags_to_dict(gateway.get("Tags"))
            if is_excluded(tags):
                continue
            first_seen = get_or_create_first_seen(ctx, ec2, gateway_id, tags)
            value = ResourceValue(name=tags.get("Name"), time=first_seen, tags=tags)
            if config.should_include(value):
                identifiers.append(gateway_id)
    return identifiers


def detach_internet_gateway(ctx: RunContext, ec2: Any, gateway_id: str) -> None:
    response = ec2.describe_internet_gateways(InternetGatewayIds=[gateway_id])
    for gateway in response.get("InternetGateways", []):
        for attachment in gateway.get("Attachments", []):
            ec2.detach_internet_gateway(InternetGatewayId=gateway_id, VpcId=attachment["VpcId"])


def delete_internet_gateway(ctx: RunContext, ec2: Any, gateway_id: str) -> None:
    ec2.delete_internet_gateway(InternetGatewayId=gateway_id)


def internet_gateways() -> Resource:
    return Resource(
        resource_type_name="internet-gateway",
        init_client=aws_init("ec2"),
        lister=list_internet_gateways,
        nuker=multi_step_deleter(detach_internet_gateway, delete_internet_gateway),
    )


# =============================================================================
# Subnets
# =============================================================================


def list_subnets(ctx: RunContext, ec2: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    identifiers = []
    paginator = ec2.get_paginator("describe_subnets")
    for page in paginator.paginate():
        ctx.check("listing subnets")
        for subnet in page.get("Subnets", []):
            if bool(subnet.get("DefaultForAz")) != ctx.default_only:
                continue
            subnet_id = subnet["SubnetId"]
            tags = tags_to_dict(subnet.get("Tags"))
            if is_excluded(tags):
                continue
            first_seen = get_or_create_first_seen(ctx, ec2, subnet_id, tags)
            value = ResourceValue(name=tags.get("Name"), time=first_seen, tags=tags)
            if config.should_include(value):
                identifiers.append(subnet_id)
    return identifiers


def delete_subnet(ctx: RunContext, ec2: Any, subnet_id: str) -> None:
    ec2.delete_subnet(SubnetId=subnet_id)


def subnets() -> Resource:
    return Resource(
        resource_type_name="ec2-subnet",
        init_client=aws_init("ec2"),
        lister=list_subnets,
        nuker=sequential_deleter(delete_subnet),
    )


# =============================================================================
# VPCs
# =============================================================================


def list_vpcs(ctx: RunContext, ec2: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    identifiers = []
    is_default = "true" if ctx.default_only else "false"
    paginator = ec2.get_paginator("describe_vpcs")
    for page in paginator.paginate(Filters=[{"Name": "isDefault", "Values": [is_default]}]):
        ctx.check("listing vpcs")
        for vpc in page.get("Vpcs", []):
            vpc_id = vpc["VpcId"]
            tags = tags_to_dict(vpc.get("Tags"))
            if is_excluded(tags):
                continue
            first_seen = get_or_create_first_seen(ctx, ec2, vpc_id, tags)
            value = ResourceValue(name=tags.get("Name"), time=first_seen, tags=tags)
            if config.should_include(value):
                identifiers.append(vpc_id)
    return identifiers


def delete_vpc_security_groups(ctx: RunContext, ec2: Any, vpc_id: str) -> None:
    response = ec2.describe_security_groups(Filters=[{"Name": "vpc-id", "Values": [vpc_id]}])
    for group in response.get("SecurityGroups", []):
        if group.get("GroupName") != "default":
            ec2.delete_security_group(GroupId=group["GroupId"])


def delete_vpc(ctx: RunContext, ec2: Any, vpc_id: str) -> None:
    ec2.delete_vpc(VpcId=vpc_id)


def vpcs() -> Resource:
    return Resource(
        resource_type_name="vpc",
        init_client=aws_init("ec2"),
        lister=list_vpcs,
        nuker=multi_step_deleter(delete_vpc_security_groups, delete_vpc),
    )
