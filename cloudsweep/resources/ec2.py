"""
EC2 compute resources: instances, key pairs, EBS volumes and Elastic IPs.

Instances and volumes are deleted and then waited on as a group, so a
batch is only reported as deleted once AWS agrees. Both carry a dry-run
permission probe so that protected or unauthorised resources show up as
non-nukable during inspection instead of failing mid-run.
"""

from __future__ import annotations

import logging
from typing import Any, List

from botocore.exceptions import ClientError

from cloudsweep.core.context import RunContext
from cloudsweep.core.filters import ResourceTypeConfig, ResourceValue
from cloudsweep.core.query import Scope
from cloudsweep.core.resource import Resource
from cloudsweep.core.strategies import (
    concurrent_delete_then_wait_all,
    concurrent_deleter,
    sequential_delete_then_wait_all,
    sequential_deleter,
)
from cloudsweep.resources.common import (
    aws_init,
    get_or_create_first_seen,
    is_excluded,
    tags_to_dict,
    waiter_config,
)

logger = logging.getLogger(__name__)

LIVE_INSTANCE_STATES = ["pending", "running", "stopping", "stopped"]
DELETABLE_VOLUME_STATES = ["available", "creating", "error"]


# =============================================================================
# Instances
# =============================================================================


def _termination_protected(ec2: Any, instance_id: str) -> bool:
    try:
        response = ec2.describe_instance_attribute(
            InstanceId=instance_id, Attribute="disableApiTermination"
        )
    except ClientError as e:
        logger.debug("Could not read termination protection of %s: %s", instance_id, e)
        return False
    return bool(response.get("DisableApiTermination", {}).get("Value"))


def list_instances(ctx: RunContext, ec2: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    identifiers = []
    paginator = ec2.get_paginator("describe_instances")
    for page in paginator.paginate(
        Filters=[{"Name": "instance-state-name", "Values": LIVE_INSTANCE_STATES}]
    ):
        ctx.check("listing ec2 instances")
        for reservation in page.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                tags = tags_to_dict(instance.get("Tags"))
                if is_excluded(tags):
                    continue
                value = ResourceValue(name=tags.get("Name"), time=instance.get("LaunchTime"), tags=tags)
                if not config.should_include(value):
                    continue
                if _termination_protected(ec2, instance["InstanceId"]):
                    logger.info("Skipping %s: termination protection enabled", instance["InstanceId"])
                    continue
                identifiers.append(instance["InstanceId"])
    return identifiers


def verify_instance(ctx: RunContext, ec2: Any, instance_id: str) -> None:
    ec2.terminate_instances(InstanceIds=[instance_id], DryRun=True)


def terminate_instance(ctx: RunContext, ec2: Any, instance_id: str) -> None:
    ec2.terminate_instances(InstanceIds=[instance_id])


def wait_instances_terminated(ctx: RunContext, ec2: Any, instance_ids: List[str]) -> None:
    ec2.get_waiter("instance_terminated").wait(
        InstanceIds=instance_ids, WaiterConfig=waiter_config(ctx)
    )


def ec2_instances() -> Resource:
    return Resource(
        resource_type_name="ec2",
        init_client=aws_init("ec2"),
        lister=list_instances,
        permission_verifier=verify_instance,
        nuker=concurrent_delete_then_wait_all(terminate_instance, wait_instances_terminated),
        batch_size=49,
    )


# =============================================================================
# Key pairs
# =============================================================================


def list_keypairs(ctx: RunContext, ec2: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    ctx.check("listing key pairs")
    identifiers = []
    for keypair in ec2.describe_key_pairs().get("KeyPairs", []):
        tags = tags_to_dict(keypair.get("Tags"))
        if is_excluded(tags):
            continue
        value = ResourceValue(name=keypair.get("KeyName"), time=keypair.get("CreateTime"), tags=tags)
        if config.should_include(value):
            identifiers.append(keypair["KeyName"])
    return identifiers


def delete_keypair(ctx: RunContext, ec2: Any, key_name: str) -> None:
    ec2.delete_key_pair(KeyName=key_name)


def ec2_keypairs() -> Resource:
    return Resource(
        resource_type_name="ec2-keypairs",
        init_client=aws_init("ec2"),
        lister=list_keypairs,
        nuker=concurrent_deleter(delete_keypair),
    )


# =============================================================================
# EBS volumes
# =============================================================================


def list_volumes(ctx: RunContext, ec2: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    identifiers = []
    paginator = ec2.get_paginator("describe_volumes")
    for page in paginator.paginate(
        Filters=[{"Name": "status", "Values": DELETABLE_VOLUME_STATES}]
    ):
        ctx.check("listing ebs volumes")
        for volume in page.get("Volumes", []):
            tags = tags_to_dict(volume.get("Tags"))
            if is_excluded(tags):
                continue
            value = ResourceValue(name=tags.get("Name"), time=volume.get("CreateTime"), tags=tags)
            if config.should_include(value):
                identifiers.append(volume["VolumeId"])
    return identifiers


def verify_volume(ctx: RunContext, ec2: Any, volume_id: str) -> None:
    ec2.delete_volume(VolumeId=volume_id, DryRun=True)


def delete_volume(ctx: RunContext, ec2: Any, volume_id: str) -> None:
    ec2.delete_volume(VolumeId=volume_id)


def wait_volumes_deleted(ctx: RunContext, ec2: Any, volume_ids: List[str]) -> None:
    ec2.get_waiter("volume_deleted").wait(VolumeIds=volume_ids, WaiterConfig=waiter_config(ctx))


def ebs_volumes() -> Resource:
    return Resource(
        resource_type_name="ebs",
        init_client=aws_init("ec2"),
        lister=list_volumes,
        permission_verifier=verify_volume,
        nuker=sequential_delete_then_wait_all(delete_volume, wait_volumes_deleted),
    )


# =============================================================================
# Elastic IPs
# =============================================================================


def list_addresses(ctx: RunContext, ec2: Any, scope: Scope, config: ResourceTypeConfig) -> List[str]:
    ctx.check("listing elastic ips")
    identifiers = []
    for address in ec2.describe_addresses().get("Addresses", []):
        allocation_id = address.get("AllocationId")
        if not allocation_id:
            continue
        tags = tags_to_dict(address.get("Tags"))
        if is_excluded(tags):
            continue
        first_seen = get_or_create_first_seen(ctx, ec2, allocation_id, tags)
        value = ResourceValue(name=tags.get("Name"), time=first_seen, tags=tags)
        if config.should_include(value):
            identifiers.append(allocation_id)
    return identifiers


def release_address(ctx: RunContext, ec2: Any, allocation_id: str) -> None:
    ec2.release_address(AllocationId=allocation_id)


def elastic_ips() -> Resource:
    return Resource(
        resource_type_name="eip",
        init_client=aws_init("ec2"),
        lister=list_addresses,
        nuker=sequential_deleter(release_address),
    )
