"""
Resource registry.

The order of :data:`AWS_RESOURCES` is the nuke order: dependents before
the things they depend on (instances before volumes and addresses,
gateways and interfaces before subnets, subnets before VPCs).
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Callable, Dict, List

from cloudsweep.core.resource import Resource
from cloudsweep.resources.cloudwatch import cloudwatch_dashboards
from cloudsweep.resources.ec2 import ebs_volumes, ec2_instances, ec2_keypairs, elastic_ips
from cloudsweep.resources.gcs import gcs_buckets
from cloudsweep.resources.network import (
    internet_gateways,
    nat_gateways,
    network_interfaces,
    subnets,
    vpc_endpoints,
    vpcs,
)
from cloudsweep.resources.s3 import s3_buckets
from cloudsweep.resources.security_group import security_groups
from cloudsweep.resources.sqs import sqs_queues

ResourceFactory = Callable[[], Resource]

AWS_RESOURCES: Dict[str, ResourceFactory] = OrderedDict(
    [
        ("ec2", ec2_instances),
        ("ec2-keypairs", ec2_keypairs),
        ("ebs", ebs_volumes),
        ("eip", elastic_ips),
        ("ec2-endpoint", vpc_endpoints),
        ("nat-gateway", nat_gateways),
        ("network-interface", network_interfaces),
        ("security-group", security_groups),
        ("internet-gateway", internet_gateways),
        ("ec2-subnet", subnets),
        ("vpc", vpcs),
        ("s3", s3_buckets),
        ("cloudwatch-dashboard", cloudwatch_dashboards),
        ("sqs", sqs_queues),
    ]
)

GCP_RESOURCES: Dict[str, ResourceFactory] = OrderedDict(
    [
        ("gcs-bucket", gcs_buckets),
    ]
)

RESOURCE_ORDER: List[str] = list(AWS_RESOURCES)
GCP_RESOURCE_ORDER: List[str] = list(GCP_RESOURCES)


def get_all_registered_resources() -> List[Resource]:
    """Fresh instances of every AWS resource type, in nuke order."""
    return [factory() for factory in AWS_RESOURCES.values()]


def get_all_gcp_resources() -> List[Resource]:
    return [factory() for factory in GCP_RESOURCES.values()]


def list_resource_types() -> List[str]:
    return sorted(AWS_RESOURCES)


def list_gcp_resource_types() -> List[str]:
    return sorted(GCP_RESOURCES)
