"""
Resource plug-ins.

Each module builds :class:`~cloudsweep.core.resource.Resource` descriptors
for one family of cloud resources; :mod:`cloudsweep.resources.registry`
collects them.
"""

from cloudsweep.resources.registry import (
    GCP_RESOURCE_ORDER,
    RESOURCE_ORDER,
    get_all_gcp_resources,
    get_all_registered_resources,
    list_gcp_resource_types,
    list_resource_types,
)

__all__ = [
    "RESOURCE_ORDER",
    "GCP_RESOURCE_ORDER",
    "get_all_registered_resources",
    "get_all_gcp_resources",
    "list_resource_types",
    "list_gcp_resource_types",
]
