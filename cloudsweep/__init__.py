"""
cloudsweep: Cloud Resource Discovery & Teardown
===============================================

Discovers and destroys the resources of a throwaway AWS account or GCP
project across regions and resource types, with filtering, confirmation
and partial-failure tolerance.

Modules
-------
core
    Framework: resource contract, filters, deletion strategies,
    orchestrator, AWS client and region management
resources
    Resource type plug-ins (EC2, VPC networking, S3, SQS, GCS, ...)
reporting
    Event collector and renderers (terminal, JSON, CSV)

Example
-------
>>> from cloudsweep.core import Query, RegionManager
>>> from cloudsweep.core.orchestrator import Orchestrator
>>> from cloudsweep.reporting import CLIRenderer, Collector
>>> from cloudsweep.resources import get_all_registered_resources
>>>
>>> manager = RegionManager(profile="sandbox")
>>> query = Query(regions=["us-east-1"], resource_types=["ec2-keypairs"])
>>> orchestrator = Orchestrator(
...     Collector([CLIRenderer()]),
...     resource_factory=get_all_registered_resources,
...     scope_config=manager.config_for_scope,
... )
>>> orchestrator.inspect(query, manager.resolve_scopes(query))

Notes
-----
AWS credentials are resolved by boto3 (environment, ~/.aws/credentials,
instance role). GCP credentials are resolved by google-auth.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from cloudsweep.core.aws_client import AWSClient
from cloudsweep.core.exceptions import CloudSweepError
from cloudsweep.core.query import Query, Scope
from cloudsweep.core.region_manager import RegionManager

__all__ = [
    "__version__",
    "__license__",
    "AWSClient",
    "CloudSweepError",
    "Query",
    "Scope",
    "RegionManager",
]
