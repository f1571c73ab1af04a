"""
Core Components
===============

- :class:`Resource` - the contract every resource type plugs into
- :mod:`~cloudsweep.core.strategies` - batch deletion strategies
- :class:`Config` / :class:`ResourceTypeConfig` - filter engine
- :class:`Query` / :class:`Scope` - what a run targets
- :class:`RunContext` - deadline, cancellation and run flags
- :class:`AWSClient` / :class:`RegionManager` - AWS connectivity
- Exception hierarchy for error handling

The orchestrator lives in :mod:`cloudsweep.core.orchestrator` and is not
re-exported here, since it depends on :mod:`cloudsweep.reporting`.

Example
-------
>>> from cloudsweep.core import AWSClient, RegionManager
>>>
>>> client = AWSClient(region="us-east-1", profile="sandbox")
>>> manager = RegionManager(profile="sandbox")
>>> regions = manager.get_all_regions()
"""

from cloudsweep.core.aws_client import AWSClient
from cloudsweep.core.context import RunContext
from cloudsweep.core.exceptions import (
    AWSClientError,
    BatchDeleteError,
    BatchSizeLimitError,
    CleanerError,
    CloudSweepError,
    ConfigurationError,
    CredentialsError,
    DeleteError,
    DependencyError,
    InsufficientPermissionError,
    OperationTimeoutError,
    RegionError,
    ResourceFetchError,
    ResourceInspectionError,
    ScannerError,
    ScanTimeoutError,
    ServiceError,
    StepError,
    transform_error,
)
from cloudsweep.core.filters import (
    Config,
    FilterRule,
    ResourceTypeConfig,
    ResourceValue,
    TimeWindow,
    load_config_file,
)
from cloudsweep.core.query import Query, Scope
from cloudsweep.core.region_manager import RegionManager
from cloudsweep.core.resource import BatchResult, NukeResult, Resource

__all__ = [
    # Clients
    "AWSClient",
    "RegionManager",
    # Framework
    "Resource",
    "NukeResult",
    "BatchResult",
    "RunContext",
    "Query",
    "Scope",
    # Filters
    "Config",
    "FilterRule",
    "ResourceTypeConfig",
    "ResourceValue",
    "TimeWindow",
    "load_config_file",
    # Exceptions - Base
    "CloudSweepError",
    "transform_error",
    # Exceptions - AWS Client
    "AWSClientError",
    "CredentialsError",
    "RegionError",
    "ServiceError",
    "ConfigurationError",
    # Exceptions - Scanner
    "ScannerError",
    "ResourceFetchError",
    "ResourceInspectionError",
    "ScanTimeoutError",
    # Exceptions - Cleaner
    "CleanerError",
    "DeleteError",
    "DependencyError",
    "StepError",
    "BatchDeleteError",
    "BatchSizeLimitError",
    "InsufficientPermissionError",
    "OperationTimeoutError",
]
