"""
Region Manager Module
=====================

Resolves which AWS regions a run targets and hands out one
:class:`AWSClient` per scope.

The pseudo-region ``global`` stands for account-wide resources (S3
buckets). It has no endpoint of its own, so its clients are built for
:data:`~cloudsweep.core.aws_client.DEFAULT_REGION`.

Example
-------
>>> manager = RegionManager(profile="sandbox")
>>> scopes = manager.resolve_scopes(Query(regions=["us-east-1", "global"]))
>>> [str(s) for s in scopes]
['us-east-1', 'global']
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from botocore.exceptions import ClientError

from cloudsweep.core.aws_client import DEFAULT_REGION, AWSClient
from cloudsweep.core.exceptions import AWSClientError, RegionError
from cloudsweep.core.query import GLOBAL_REGION, Query, Scope

logger = logging.getLogger(__name__)


class RegionManager:
    """
    Region discovery and per-scope clients.

    Parameters
    ----------
    profile : str, optional
        AWS profile name from ~/.aws/credentials.
    max_retries : int, default=3
        Maximum attempts for failed API calls.
    timeout : int, default=30
        Request timeout in seconds.
    """

    def __init__(
        self,
        profile: Optional[str] = None,
        max_retries: int = 3,
        timeout: int = 30,
    ) -> None:
        self.profile = profile
        self.max_retries = max_retries
        self.timeout = timeout

        self._base_client = AWSClient(
            region=DEFAULT_REGION,
            profile=profile,
            max_retries=max_retries,
            timeout=timeout,
        )
        self._clients: Dict[str, AWSClient] = {}
        self._lock = threading.Lock()
        self._regions: Optional[List[str]] = None

    @property
    def base_client(self) -> AWSClient:
        return self._base_client

    def get_all_regions(self) -> List[str]:
        """
        Fetch the regions enabled for the account, sorted.

        Raises
        ------
        AWSClientError
            If the region list cannot be fetched.
        """
        if self._regions is not None:
            return list(self._regions)
        try:
            ec2 = self._base_client.get_client("ec2")
            response = ec2.describe_regions(AllRegions=False)
        except ClientError as e:
            raise AWSClientError(f"Failed to fetch AWS regions: {e}") from e
        self._regions = sorted(r["RegionName"] for r in response["Regions"])
        logger.info("Discovered %d enabled AWS regions", len(self._regions))
        return list(self._regions)

    def get_client_for_region(self, region: str) -> AWSClient:
        """Return the cached client for ``region`` (``global`` maps to the default region)."""
        with self._lock:
            client = self._clients.get(region)
            if client is None:
                endpoint_region = DEFAULT_REGION if region == GLOBAL_REGION else region
                client = self._base_client.with_region(endpoint_region)
                self._clients[region] = client
            return client

    def config_for_scope(self, scope: Scope) -> AWSClient:
        return self.get_client_for_region(scope.region)

    def resolve_regions(self, query: Query, include_global: bool = True) -> List[str]:
        """
        Regions the query targets, in enabled-region order, ``global`` last.

        Raises
        ------
        RegionError
            If the query leaves no region to target.
        """
        available = self.get_all_regions()
        if include_global:
            available = available + [GLOBAL_REGION]
        query.validate(known_regions=available)
        regions = query.target_regions(available)
        if not regions:
            raise RegionError("No regions left to target after applying filters")
        return regions

    def resolve_scopes(self, query: Query, include_global: bool = True) -> List[Scope]:
        return [Scope(region=r) for r in self.resolve_regions(query, include_global)]

    def __repr__(self) -> str:
        return f"RegionManager(profile={self.profile!r})"
