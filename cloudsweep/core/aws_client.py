"""
AWS Client Module
=================

Thin wrapper around a boto3 session for one region: lazy session
creation, cached service clients with adaptive retries, and credential
helpers. The orchestrator hands one of these to every AWS resource
plug-in as its scope configuration.

Example
-------
>>> from cloudsweep.core.aws_client import AWSClient
>>>
>>> client = AWSClient(region="us-east-1", profile="sandbox")
>>> client.validate_credentials()
True
>>> ec2 = client.get_client("ec2")
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    NoCredentialsError,
    NoRegionError,
    ProfileNotFound,
)

from cloudsweep.core.exceptions import (
    AWSClientError,
    CredentialsError,
    RegionError,
    ServiceError,
)

logger = logging.getLogger(__name__)

# Region used for account-wide calls (STS, region listing, global services)
DEFAULT_REGION = "us-east-1"


class AWSClient:
    """
    AWS session wrapper with retry configuration and client caching.

    Parameters
    ----------
    region : str, default="us-east-1"
        AWS region to connect to.
    profile : str, optional
        AWS profile name from ~/.aws/credentials.
    max_retries : int, default=3
        Maximum number of attempts for failed API calls.
    timeout : int, default=30
        Connect and read timeout in seconds.

    Raises
    ------
    CredentialsError
        If the profile or credentials cannot be found.
    RegionError
        If no region could be resolved.
    ServiceError
        If a service client cannot be created.
    """

    # Services the shipped resource plug-ins talk to
    SUPPORTED_SERVICES = {
        "ec2": "Amazon EC2",
        "s3": "Amazon S3",
        "sqs": "Amazon SQS",
        "cloudwatch": "Amazon CloudWatch",
        "sts": "AWS Security Token Service",
    }

    def __init__(
        self,
        region: str = DEFAULT_REGION,
        profile: Optional[str] = None,
        max_retries: int = 3,
        timeout: int = 30,
    ) -> None:
        self.region = region
        self.profile = profile
        self.max_retries = max_retries
        self.timeout = timeout

        self._session: Optional[boto3.Session] = None
        self._clients: Dict[str, Any] = {}
        # Discovery threads share one AWSClient per scope
        self._lock = threading.Lock()
        self._config = Config(
            retries={"max_attempts": self.max_retries, "mode": "adaptive"},
            connect_timeout=self.timeout,
            read_timeout=self.timeout,
        )

        logger.debug("Initialized AWSClient region=%s profile=%s", region, profile)

    @property
    def session(self) -> boto3.Session:
        """Get or create the boto3 session."""
        if self._session is None:
            self._session = self._create_session()
        return self._session

    def _create_session(self) -> boto3.Session:
        try:
            session_kwargs = {"region_name": self.region}
            if self.profile:
                session_kwargs["profile_name"] = self.profile
            session = boto3.Session(**session_kwargs)
            logger.debug("Created boto3 session for region %s", self.region)
            return session

        except ProfileNotFound as e:
            raise CredentialsError(
                f"AWS profile '{self.profile}' not found",
                details={
                    "profile": self.profile,
                    "hint": "Check ~/.aws/credentials for available profiles",
                },
            ) from e
        except NoRegionError as e:
            raise RegionError(
                f"Invalid or missing region: {self.region}",
                region=self.region,
            ) from e

    def get_client(self, service_name: str) -> Any:
        """
        Get or create a boto3 client for ``service_name``.

        Parameters
        ----------
        service_name : str
            Name of the AWS service (e.g. 'ec2', 's3').

        Returns
        -------
        botocore.client.BaseClient
            The cached client for this region.

        Raises
        ------
        ServiceError
            If the service is unsupported or the client cannot be built.
        CredentialsError
            If credentials are not found.
        """
        if service_name not in self.SUPPORTED_SERVICES:
            raise ServiceError(
                f"Unsupported service: {service_name}",
                service=service_name,
                region=self.region,
            )

        with self._lock:
            if service_name in self._clients:
                return self._clients[service_name]
            try:
                client = self.session.client(service_name, config=self._config)
            except NoCredentialsError as e:
                raise CredentialsError(
                    "AWS credentials not found",
                    details={
                        "hint": (
                            "Configure credentials using 'aws configure' or set "
                            "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY"
                        ),
                    },
                ) from e
            except (ValueError, ClientError) as e:
                raise ServiceError(
                    f"Failed to create {service_name} client: {e}",
                    service=service_name,
                    region=self.region,
                ) from e
            self._clients[service_name] = client
            logger.debug("Created %s client for %s", service_name, self.region)
            return client

    # =========================================================================
    # Credential and Account Operations
    # =========================================================================

    def validate_credentials(self) -> bool:
        """
        Validate credentials by calling STS GetCallerIdentity.

        Raises
        ------
        CredentialsError
            If credentials are invalid, expired, or missing.
        """
        try:
            identity = self.get_client("sts").get_caller_identity()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            raise CredentialsError(
                "Invalid AWS credentials",
                details={"error_code": code},
            ) from e
        except NoCredentialsError as e:
            raise CredentialsError("AWS credentials not found") from e
        logger.info("Credentials validated for account %s", identity["Account"])
        return True

    def get_account_id(self) -> str:
        """Return the 12-digit account ID for the current credentials."""
        try:
            return self.get_client("sts").get_caller_identity()["Account"]
        except ClientError as e:
            raise AWSClientError(f"Failed to get account ID: {e}") from e

    def with_region(self, region: str) -> AWSClient:
        """Create a client for another region with the same settings."""
        return AWSClient(
            region=region,
            profile=self.profile,
            max_retries=self.max_retries,
            timeout=self.timeout,
        )

    def __enter__(self) -> AWSClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._clients.clear()
        self._session = None

    def __repr__(self) -> str:
        return (
            f"AWSClient(region='{self.region}', "
            f"profile={self.profile!r}, "
            f"max_retries={self.max_retries})"
        )
