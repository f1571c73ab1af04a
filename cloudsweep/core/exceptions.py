"""
Custom Exceptions for cloudsweep
================================

This module defines the exception hierarchy used across discovery,
deletion and reporting, plus :func:`transform_error`, which maps raw
provider errors onto that hierarchy.

Exception Hierarchy
-------------------
::

    CloudSweepError (base)
    ├── AWSClientError
    │   ├── CredentialsError
    │   ├── RegionError
    │   └── ServiceError
    ├── ConfigurationError
    ├── ScannerError
    │   ├── ResourceFetchError
    │   ├── ResourceInspectionError
    │   └── ScanTimeoutError
    ├── CleanerError
    │   ├── DeleteError
    │   ├── DependencyError
    │   ├── StepError
    │   ├── BatchDeleteError
    │   └── BatchSizeLimitError
    ├── InsufficientPermissionError
    └── OperationTimeoutError

Deletion failures travel as data (attached to a ``NukeResult``); only
configuration and discovery errors are raised out of a run.

Example
-------
>>> from cloudsweep.core.exceptions import ResourceFetchError
>>>
>>> try:
...     resource.get_and_set_identifiers(ctx, config)
... except ResourceFetchError as e:
...     print(f"Listing failed: {e}")
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from botocore.exceptions import ClientError
from google.api_core import exceptions as google_exceptions


class CloudSweepError(Exception):
    """
    Base exception for all cloudsweep errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    details : dict, optional
        Additional context about the error.

    Attributes
    ----------
    message : str
        The error message.
    details : dict
        Additional error details.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for serialization.

        Returns
        -------
        dict
            Dictionary representation of the error.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# AWS Client Exceptions
# =============================================================================


class AWSClientError(CloudSweepError):
    """
    Base exception for AWS client-related errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    service : str, optional
        The AWS service that caused the error.
    region : str, optional
        The AWS region where the error occurred.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        region: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.service = service
        self.region = region
        full_details = details or {}
        if service:
            full_details["service"] = service
        if region:
            full_details["region"] = region
        super().__init__(message, full_details)


class CredentialsError(AWSClientError):
    """Raised when AWS credentials are invalid, missing, or expired."""


class RegionError(AWSClientError):
    """Raised when a region is unknown or cannot be resolved."""


class ServiceError(AWSClientError):
    """Raised when a service client cannot be created or called."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(CloudSweepError):
    """
    Raised for invalid queries or filter configuration.

    Examples are an empty time window, an unknown resource type or
    region, a malformed regular expression, or an unparsable timeout.
    """


# =============================================================================
# Scanner Exceptions
# =============================================================================


class ScannerError(CloudSweepError):
    """
    Base exception for discovery errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    resource_type : str, optional
        The type of resource being listed.
    region : str, optional
        The scope (region or project) being listed.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        region: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.resource_type = resource_type
        self.region = region
        full_details = details or {}
        if resource_type:
            full_details["resource_type"] = resource_type
        if region:
            full_details["region"] = region
        super().__init__(message, full_details)


class ResourceFetchError(ScannerError):
    """
    Raised when a lister fails to enumerate a resource type.

    The original exception is chained as ``__cause__``.

    Example
    -------
    >>> raise ResourceFetchError(
    ...     "Failed to list ec2-keypairs",
    ...     resource_type="ec2-keypairs",
    ...     region="us-east-1"
    ... )
    """


class ResourceInspectionError(ScannerError):
    """Raised when a non-ignorable discovery error aborts the scan."""


class ScanTimeoutError(ScannerError):
    """Raised when listing a resource type exceeds its deadline."""


# =============================================================================
# Cleaner Exceptions
# =============================================================================


class CleanerError(CloudSweepError):
    """
    Base exception for deletion errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    resource_id : str, optional
        The identifier of the resource being deleted.
    resource_type : str, optional
        The type of resource being deleted.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        resource_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.resource_id = resource_id
        self.resource_type = resource_type
        full_details = details or {}
        if resource_id:
            full_details["resource_id"] = resource_id
        if resource_type:
            full_details["resource_type"] = resource_type
        super().__init__(message, full_details)


class DeleteError(CleanerError):
    """Raised when unable to delete a resource."""


class DependencyError(CleanerError):
    """Raised when a resource cannot be deleted due to dependencies."""


class StepError(CleanerError):
    """
    Raised when one step of a multi-step deletion fails.

    Parameters
    ----------
    step : int
        1-based ordinal of the failing step.
    cause : Exception
        The error raised by the step.
    resource_id : str, optional
        The identifier being deleted.
    resource_type : str, optional
        The type of resource being deleted.

    Example
    -------
    >>> str(StepError(2, RuntimeError("boom"), resource_id="igw-1",
    ...               resource_type="internet-gateway"))
    'internet-gateway igw-1 step 2: boom'
    """

    def __init__(
        self,
        step: int,
        cause: BaseException,
        resource_id: Optional[str] = None,
        resource_type: Optional[str] = None,
    ) -> None:
        self.step = step
        self.cause = cause
        message = f"{resource_type} {resource_id} step {step}: {cause}"
        super().__init__(message, resource_id=resource_id, resource_type=resource_type)
        self.__cause__ = cause

    def __str__(self) -> str:
        return self.message


class BatchDeleteError(CleanerError):
    """
    Aggregate of the per-identifier errors of one batch.

    Parameters
    ----------
    errors : list of (str, Exception)
        Failed identifiers paired with their errors, in input order.
    resource_type : str, optional
        The type of resource being deleted.
    """

    def __init__(
        self,
        errors: List[Tuple[str, BaseException]],
        resource_type: Optional[str] = None,
    ) -> None:
        self.errors = list(errors)
        message = f"{len(self.errors)} deletion(s) failed: " + "; ".join(
            f"{identifier}: {error}" for identifier, error in self.errors
        )
        super().__init__(message, resource_type=resource_type)

    def __str__(self) -> str:
        return self.message

    @property
    def failed_identifiers(self) -> List[str]:
        return [identifier for identifier, _ in self.errors]


class BatchSizeLimitError(CleanerError):
    """Raised when a batch exceeds the limit a strategy accepts."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(
            f"batch size {size} exceeds maximum allowed {limit}",
            details={"size": size, "limit": limit},
        )


# =============================================================================
# Classification Exceptions
# =============================================================================


class InsufficientPermissionError(CloudSweepError):
    """Raised when the caller lacks permission to act on a resource."""


class OperationTimeoutError(CloudSweepError):
    """Raised when an operation was not attempted or finished before its deadline."""


# Provider error codes, grouped by the class they map to
_PERMISSION_CODES = frozenset(
    {
        "UnauthorizedOperation",
        "AccessDenied",
        "AccessDeniedException",
        "AuthorizationError",
    }
)
_TIMEOUT_CODES = frozenset({"RequestCanceled", "RequestTimeout", "RequestTimeoutException"})
_NOT_FOUND_MESSAGES = {
    "InvalidPermission.NotFound": "the specified rule does not exist in this security group",
    "ResourceNotFoundException": "the resource no longer exists",
}
_RATE_LIMIT_CODES = frozenset(
    {
        "RequestLimitExceeded",
        "Throttling",
        "ThrottlingException",
        "TooManyRequestsException",
        "QUOTA_EXCEEDED",
    }
)


def error_code(exc: BaseException) -> Optional[str]:
    """Return the provider error code carried by ``exc``, if any."""
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    if isinstance(exc, google_exceptions.GoogleAPICallError):
        return getattr(exc, "reason", None) or exc.__class__.__name__
    return None


def is_rate_limit_error(exc: Optional[BaseException]) -> bool:
    """Check whether ``exc`` (or an aggregate containing it) is a throttle."""
    if exc is None:
        return False
    if isinstance(exc, BatchDeleteError):
        return any(is_rate_limit_error(error) for _, error in exc.errors)
    if isinstance(exc, StepError):
        return is_rate_limit_error(exc.cause)
    if isinstance(exc, google_exceptions.TooManyRequests):
        return True
    code = error_code(exc)
    if code in _RATE_LIMIT_CODES:
        return True
    return "QUOTA_EXCEEDED" in str(exc)


def transform_error(exc: BaseException) -> Optional[BaseException]:
    """
    Map a provider error onto the cloudsweep taxonomy.

    Parameters
    ----------
    exc : Exception
        The raw error raised by a provider call.

    Returns
    -------
    Exception or None
        The classified error, or ``None`` when the error signals success
        (a ``DryRunOperation`` response means the dry-run probe passed).
        Unrecognized errors are returned unchanged.

    Example
    -------
    >>> transform_error(ClientError(
    ...     {"Error": {"Code": "DryRunOperation", "Message": "ok"}}, "TerminateInstances"
    ... )) is None
    True
    """
    if isinstance(exc, CloudSweepError):
        return exc

    if isinstance(exc, google_exceptions.Forbidden):
        transformed: BaseException = InsufficientPermissionError(str(exc))
        transformed.__cause__ = exc
        return transformed
    if isinstance(exc, google_exceptions.DeadlineExceeded):
        transformed = OperationTimeoutError(str(exc))
        transformed.__cause__ = exc
        return transformed

    code = error_code(exc)
    if code is None:
        return exc
    if code == "DryRunOperation":
        return None
    if code in _PERMISSION_CODES:
        transformed = InsufficientPermissionError(
            "insufficient permission", details={"code": code}
        )
    elif code in _TIMEOUT_CODES:
        transformed = OperationTimeoutError(
            "execution timed out", details={"code": code}
        )
    elif code in _NOT_FOUND_MESSAGES:
        transformed = DeleteError(_NOT_FOUND_MESSAGES[code], details={"code": code})
    else:
        return exc
    transformed.__cause__ = exc
    return transformed
