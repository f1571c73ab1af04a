"""
Helpers shared by the AWS resource plug-ins.

Covers client initialisation, tag normalisation, waiter configuration, the
exclusion tag that protects resources from every run and the first-seen
tag used to age resources that report no creation time.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Set

from cloudsweep.core.context import RunContext
from cloudsweep.core.resource import InitClient, Resource
from cloudsweep.core.timeutil import format_timestamp, parse_timestamp, utcnow

logger = logging.getLogger(__name__)

FIRST_SEEN_TAG_KEY = "cloud-nuke-first-seen"
# Resources tagged with this key and a value of "true" are never listed
EXCLUSION_TAG_KEY = "cloud-nuke-excluded"

DEFAULT_WAITER_DELAY = 15
DEFAULT_WAITER_MAX_ATTEMPTS = 40


def aws_init(service: str) -> InitClient:
    """Build an ``init_client`` that pulls ``service`` from the scope's AWSClient."""

    def init_client(resource: Resource, cfg: Any) -> None:
        resource.client = cfg.get_client(service)

    return init_client


def tags_to_dict(tags: Optional[Iterable[Dict[str, str]]]) -> Dict[str, str]:
    """Convert ``[{"Key": k, "Value": v}]`` into ``{k: v}``."""
    return {t["Key"]: t.get("Value", "") for t in tags or () if "Key" in t}


def is_excluded(tags: Optional[Dict[str, str]]) -> bool:
    """True when the exclusion tag is set to ``true``, compared case-insensitively."""
    for key, value in (tags or {}).items():
        if key.lower() == EXCLUSION_TAG_KEY and str(value).strip().lower() == "true":
            return True
    return False


def waiter_config(
    ctx: RunContext,
    delay: int = DEFAULT_WAITER_DELAY,
    max_attempts: int = DEFAULT_WAITER_MAX_ATTEMPTS,
) -> Dict[str, int]:
    """Waiter settings that stay within the context deadline."""
    remaining = ctx.remaining()
    if remaining is not None:
        max_attempts = max(1, min(max_attempts, int(remaining // delay)))
    return {"Delay": delay, "MaxAttempts": max_attempts}


def default_vpc_ids(ec2: Any) -> Set[str]:
    response = ec2.describe_vpcs(Filters=[{"Name": "isDefault", "Values": ["true"]}])
    return {vpc["VpcId"] for vpc in response.get("Vpcs", [])}


def in_scope_vpc(ctx: RunContext, vpc_id: Optional[str], defaults: Set[str]) -> bool:
    """Default-only runs keep default-VPC members, regular runs keep the rest."""
    return (vpc_id in defaults) == ctx.default_only


def get_or_create_first_seen(
    ctx: RunContext,
    ec2: Any,
    resource_id: str,
    tags: Dict[str, str],
) -> Optional[datetime]:
    """
    Return when cloudsweep first saw a resource.

    Reads the first-seen tag, or tags the resource with the current time
    when the tag is missing. Returns ``None`` when first-seen tracking is
    disabled for the run.
    """
    if ctx.exclude_first_seen:
        return None
    value = tags.get(FIRST_SEEN_TAG_KEY)
    if value:
        try:
            return parse_timestamp(value)
        except ValueError:
            logger.warning("Ignoring unparsable %s tag on %s: %r", FIRST_SEEN_TAG_KEY, resource_id, value)
    now = utcnow()
    ec2.create_tags(
        Resources=[resource_id],
        Tags=[{"Key": FIRST_SEEN_TAG_KEY, "Value": format_timestamp(now)}],
    )
    return now
