"""
Filter Engine
=============

Per-resource-type filtering rules and the decision procedure that turns a
discovered resource into "eligible" or "skip".

A :class:`ResourceTypeConfig` holds an include rule, an exclude rule, an
optional timeout and the run's :class:`TimeWindow`. Evaluation order:

1. an include rule that is present but matches nothing excludes;
2. any matching exclude condition excludes (exclusion wins);
3. with no include rule, everything left is included;
4. tag patterns only match when the tag key is present.

The time window is applied independently and a resource must pass both.

Example
-------
>>> config = Config.from_dict({
...     "ec2-keypairs": {
...         "include": {"names_regex": ["^ci-"]},
...         "exclude": {"tags": {"keep": "true"}},
...     }
... })
>>> rtc = config.get("ec2-keypairs")
>>> rtc.should_include(ResourceValue(name="ci-runner", tags={"keep": "true"}))
False
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Pattern, Union

import yaml

from cloudsweep.core.exceptions import ConfigurationError
from cloudsweep.core.timeutil import ensure_utc, parse_duration

logger = logging.getLogger(__name__)


def _compile(pattern: str, where: str) -> Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(
            f"invalid regular expression {pattern!r} in {where}",
            details={"error": str(e)},
        ) from e


@dataclass
class FilterRule:
    """
    Name patterns and tag patterns.

    Attributes
    ----------
    names_regex : list of Pattern
        A name matches when any pattern is found in it.
    tags : dict of str to Pattern
        Tag key to value pattern. A tag matches only if the key is present
        on the resource and its value matches.
    """

    names_regex: List[Pattern] = field(default_factory=list)
    tags: Dict[str, Pattern] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]], where: str = "filter") -> FilterRule:
        if not data:
            return cls()
        names = data.get("names_regex") or []
        if isinstance(names, str):
            names = [names]
        tags = data.get("tags") or {}
        return cls(
            names_regex=[_compile(str(p), where) for p in names],
            tags={str(k): _compile(str(v), where) for k, v in tags.items()},
        )

    def is_empty(self) -> bool:
        return not self.names_regex and not self.tags

    def matches_name(self, name: Optional[str]) -> bool:
        if name is None:
            return False
        return any(p.search(name) for p in self.names_regex)

    def matches_tags(self, tags: Optional[Mapping[str, str]]) -> bool:
        if not tags:
            return False
        for key, pattern in self.tags.items():
            if key in tags and pattern.search(tags[key] or ""):
                return True
        return False

    def matches(self, value: ResourceValue) -> bool:
        return self.matches_name(value.name) or self.matches_tags(value.tags)


@dataclass
class TimeWindow:
    """
    Creation-time bounds applied to every resource type.

    Parameters
    ----------
    exclude_after : datetime, optional
        Only resources created at or before this instant are eligible.
    include_after : datetime, optional
        Only resources created at or after this instant are eligible.
    inclusive : bool, default=True
        Whether the bounds themselves are inside the window.
    """

    exclude_after: Optional[datetime] = None
    include_after: Optional[datetime] = None
    inclusive: bool = True

    def __post_init__(self) -> None:
        if self.exclude_after is not None:
            self.exclude_after = ensure_utc(self.exclude_after)
        if self.include_after is not None:
            self.include_after = ensure_utc(self.include_after)

    def is_empty_window(self) -> bool:
        if self.exclude_after is None or self.include_after is None:
            return False
        if self.inclusive:
            return self.include_after > self.exclude_after
        return self.include_after >= self.exclude_after

    def contains(self, created: Optional[datetime]) -> bool:
        """Resources with no known creation time are always inside."""
        if created is None:
            return True
        created = ensure_utc(created)
        if self.exclude_after is not None:
            if created > self.exclude_after:
                return False
            if not self.inclusive and created == self.exclude_after:
                return False
        if self.include_after is not None:
            if created < self.include_after:
                return False
            if not self.inclusive and created == self.include_after:
                return False
        return True


@dataclass
class ResourceValue:
    """What a lister knows about one resource when deciding to keep it."""

    name: Optional[str] = None
    time: Optional[datetime] = None
    tags: Optional[Dict[str, str]] = None


@dataclass
class ResourceTypeConfig:
    """
    Filter configuration for one resource type.

    Attributes
    ----------
    include, exclude : FilterRule
        Include and exclude rules.
    timeout : str
        Per-type deadline as a duration string, empty for none.
    time_window : TimeWindow
        The run's creation-time bounds.
    """

    include: FilterRule = field(default_factory=FilterRule)
    exclude: FilterRule = field(default_factory=FilterRule)
    timeout: str = ""
    time_window: TimeWindow = field(default_factory=TimeWindow)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]], resource_type: str = "") -> ResourceTypeConfig:
        data = data or {}
        where = f"{resource_type or 'resource'} config"
        timeout = str(data.get("timeout") or "")
        parse_duration(timeout)
        return cls(
            include=FilterRule.from_dict(data.get("include"), where),
            exclude=FilterRule.from_dict(data.get("exclude"), where),
            timeout=timeout,
        )

    @property
    def timeout_seconds(self) -> Optional[float]:
        delta = parse_duration(self.timeout)
        return delta.total_seconds() if delta else None

    def should_include(self, value: ResourceValue) -> bool:
        if not self.include.is_empty() and not self.include.matches(value):
            return False
        if not self.exclude.is_empty() and self.exclude.matches(value):
            return False
        return self.time_window.contains(value.time)


@dataclass
class Config:
    """
    Filter configuration for all resource types, keyed by type name.

    Types missing from the mapping get an empty configuration carrying the
    run's time window and default timeout.
    """

    resource_types: Dict[str, ResourceTypeConfig] = field(default_factory=dict)
    time_window: TimeWindow = field(default_factory=TimeWindow)
    default_timeout: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Config:
        """
        Build a Config from an already-loaded mapping.

        Raises
        ------
        ConfigurationError
            If the mapping is malformed or holds an invalid regex or
            timeout.
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigurationError("filter configuration must be a mapping")
        resource_types = {}
        for name, value in data.items():
            if value is not None and not isinstance(value, Mapping):
                raise ConfigurationError(f"configuration for {name!r} must be a mapping")
            resource_types[str(name)] = ResourceTypeConfig.from_dict(value, str(name))
        return cls(resource_types=resource_types)

    def get(self, resource_type: str) -> ResourceTypeConfig:
        rtc = self.resource_types.get(resource_type)
        if rtc is None:
            rtc = ResourceTypeConfig(timeout=self.default_timeout)
        else:
            rtc = replace(rtc, timeout=rtc.timeout or self.default_timeout)
        return replace(rtc, time_window=self.time_window)

    def apply_time_window(self, window: TimeWindow) -> None:
        self.time_window = window

    def apply_timeout(self, timeout: str) -> None:
        """Set the timeout used by types without their own."""
        parse_duration(timeout)
        self.default_timeout = timeout


def load_config_file(path: Union[str, Path]) -> Config:
    """
    Load filter configuration from a YAML file.

    Raises
    ------
    ConfigurationError
        If the file cannot be read or parsed.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in {path}: {e}") from e
    logger.debug("Loaded filter configuration from %s", path)
    return Config.from_dict(data or {})
