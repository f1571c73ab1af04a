"""
Time helpers: duration parsing and timestamp formatting.

Durations use the compact form familiar from CLI tools (``30s``, ``5m``,
``1h30m``, ``7d``, ``2w``). The zero duration and the empty string mean
"unset".
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from cloudsweep.core.exceptions import ConfigurationError

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}
_COMPONENT = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h|d|w)")

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
LEGACY_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_duration(value: Optional[str]) -> Optional[timedelta]:
    """
    Parse a compact duration string.

    Parameters
    ----------
    value : str or None
        Duration such as ``"90s"``, ``"1h30m"`` or ``"7d"``.

    Returns
    -------
    timedelta or None
        ``None`` for an empty or zero duration.

    Raises
    ------
    ConfigurationError
        If the string is not a valid duration.

    Examples
    --------
    >>> parse_duration("1h30m")
    datetime.timedelta(seconds=5400)
    >>> parse_duration("0s") is None
    True
    """
    if value is None:
        return None
    text = value.strip()
    if not text or text == "0":
        return None

    total = 0.0
    position = 0
    for match in _COMPONENT.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()
    if position != len(text):
        raise ConfigurationError(f"invalid duration {value!r}")

    if total == 0:
        return None
    return timedelta(seconds=total)


def duration_to_cutoff(value: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Convert a duration into the absolute instant ``now - duration`` (UTC)."""
    delta = parse_duration(value)
    if delta is None:
        return None
    return (now or utcnow()) - delta


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return ensure_utc(value).strftime(RFC3339_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC3339 timestamp, falling back to ``YYYY-MM-DD HH:MM:SS``.

    Raises
    ------
    ValueError
        If neither format matches.
    """
    text = value.strip()
    try:
        return ensure_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        return ensure_utc(datetime.strptime(text, LEGACY_FORMAT))
