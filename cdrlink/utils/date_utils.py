"""Timestamp normalization utilities for cdrlink.

CDR exports carry timestamps in many shapes. Route raw values through
parse_timestamp() before building records; anything unparseable becomes None
and is excluded from time-dependent analysis.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as dateutil_parser

from config.defaults import AFTERNOON_HOURS, EVENING_HOURS, MORNING_HOURS

# YYYYMMDDHHMMSS (e.g., 20240115103000)
_COMPACT_PATTERN = re.compile(r"^\d{14}$")

# DD-MM-YYYY or DD/MM/YYYY with optional time part
_DAY_FIRST_PATTERN = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})")


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """Parse a raw CDR timestamp into a datetime.

    Handles datetime passthrough, epoch seconds, the compact YYYYMMDDHHMMSS
    form and free-form strings. Slash- or dash-separated dates whose first
    component exceeds 12 are read day-first.

    Args:
        raw: Raw timestamp value (str, datetime, int/float epoch seconds or None).

    Returns:
        Parsed datetime, or None if the value is missing or unparseable.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            return datetime.fromtimestamp(raw, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(raw).strip()
    if not text:
        return None

    if _COMPACT_PATTERN.match(text):
        try:
            return datetime.strptime(text, "%Y%m%d%H%M%S")
        except ValueError:
            return None

    dayfirst = False
    match = _DAY_FIRST_PATTERN.match(text)
    if match and int(match.group(1)) > 12 and int(match.group(2)) <= 12:
        dayfirst = True

    try:
        return dateutil_parser.parse(text, dayfirst=dayfirst)
    except (ValueError, OverflowError, TypeError):
        return None


def to_epoch_seconds(dt: datetime) -> float:
    """Convert a datetime to POSIX seconds, treating naive values as UTC.

    Args:
        dt: Naive or timezone-aware datetime.

    Returns:
        Seconds since the epoch.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def from_epoch_seconds(seconds: float, like: datetime) -> datetime:
    """Inverse of to_epoch_seconds, matching the naive/aware style of ``like``.

    Args:
        seconds: POSIX seconds.
        like: Reference datetime whose tzinfo (or lack of it) is reproduced.

    Returns:
        Datetime for ``seconds``.
    """
    if like.tzinfo is None:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)
    return datetime.fromtimestamp(seconds, tz=like.tzinfo)


def time_slot_for_hour(hour: int) -> str:
    """Map an hour of day (0-23) to morning, afternoon, evening or night."""
    if MORNING_HOURS[0] <= hour < MORNING_HOURS[1]:
        return "morning"
    if AFTERNOON_HOURS[0] <= hour < AFTERNOON_HOURS[1]:
        return "afternoon"
    if EVENING_HOURS[0] <= hour < EVENING_HOURS[1]:
        return "evening"
    return "night"
