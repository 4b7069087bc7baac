"""Tolerant timestamp parsing for AI-produced event data."""

import logging
import re
from datetime import datetime

from dateutil import tz

from trip_itinerary.errors import InvalidTimestamp

logger = logging.getLogger(__name__)

_DATE = r"\d{4}-\d{2}-\d{2}"
_TIME = r"\d{2}:\d{2}:\d{2}"

# (pattern, strptime format, zone to attach when the string carries none)
_FORMATS = [
    # 1. ISO with numeric offset (e.g. 2026-01-20T14:30:00+09:00) - preferred
    (re.compile(rf"^{_DATE}T{_TIME}[+-]\d{{2}}:\d{{2}}$"), "%Y-%m-%dT%H:%M:%S%z", None),
    # 2. ISO with 'Z' (e.g. 2026-01-20T05:30:00Z), basic +0900 offsets too
    (re.compile(rf"^{_DATE}T{_TIME}(?:Z|[+-]\d{{4}})$"), "%Y-%m-%dT%H:%M:%S%z", None),
    # 3. ISO with fractional seconds
    (re.compile(rf"^{_DATE}T{_TIME}\.\d{{1,6}}(?:Z|[+-]\d{{2}}:?\d{{2}})$"), "%Y-%m-%dT%H:%M:%S.%f%z", None),
    # 4. Local time, no offset -> treated as UTC
    (re.compile(rf"^{_DATE}T{_TIME}$"), "%Y-%m-%dT%H:%M:%S", tz.UTC),
    # 5. Bare date -> midnight UTC
    (re.compile(rf"^{_DATE}$"), "%Y-%m-%d", tz.UTC),
]


def normalize_timestamp(raw) -> datetime:
    """Parse a timestamp string into a timezone-aware datetime.

    Formats are tried in order of preference; strings without an offset
    are read as UTC, which is only an approximation of the traveler's local
    time. Raises InvalidTimestamp when nothing matches.
    """
    if not isinstance(raw, str):
        logger.warning("Date parsing failed for non-string value: %r", raw)
        raise InvalidTimestamp(raw)

    s = raw.strip()
    for pattern, fmt, default_zone in _FORMATS:
        if not pattern.match(s):
            continue
        try:
            dt = datetime.strptime(s, fmt)
        except ValueError:
            # Right shape, impossible value (e.g. month 13)
            continue
        if default_zone is not None:
            dt = dt.replace(tzinfo=default_zone)
        return dt

    logger.warning("Date parsing failed for: %r", raw)
    raise InvalidTimestamp(raw)


def parse_optional_timestamp(raw):
    """Like normalize_timestamp, but None/empty passes through as None."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    return normalize_timestamp(raw)


def format_timestamp(dt: datetime) -> str:
    """Encode an instant as ISO 8601 with a numeric offset."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz.UTC)
    return dt.isoformat()
