"""Date helpers for feed timestamps."""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

import pendulum


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, the storage convention."""
    return pendulum.now("UTC").naive()


def parse_pub_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a feed date string.

    RFC 2822 is tried first, then ISO 8601 (Atom). Offsets are kept; a
    ``-0000`` zone yields a naive datetime. Unparseable input gives None.
    """
    if not value:
        return None
    value = value.strip()
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        pass
    try:
        parsed = pendulum.parse(value)
    except (ValueError, TypeError):
        return None
    return parsed if isinstance(parsed, datetime) else None


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are returned as-is."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_ttl(value: Optional[str]) -> Optional[int]:
    """Parse a TTL in minutes, or None."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None
