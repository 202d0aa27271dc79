"""
Timestamp helpers shared by request parsing and reporting.

All datetimes handed out by this module are timezone-aware and in UTC.
MongoDB hands back naive datetimes that are implicitly UTC, and clients send
anything from ``2024-03-01`` to full ISO-8601 strings, so both are accepted.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Optional

from dateutil import parser

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """
    Convert a stored or submitted timestamp into an aware UTC datetime.

    Raises:
        ValueError: if the value cannot be interpreted as a timestamp.
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # epoch milliseconds, as JavaScript clients send them
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"Timestamp out of range: {value!r}") from exc
    if isinstance(value, str) and value.strip():
        try:
            return to_utc(parser.isoparse(value.strip()))
        except (ValueError, OverflowError):
            pass
        try:
            return to_utc(parser.parse(value.strip()))
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"Unparseable timestamp: {value!r}") from exc
    raise ValueError(f"Unparseable timestamp: {value!r}")


def parse_optional_timestamp(value: Any) -> Optional[datetime]:
    """Like parse_timestamp, but empty values come back as None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_timestamp(value)
