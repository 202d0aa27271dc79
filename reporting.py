"""
Admin statistics over users and trips.

Everything here works on documents that were already fetched; there is no
I/O. A record with a bad timestamp never fails the whole report:

- users with a missing ``createdAt`` count as signing up *now*; users whose
  ``createdAt`` cannot be parsed are left out of the signup summaries;
- trips with a missing or unparseable ``createdAt`` are treated as created
  *now* and are always kept.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from date_utils import parse_optional_timestamp, utc_now
from schemas import DEFAULT_ROLE

logger = logging.getLogger(__name__)

RECENT_TRIPS_LIMIT = 5


def _record_id(record: Mapping[str, Any]) -> Optional[str]:
    value = record.get("id", record.get("_id"))
    return str(value) if value is not None else None


def role_distribution(users: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    return dict(Counter(user.get("role") or DEFAULT_ROLE for user in users))


def _signup_time(user: Mapping[str, Any], now: datetime) -> Optional[datetime]:
    created_at = user.get("createdAt")
    try:
        signed_up = parse_optional_timestamp(created_at)
    except ValueError:
        logger.warning("Invalid createdAt for user %s: %r", _record_id(user), created_at)
        return None
    return signed_up or now


def _bucket_signups(
    users: Iterable[Mapping[str, Any]],
    key_name: str,
    key_func: Callable[[datetime], str],
    now: Optional[datetime],
) -> List[Dict[str, Any]]:
    now = now or utc_now()
    counts: Counter = Counter()
    for user in users:
        signed_up = _signup_time(user, now)
        if signed_up is not None:
            counts[key_func(signed_up)] += 1
    return [{key_name: key, "count": counts[key]} for key in sorted(counts)]


def monthly_signups(users: Iterable[Mapping[str, Any]], now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Signup counts per ``YYYY-MM``, oldest month first."""
    return _bucket_signups(users, "month", lambda ts: f"{ts.year:04d}-{ts.month:02d}", now)


def daily_signups(users: Iterable[Mapping[str, Any]], now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Signup counts per ``YYYY-MM-DD``, oldest day first."""
    return _bucket_signups(users, "day", lambda ts: ts.date().isoformat(), now)


def _trip_time(trip: Mapping[str, Any], now: datetime) -> datetime:
    created_at = trip.get("createdAt")
    try:
        created = parse_optional_timestamp(created_at)
    except ValueError:
        logger.warning("Invalid createdAt for trip %s: %r; using current time", _record_id(trip), created_at)
        return now
    return created or now


def recent_trips(
    trips: Iterable[Mapping[str, Any]],
    now: Optional[datetime] = None,
    limit: int = RECENT_TRIPS_LIMIT,
) -> List[Dict[str, Any]]:
    """The newest ``limit`` trips as ``{id, name, destination, date}``."""
    now = now or utc_now()
    stamped = [(_trip_time(trip, now), trip) for trip in trips]
    # sorted() is stable, so equal timestamps keep their input order
    stamped = sorted(stamped, key=lambda pair: pair[0], reverse=True)
    return [
        {
            "id": _record_id(trip),
            "name": trip.get("tripName"),
            "destination": trip.get("destination"),
            "date": created.date().isoformat(),
        }
        for created, trip in stamped[:limit]
    ]


def build_report(
    users: List[Mapping[str, Any]],
    trips: List[Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Full admin statistics payload, every summary sharing one clock reading."""
    now = now or utc_now()
    return {
        "totalUsers": len(users),
        "totalTrips": len(trips),
        "roles": role_distribution(users),
        "monthlySignups": monthly_signups(users, now),
        "dailyActivity": daily_signups(users, now),
        "recentTrips": recent_trips(trips, now),
    }
