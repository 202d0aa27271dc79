import copy
from datetime import datetime, timedelta, timezone

from reporting import (
    build_report,
    daily_signups,
    monthly_signups,
    recent_trips,
    role_distribution,
)

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def _trip(trip_id, created_at, name=None):
    trip = {"id": trip_id, "tripName": name or f"Trip {trip_id}", "destination": "Lisbon"}
    if created_at is not None:
        trip["createdAt"] = created_at
    return trip


def test_role_distribution_defaults_missing_role_to_user():
    users = [{"role": "admin"}, {"role": "user"}, {}, {"role": ""}, {"role": None}]
    assert role_distribution(users) == {"admin": 1, "user": 4}


def test_role_counts_sum_to_user_count():
    users = [{"role": r} for r in ("admin", "guide", "user", "guide", "user", "user")]
    assert sum(role_distribution(users).values()) == len(users)


def test_monthly_signups_scenario_with_missing_date():
    users = [
        {"role": "admin", "createdAt": "2024-01-05"},
        {"role": "user", "createdAt": "2024-01-20"},
        {"role": "user"},
    ]
    assert role_distribution(users) == {"admin": 1, "user": 2}
    assert monthly_signups(users, NOW) == [
        {"month": "2024-01", "count": 2},
        {"month": "2025-06", "count": 1},
    ]


def test_monthly_signups_uses_current_clock_by_default():
    now = datetime.now(timezone.utc)
    result = monthly_signups([{"role": "user"}])
    # tolerate the test straddling a month boundary
    assert result[0]["month"] in {now.strftime("%Y-%m"), (now + timedelta(minutes=1)).strftime("%Y-%m")}
    assert result[0]["count"] == 1


def test_signups_skip_unparseable_timestamps(caplog):
    users = [
        {"id": "u1", "createdAt": "not a date"},
        {"id": "u2", "createdAt": datetime(2024, 3, 9, 23, 30)},
        {"id": "u3", "createdAt": "2024-03-10T01:00:00Z"},
    ]
    with caplog.at_level("WARNING"):
        monthly = monthly_signups(users, NOW)
    assert monthly == [{"month": "2024-03", "count": 2}]
    assert "u1" in caplog.text
    assert daily_signups(users, NOW) == [
        {"day": "2024-03-09", "count": 1},
        {"day": "2024-03-10", "count": 1},
    ]


def test_signup_buckets_are_sorted_and_sum_to_valid_users():
    users = [
        {"createdAt": "2023-12-31T10:00:00Z"},
        {"createdAt": "2024-02-01T00:00:00Z"},
        {"createdAt": "2023-11-02"},
        {"createdAt": "2024-02-01T08:00:00Z"},
        {"createdAt": "garbage"},
    ]
    monthly = monthly_signups(users, NOW)
    daily = daily_signups(users, NOW)
    assert [row["month"] for row in monthly] == ["2023-11", "2023-12", "2024-02"]
    assert [row["day"] for row in daily] == ["2023-11-02", "2023-12-31", "2024-02-01"]
    assert sum(row["count"] for row in monthly) == 4
    assert sum(row["count"] for row in daily) == 4


def test_timezone_aware_timestamps_are_bucketed_in_utc():
    users = [{"createdAt": "2024-01-31T22:30:00-05:00"}]
    assert monthly_signups(users, NOW) == [{"month": "2024-02", "count": 1}]
    assert daily_signups(users, NOW) == [{"day": "2024-02-01", "count": 1}]


def test_recent_trips_returns_newest_five():
    trips = [_trip(str(i), datetime(2024, 1, i + 1, tzinfo=timezone.utc)) for i in range(8)]
    result = recent_trips(trips, NOW)
    assert [t["id"] for t in result] == ["7", "6", "5", "4", "3"]
    assert result[0] == {"id": "7", "name": "Trip 7", "destination": "Lisbon", "date": "2024-01-08"}


def test_recent_trips_length_is_min_of_five_and_input():
    for count in (0, 1, 4, 5, 6):
        trips = [_trip(str(i), f"2024-02-{i + 1:02d}") for i in range(count)]
        assert len(recent_trips(trips, NOW)) == min(5, count)


def test_recent_trips_keep_missing_and_bad_timestamps_as_now():
    trips = [
        _trip("old", "2023-05-01"),
        _trip("missing", None),
        _trip("broken", "yesterday-ish?"),
    ]
    result = recent_trips(trips, NOW)
    assert [t["id"] for t in result] == ["missing", "broken", "old"]
    assert result[0]["date"] == "2025-06-15"
    assert result[1]["date"] == "2025-06-15"


def test_recent_trips_ordering_is_non_increasing():
    trips = [_trip(str(i), ts) for i, ts in enumerate(
        ["2024-03-01", "2024-01-01", "2024-03-01", "2024-05-20", "2023-12-12", "2024-02-02"]
    )]
    dates = [t["date"] for t in recent_trips(trips, NOW)]
    assert dates == sorted(dates, reverse=True)


def test_recent_trips_accepts_mongo_object_id_key():
    result = recent_trips([{"_id": 42, "tripName": "X", "destination": "Y", "createdAt": NOW}], NOW)
    assert result == [{"id": "42", "name": "X", "destination": "Y", "date": "2025-06-15"}]


def test_build_report_does_not_mutate_inputs():
    users = [{"role": "admin", "createdAt": "bad"}, {"createdAt": None}]
    trips = [_trip("t1", "bad"), _trip("t2", None)]
    users_before, trips_before = copy.deepcopy(users), copy.deepcopy(trips)

    report = build_report(users, trips, NOW)

    assert users == users_before
    assert trips == trips_before
    assert report["totalUsers"] == 2
    assert report["totalTrips"] == 2
    assert report["roles"] == {"admin": 1, "user": 1}
    assert report["monthlySignups"] == [{"month": "2025-06", "count": 1}]
    assert report["dailyActivity"] == [{"day": "2025-06-15", "count": 1}]
    assert len(report["recentTrips"]) == 2


def test_build_report_on_empty_collections():
    assert build_report([], [], NOW) == {
        "totalUsers": 0,
        "totalTrips": 0,
        "roles": {},
        "monthlySignups": [],
        "dailyActivity": [],
        "recentTrips": [],
    }


def test_blank_created_at_counts_as_missing():
    users = [{"createdAt": ""}, {"createdAt": "   "}]
    assert monthly_signups(users, NOW) == [{"month": "2025-06", "count": 2}]
    assert daily_signups(users, NOW) == [{"day": "2025-06-15", "count": 2}]

    trips = [_trip("old", "2023-05-01"), _trip("blank", "")]
    assert [t["id"] for t in recent_trips(trips, NOW)] == ["blank", "old"]
