from __future__ import annotations

import itertools
from datetime import UTC, date, datetime, timedelta
from typing import Any

from ghanatransit.dashboard import build_dashboard, build_user_stats
from ghanatransit.state.store import ReactiveStore

TODAY = date(2026, 3, 10)


def _store() -> ReactiveStore:
    start = datetime(2026, 3, 1, tzinfo=UTC)
    counter = itertools.count()
    return ReactiveStore(clock=lambda: start + timedelta(minutes=next(counter)))


def _booking(**overrides: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "route_from": "Accra",
        "route_to": "Kumasi",
        "departure_date": "2026-03-12",
        "departure_time": "08:00",
        "status": "confirmed",
        "total_price": 120,
        "booking_reference": "GT-001",
        "passengers": 1,
        "class": "VIP",
    }
    fields.update(overrides)
    return fields


def test_empty_dashboard_for_new_owner() -> None:
    summary = build_dashboard(_store(), "fresh", today=TODAY)

    assert summary.to_json_dict() == {
        "upcomingTrips": [],
        "recentActivities": [],
        "stats": {"totalUpcomingTrips": 0, "totalActivities": 0},
    }


def test_upcoming_trips_are_confirmed_future_and_soonest_first() -> None:
    store = _store()
    store.add_booking("u1", _booking(booking_reference="later", departure_date="2026-03-20"))
    store.add_booking("u1", _booking(booking_reference="past", departure_date="2026-03-01"))
    store.add_booking("u1", _booking(booking_reference="pending", status="pending"))
    store.add_booking("u1", _booking(booking_reference="today-late", departure_date="2026-03-10", departure_time="18:00"))
    store.add_booking("u1", _booking(booking_reference="today-early", departure_date="2026-03-10", departure_time="06:00"))
    store.add_booking("u2", _booking(booking_reference="someone-else"))

    summary = build_dashboard(store, "u1", today=TODAY)

    refs = [trip.id for trip in summary.upcoming_trips]
    by_id = {b.id: b.booking_reference for b in store.get_bookings("u1", None)}
    assert [by_id[r] for r in refs] == ["today-early", "today-late", "later"]
    assert summary.stats.total_upcoming_trips == 3


def test_upcoming_trips_are_capped_at_five() -> None:
    store = _store()
    for day in range(11, 19):
        store.add_booking("u1", _booking(departure_date=f"2026-03-{day}"))

    summary = build_dashboard(store, "u1", today=TODAY)

    assert len(summary.upcoming_trips) == 5
    assert summary.upcoming_trips[0].travel_date == "2026-03-11"
    assert build_user_stats(store, "u1", today=TODAY).upcoming_trips == 8


def test_trip_projection_fills_placeholders() -> None:
    store = _store()
    store.add_booking("u1", _booking())
    store.add_booking(
        "u1",
        _booking(departure_date="2026-03-13", bus_number="GT-204", seat_numbers=["4A", "4B"], **{"class": ""}),
    )

    trips = build_dashboard(store, "u1", today=TODAY).to_json_dict()["upcomingTrips"]

    assert trips[0]["route"] == "Accra → Kumasi"
    assert trips[0]["busNumber"] == "N/A"
    assert trips[0]["seatNumber"] == "N/A"
    assert trips[0]["busType"] == "VIP"
    assert trips[0]["totalPrice"] == 120
    assert trips[1]["busNumber"] == "GT-204"
    assert trips[1]["seatNumber"] == "4A, 4B"
    assert trips[1]["busType"] == "Standard"


def test_recent_activities_newest_first() -> None:
    store = _store()
    for i in range(12):
        store.add_activity("u1", {"activity_type": "login", "description": f"visit {i}", "metadata": {"n": i}})

    activities = build_dashboard(store, "u1", today=TODAY).to_json_dict()["recentActivities"]

    assert len(activities) == 10
    assert activities[0]["description"] == "visit 11"
    assert activities[0]["type"] == "login"
    assert activities[0]["metadata"] == {"n": 11}
    assert "timestamp" in activities[0]


def test_user_stats() -> None:
    store = _store()
    store.add_booking("u1", _booking())
    store.add_booking("u1", _booking(status="cancelled"))
    store.add_transaction("u1", {"transaction_type": "credit", "amount": 200})
    store.add_transaction("u1", {"transaction_type": "debit", "amount": 120.25})
    store.add_points("u1", 30)

    stats = build_user_stats(store, "u1", today=TODAY)

    assert stats.to_json_dict() == {
        "total_bookings": 2,
        "wallet_balance": 79.75,
        "loyalty_points": 350,
        "upcoming_trips": 1,
    }
