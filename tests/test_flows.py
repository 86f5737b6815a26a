from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from ghanatransit.exceptions import InsufficientPointsError
from ghanatransit.flows import book_trip, check_upcoming_trips, points_for, redeem_reward
from ghanatransit.models import NotificationType
from ghanatransit.state.bus import EventBus
from ghanatransit.state.events import ChangeEvent, ChangeKind
from ghanatransit.state.store import ReactiveStore


def _booking_fields(**overrides: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "route_from": "Accra",
        "route_to": "Takoradi",
        "departure_date": "2026-05-01",
        "departure_time": "10:00",
        "status": "confirmed",
        "total_price": 95.5,
        "booking_reference": "GT-501",
        "passengers": 1,
        "class": "Standard",
    }
    fields.update(overrides)
    return fields


@pytest.mark.parametrize(("price", "points"), [(95.5, 9), (120, 12), (9.99, 0), (0, 0)])
def test_points_for_is_ten_percent_rounded_down(price: float, points: int) -> None:
    assert points_for(price) == points


class TestBookTrip:
    def test_writes_booking_activity_points_and_notification(self) -> None:
        store = ReactiveStore()

        result = book_trip(store, "u1", _booking_fields())

        assert store.get_bookings("u1") == [result.booking]
        assert result.points_earned == 9
        assert result.profile.loyalty_points == 329
        assert store.get_profile("u1").loyalty_points == 329

        activity = store.get_activities("u1")[0]
        assert activity == result.activity
        assert activity.activity_type == "booking_created"
        assert activity.description == "Booked Accra to Takoradi"
        assert activity.points_earned == 9
        assert activity.metadata["booking_reference"] == "GT-501"

        inbox = store.get_notifications("u1")
        assert inbox == [result.notification]
        assert inbox[0].type is NotificationType.BOOKING
        assert "GT-501" in inbox[0].message

    def test_emits_events_in_write_order(self) -> None:
        bus = EventBus()
        store = ReactiveStore(bus=bus)
        seen: list[str] = []
        for channel in ("bookings:u1", "activities:u1", "profile:u1", "notifications:u1"):
            bus.subscribe(channel, lambda event, channel=channel: seen.append(channel))

        book_trip(store, "u1", _booking_fields())

        assert seen == ["bookings:u1", "activities:u1", "profile:u1", "notifications:u1"]

    def test_invalid_booking_writes_nothing(self) -> None:
        store = ReactiveStore()
        with pytest.raises(ValueError):
            book_trip(store, "u1", _booking_fields(passengers="two"))

        assert store.get_bookings("u1") == []
        assert store.get_activities("u1") == []
        assert store.get_profile("u1").loyalty_points == 320


class TestRedeemReward:
    def test_debits_points_and_logs_activity(self) -> None:
        bus = EventBus()
        store = ReactiveStore(bus=bus)
        events: list[ChangeEvent] = []
        bus.subscribe("profile:u1", events.append)
        now = datetime(2026, 4, 1, 12, 0, tzinfo=UTC)

        redemption = redeem_reward(store, "u1", reward_id="free-ride", title="Free Ride", points_cost=300, now=now)

        assert redemption.profile.loyalty_points == 20
        assert store.get_profile("u1").loyalty_points == 20
        assert re.fullmatch(r"GH\d{6}", redemption.code)
        assert redemption.redeemed_at == now
        assert redemption.expires_at == now + timedelta(days=30)
        assert not redemption.used
        assert [e.kind for e in events] == [ChangeKind.UPDATE]

        activity = store.get_activities("u1")[0]
        assert activity.activity_type == "reward_redeemed"
        assert activity.description == "Redeemed Free Ride"

    def test_insufficient_balance_is_refused_without_writes(self) -> None:
        store = ReactiveStore(default_loyalty_points=50)

        with pytest.raises(InsufficientPointsError) as excinfo:
            redeem_reward(store, "u1", reward_id="lounge", title="VIP Lounge", points_cost=80)

        assert excinfo.value.required == 80
        assert excinfo.value.available == 50
        assert excinfo.value.shortfall == 30
        assert "30 more points" in str(excinfo.value)
        assert store.get_profile("u1").loyalty_points == 50
        assert store.get_activities("u1") == []

    def test_exact_balance_can_be_spent(self) -> None:
        store = ReactiveStore(default_loyalty_points=80)
        redeem_reward(store, "u1", reward_id="lounge", title="VIP Lounge", points_cost=80)
        assert store.get_profile("u1").loyalty_points == 0

    @pytest.mark.parametrize("cost", [0, -5])
    def test_cost_must_be_positive(self, cost: int) -> None:
        with pytest.raises(ValueError):
            redeem_reward(ReactiveStore(), "u1", reward_id="x", title="X", points_cost=cost)


class TestCheckUpcomingTrips:
    _DEPARTURE = datetime(2026, 5, 1, 10, 0, tzinfo=UTC)

    @pytest.mark.parametrize(
        ("before", "wording"),
        [
            (timedelta(hours=2), "2 hours"),
            (timedelta(hours=1, minutes=57), "2 hours"),
            (timedelta(minutes=30), "30 minutes"),
        ],
    )
    def test_reminds_inside_window(self, before: timedelta, wording: str) -> None:
        store = ReactiveStore()
        book_trip(store, "u1", _booking_fields())

        sent = check_upcoming_trips(store, "u1", now=self._DEPARTURE - before)

        assert len(sent) == 1
        assert sent[0].type is NotificationType.REMINDER
        assert f"departs in {wording}" in sent[0].message
        assert store.get_notifications("u1")[0] == sent[0]

    @pytest.mark.parametrize(
        "before",
        [timedelta(hours=3), timedelta(hours=1, minutes=50), timedelta(minutes=10), -timedelta(minutes=5)],
    )
    def test_quiet_outside_windows(self, before: timedelta) -> None:
        store = ReactiveStore()
        store.add_booking("u1", _booking_fields())

        assert check_upcoming_trips(store, "u1", now=self._DEPARTURE - before) == []
        assert store.get_notifications("u1") == []

    def test_skips_cancelled_and_unparseable_bookings(self) -> None:
        store = ReactiveStore()
        store.add_booking("u1", _booking_fields(status="cancelled"))
        store.add_booking("u1", _booking_fields(departure_time="morning"))

        assert check_upcoming_trips(store, "u1", now=self._DEPARTURE - timedelta(minutes=30)) == []

    def test_accepts_iso_timestamp_departure_date(self) -> None:
        store = ReactiveStore()
        store.add_booking("u1", _booking_fields(departure_date="2026-05-01T00:00:00.000Z"))

        sent = check_upcoming_trips(store, "u1", now=self._DEPARTURE - timedelta(hours=2))

        assert len(sent) == 1
