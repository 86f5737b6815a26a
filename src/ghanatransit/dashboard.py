"""Dashboard and account-stats projections over the store."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any

from ghanatransit._constants import (
    CONFIRMED_STATUS,
    DEFAULT_BUS_TYPE,
    PLACEHOLDER,
    RECENT_ACTIVITIES_LIMIT,
    UPCOMING_TRIPS_LIMIT,
)
from ghanatransit.models._base import CamelModel, JsonScalar, TransitBaseModel, UtcTimestamp
from ghanatransit.models.activity import Activity
from ghanatransit.models.booking import Booking
from ghanatransit.state.store import ReactiveStore


class UpcomingTrip(CamelModel):
    id: str
    route: str
    origin: str
    destination: str
    travel_date: str
    departure_time: str
    bus_number: str
    bus_type: str
    seat_number: str
    status: str
    total_price: float


class RecentActivity(CamelModel):
    id: str
    type: str
    description: str
    timestamp: UtcTimestamp
    points_earned: int | None = None
    metadata: dict[str, JsonScalar] = {}


class DashboardStats(CamelModel):
    total_upcoming_trips: int
    total_activities: int


class DashboardSummary(CamelModel):
    upcoming_trips: list[UpcomingTrip]
    recent_activities: list[RecentActivity]
    stats: DashboardStats

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class UserStats(TransitBaseModel):
    total_bookings: int
    wallet_balance: float
    loyalty_points: int
    upcoming_trips: int

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def _today() -> date:
    return datetime.now(UTC).date()


def _upcoming(store: ReactiveStore, owner_key: str, today: date) -> list[Booking]:
    cutoff = today.isoformat()
    trips = [
        booking
        for booking in store.get_bookings(owner_key, limit=None)
        if booking.status == CONFIRMED_STATUS and booking.departure_date >= cutoff
    ]
    trips.sort(key=lambda b: (b.departure_date, b.departure_time))
    return trips


def _trip_view(booking: Booking) -> UpcomingTrip:
    return UpcomingTrip(
        id=booking.id,
        route=f"{booking.route_from} → {booking.route_to}",
        origin=booking.route_from,
        destination=booking.route_to,
        travel_date=booking.departure_date,
        departure_time=booking.departure_time,
        bus_number=booking.bus_number or PLACEHOLDER,
        bus_type=booking.fare_class or DEFAULT_BUS_TYPE,
        seat_number=", ".join(booking.seat_numbers or ()) or PLACEHOLDER,
        status=booking.status,
        total_price=booking.total_price,
    )


def _activity_view(activity: Activity) -> RecentActivity:
    return RecentActivity(
        id=activity.id,
        type=activity.activity_type,
        description=activity.description,
        timestamp=activity.created_at,
        points_earned=activity.points_earned,
        metadata=activity.metadata,
    )


def build_dashboard(store: ReactiveStore, owner_key: str, *, today: date | None = None) -> DashboardSummary:
    """Upcoming confirmed trips (soonest first) and the latest activities."""
    trips = [_trip_view(b) for b in _upcoming(store, owner_key, today or _today())[:UPCOMING_TRIPS_LIMIT]]
    activities = [_activity_view(a) for a in store.get_activities(owner_key, limit=RECENT_ACTIVITIES_LIMIT)]
    return DashboardSummary(
        upcoming_trips=trips,
        recent_activities=activities,
        stats=DashboardStats(
            total_upcoming_trips=len(trips),
            total_activities=len(activities),
        ),
    )


def build_user_stats(store: ReactiveStore, owner_key: str, *, today: date | None = None) -> UserStats:
    """Account totals: bookings, wallet balance, loyalty points, upcoming trips."""
    transactions = store.get_transactions(owner_key, limit=None)
    return UserStats(
        total_bookings=len(store.get_bookings(owner_key, limit=None)),
        wallet_balance=round(sum(t.signed_amount for t in transactions), 2),
        loyalty_points=store.get_profile(owner_key).loyalty_points,
        upcoming_trips=len(_upcoming(store, owner_key, today or _today())),
    )
