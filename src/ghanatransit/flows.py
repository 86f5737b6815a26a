"""Multi-step user flows built on :class:`ReactiveStore`.

Each flow performs the same sequence of store writes the booking app
performs, so subscribers see the usual per-collection events in order.
"""

from __future__ import annotations

import logging
import math
import secrets
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import Field

from ghanatransit._constants import (
    CONFIRMED_STATUS,
    LOYALTY_POINTS_RATE,
    REWARD_CODE_PREFIX,
    REWARD_VALIDITY_DAYS,
)
from ghanatransit.exceptions import InsufficientPointsError
from ghanatransit.models._base import TransitBaseModel, UtcTimestamp
from ghanatransit.models.activity import Activity, NewActivity
from ghanatransit.models.booking import Booking, NewBooking
from ghanatransit.models.notification import Notification
from ghanatransit.models.profile import Profile
from ghanatransit.notifications import booking_confirmed, trip_reminder
from ghanatransit.state.store import ReactiveStore

_logger = logging.getLogger(__name__)

# (lower bound, upper bound] in hours before departure, and the wording used.
_REMINDER_WINDOWS: tuple[tuple[float, float, str], ...] = (
    (1.9, 2.0, "2 hours"),
    (0.49, 0.5, "30 minutes"),
)

_TIME_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p")


class BookingConfirmation(TransitBaseModel):
    """Everything :func:`book_trip` wrote."""

    booking: Booking
    activity: Activity
    profile: Profile
    notification: Notification
    points_earned: int


class RewardRedemption(TransitBaseModel):
    reward_id: str
    title: str
    code: str
    points_spent: int = Field(..., gt=0)
    redeemed_at: UtcTimestamp
    expires_at: UtcTimestamp
    used: bool = False
    profile: Profile


def points_for(total_price: float) -> int:
    """Loyalty points earned for a booking costing *total_price*."""
    return max(0, math.floor(total_price * LOYALTY_POINTS_RATE))


def book_trip(store: ReactiveStore, owner_key: str, fields: NewBooking | Mapping[str, Any]) -> BookingConfirmation:
    """Record a confirmed booking with its activity, points and notification."""
    booking = store.add_booking(owner_key, fields)
    points = points_for(booking.total_price)
    activity = store.add_activity(
        owner_key,
        NewActivity(
            activity_type="booking_created",
            description=f"Booked {booking.route_from} to {booking.route_to}",
            points_earned=points,
            metadata={
                "booking_reference": booking.booking_reference,
                "route_from": booking.route_from,
                "route_to": booking.route_to,
                "total_price": booking.total_price,
            },
        ),
    )
    profile = store.add_points(owner_key, points)
    notification = store.add_notification(owner_key, booking_confirmed(booking))
    _logger.debug("Booked %s for owner=%s points=%d", booking.booking_reference, owner_key, points)
    return BookingConfirmation(
        booking=booking,
        activity=activity,
        profile=profile,
        notification=notification,
        points_earned=points,
    )


def _reward_code() -> str:
    return f"{REWARD_CODE_PREFIX}{secrets.randbelow(1_000_000):06d}"


def redeem_reward(
    store: ReactiveStore,
    owner_key: str,
    *,
    reward_id: str,
    title: str,
    points_cost: int,
    now: datetime | None = None,
) -> RewardRedemption:
    """Spend *points_cost* loyalty points on a reward.

    Raises
    ------
    InsufficientPointsError
        The balance is below *points_cost*; nothing is written.
    ValueError
        *points_cost* is not positive.
    """
    if points_cost <= 0:
        raise ValueError("points_cost must be positive")
    available = store.get_profile(owner_key).loyalty_points
    if available < points_cost:
        raise InsufficientPointsError(
            f"You need {points_cost - available} more points to redeem this reward.",
            required=points_cost,
            available=available,
        )

    profile = store.add_points(owner_key, -points_cost)
    code = _reward_code()
    redeemed_at = now if now is not None else datetime.now(UTC)
    store.add_activity(
        owner_key,
        NewActivity(
            activity_type="reward_redeemed",
            description=f"Redeemed {title}",
            metadata={"reward_id": reward_id, "points_spent": points_cost},
        ),
    )
    _logger.debug("Redeemed reward=%s for owner=%s cost=%d", reward_id, owner_key, points_cost)
    return RewardRedemption(
        reward_id=reward_id,
        title=title,
        code=code,
        points_spent=points_cost,
        redeemed_at=redeemed_at,
        expires_at=redeemed_at + timedelta(days=REWARD_VALIDITY_DAYS),
        profile=profile,
    )


def _departure(booking: Booking) -> datetime | None:
    day = booking.departure_date[:10]
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(f"{day} {booking.departure_time}", f"%Y-%m-%d {fmt}").replace(tzinfo=UTC)
        except ValueError:
            continue
    return None


def check_upcoming_trips(
    store: ReactiveStore,
    owner_key: str,
    *,
    now: datetime | None = None,
) -> list[Notification]:
    """Send trip reminders for confirmed bookings departing in about 2 hours or 30 minutes.

    Departures are read as UTC. Meant to be called periodically; a booking
    only falls inside a window for a few minutes, so one reminder is sent
    per window at a typical polling rate.
    """
    current = now if now is not None else datetime.now(UTC)
    if current.tzinfo is None:
        current = current.replace(tzinfo=UTC)

    sent: list[Notification] = []
    for booking in store.get_bookings(owner_key, None):
        if booking.status != CONFIRMED_STATUS:
            continue
        departure = _departure(booking)
        if departure is None:
            _logger.debug(
                "Skipping booking=%s with unparseable departure %r %r",
                booking.id,
                booking.departure_date,
                booking.departure_time,
            )
            continue
        hours = (departure - current).total_seconds() / 3600
        for lower, upper, wording in _REMINDER_WINDOWS:
            if lower < hours <= upper:
                sent.append(store.add_notification(owner_key, trip_reminder(booking, wording)))
    return sent
