"""Builders for the inbox notifications the booking app sends.

Each builder returns a :class:`NewNotification` ready for
:meth:`ReactiveStore.add_notification`; none of them touch the store.
"""

from __future__ import annotations

from ghanatransit.models.booking import Booking
from ghanatransit.models.notification import (
    NewNotification,
    NotificationAction,
    NotificationPriority,
    NotificationType,
)

_BOOKINGS_URL = "/bookings"


def booking_confirmed(booking: Booking) -> NewNotification:
    tier = "VIP" if booking.fare_class.lower() == "vip" else "standard"
    return NewNotification(
        type=NotificationType.BOOKING,
        title="🎫 Booking Confirmed!",
        message=(
            f"Your {tier} trip from {booking.route_from} to {booking.route_to} on "
            f"{booking.departure_date} at {booking.departure_time} has been confirmed. "
            f"Reference: {booking.booking_reference}"
        ),
        priority=NotificationPriority.HIGH,
        sound="success",
        action=NotificationAction(label="View Booking", url=_BOOKINGS_URL),
    )


def trip_update(booking_reference: str, update: str) -> NewNotification:
    return NewNotification(
        type=NotificationType.UPDATE,
        title="📢 Trip Update",
        message=f"Update for booking {booking_reference}: {update}",
        priority=NotificationPriority.MEDIUM,
        sound="update",
        action=NotificationAction(label="View Details", url=_BOOKINGS_URL),
    )


def trip_reminder(booking: Booking, departure_in: str) -> NewNotification:
    """Urgent reminder that *booking* leaves in *departure_in* (e.g. ``"30 minutes"``)."""
    return NewNotification(
        type=NotificationType.REMINDER,
        title="⏰ Trip Reminder!",
        message=(
            f"Your trip from {booking.route_from} to {booking.route_to} departs in {departure_in}. "
            f"Reference: {booking.booking_reference}"
        ),
        priority=NotificationPriority.URGENT,
        sound="reminder",
        action=NotificationAction(label="View Details", url=_BOOKINGS_URL),
    )
