"""Data models for store entities and API projections."""

from ghanatransit.models._base import CamelModel, JsonScalar, TransitBaseModel, UtcTimestamp, ensure_utc
from ghanatransit.models.activity import Activity, NewActivity
from ghanatransit.models.booking import Booking, BookingUpdate, NewBooking
from ghanatransit.models.notification import (
    NewNotification,
    Notification,
    NotificationAction,
    NotificationPriority,
    NotificationType,
)
from ghanatransit.models.profile import Profile
from ghanatransit.models.transaction import NewTransaction, Transaction, TransactionType

__all__ = [
    "Activity",
    "Booking",
    "BookingUpdate",
    "CamelModel",
    "JsonScalar",
    "NewActivity",
    "NewBooking",
    "NewNotification",
    "NewTransaction",
    "Notification",
    "NotificationAction",
    "NotificationPriority",
    "NotificationType",
    "Profile",
    "Transaction",
    "TransactionType",
    "TransitBaseModel",
    "UtcTimestamp",
    "ensure_utc",
]
