"""In-app notification inbox entries."""

from __future__ import annotations

from enum import StrEnum

from ghanatransit.models._base import TransitBaseModel, UtcTimestamp


class NotificationType(StrEnum):
    BOOKING = "booking"
    REMINDER = "reminder"
    UPDATE = "update"
    ALERT = "alert"
    VIP = "vip"


class NotificationPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationAction(TransitBaseModel):
    label: str
    url: str


class _NotificationFields(TransitBaseModel):
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    action: NotificationAction | None = None
    sound: str | None = None


class NewNotification(_NotificationFields):
    """Caller-supplied notification fields (id, owner, timestamp and read flag are injected)."""


class Notification(_NotificationFields):
    id: str
    user_id: str
    created_at: UtcTimestamp
    read: bool = False
