"""Owner-keyed in-memory reactive store.

Stands in for a hosted realtime database: five collections per owner key
(bookings, activities, transactions, notifications, profile), read newest-first, with one
change event per successful mutation.

The store is synchronous and holds no locks. It is meant for a
single-threaded, event-driven host; concurrent mutation of one owner's
collections from several threads needs external serialization.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar

from ghanatransit._constants import (
    DEFAULT_ACTIVITIES_LIMIT,
    DEFAULT_BOOKINGS_LIMIT,
    DEFAULT_LOYALTY_POINTS,
    DEFAULT_NOTIFICATIONS_LIMIT,
    DEFAULT_TRANSACTIONS_LIMIT,
)
from ghanatransit._redact import redact_for_log
from ghanatransit.config import TransitConfig
from ghanatransit.exceptions import TransitConfigError
from ghanatransit.models.activity import Activity, NewActivity
from ghanatransit.models.booking import Booking, BookingUpdate, NewBooking
from ghanatransit.models.notification import NewNotification, Notification
from ghanatransit.models.profile import Profile
from ghanatransit.models.transaction import NewTransaction, Transaction
from ghanatransit.state.bus import ChangeBus, EventBus
from ghanatransit.state.events import ChangeEvent, ChangeKind, Collection, channel_name

_logger = logging.getLogger(__name__)

_M = TypeVar("_M", Booking, Activity, Transaction, Notification)

_TICK = timedelta(microseconds=1)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


def _newest_first(items: list[_M], limit: int | None) -> list[_M]:
    ordered = sorted(items, key=lambda item: item.created_at, reverse=True)
    if limit is not None:
        ordered = ordered[: max(limit, 0)]
    return [item.model_copy(deep=True) for item in ordered]


@dataclass
class _OwnerData:
    profile: Profile
    bookings: list[Booking] = field(default_factory=list)
    activities: list[Activity] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)


class ReactiveStore:
    """In-memory store for one process (or one test).

    Parameters
    ----------
    bus : ChangeBus or None
        Bus change events are published on. A private :class:`EventBus`
        is created when omitted.
    clock : callable
        Source of creation timestamps.
    id_factory : callable
        Source of entity identifiers.
    default_loyalty_points : int
        Balance of a freshly seeded profile.
    """

    def __init__(
        self,
        *,
        bus: ChangeBus | None = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_id,
        default_loyalty_points: int = DEFAULT_LOYALTY_POINTS,
    ) -> None:
        if default_loyalty_points < 0:
            raise TransitConfigError("default_loyalty_points must be non-negative")
        self._bus: ChangeBus = bus if bus is not None else EventBus()
        self._clock = clock
        self._id_factory = id_factory
        self._default_loyalty_points = default_loyalty_points
        self._owners: dict[str, _OwnerData] = {}
        self._issued_ids: dict[Collection, set[str]] = {
            Collection.BOOKINGS: set(),
            Collection.ACTIVITIES: set(),
            Collection.TRANSACTIONS: set(),
            Collection.NOTIFICATIONS: set(),
        }
        self._last_timestamp: datetime | None = None

    @classmethod
    def from_config(cls, config: TransitConfig, *, bus: ChangeBus | None = None) -> ReactiveStore:
        return cls(bus=bus, default_loyalty_points=config.default_loyalty_points)

    @property
    def bus(self) -> ChangeBus:
        return self._bus

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _owner(self, owner_key: str) -> _OwnerData:
        data = self._owners.get(owner_key)
        if data is None:
            data = _OwnerData(profile=Profile(id=owner_key, loyalty_points=self._default_loyalty_points))
            self._owners[owner_key] = data
            _logger.debug("Seeded owner=%s loyalty_points=%d", owner_key, self._default_loyalty_points)
        return data

    def _timestamp(self) -> datetime:
        """Return the clock reading, nudged forward so timestamps strictly increase."""
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + _TICK
        self._last_timestamp = now
        return now

    def _issue_id(self, collection: Collection) -> str:
        issued = self._issued_ids[collection]
        new_id = self._id_factory()
        while new_id in issued:
            _logger.debug("Identifier collision in %s; regenerating", collection)
            new_id = self._id_factory()
        issued.add(new_id)
        return new_id

    def _publish(self, kind: ChangeKind, collection: Collection, owner_key: str, entity: Any) -> None:
        event = ChangeEvent(
            kind=kind,
            collection=collection,
            owner_key=owner_key,
            entity=entity.model_copy(deep=True),
        )
        _logger.debug(
            "Emitting %s on %s entity=%s",
            kind,
            event.channel,
            redact_for_log(entity),
        )
        self._bus.emit(channel_name(collection, owner_key), event)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def ensure_seed(self, owner_key: str) -> None:
        """Materialize empty collections and a default profile for *owner_key*."""
        self._owner(owner_key)

    def get_profile(self, owner_key: str) -> Profile:
        return self._owner(owner_key).profile

    def get_bookings(self, owner_key: str, limit: int | None = DEFAULT_BOOKINGS_LIMIT) -> list[Booking]:
        """Newest-first bookings, at most *limit* (``None`` for all)."""
        return _newest_first(self._owner(owner_key).bookings, limit)

    def get_activities(self, owner_key: str, limit: int | None = DEFAULT_ACTIVITIES_LIMIT) -> list[Activity]:
        return _newest_first(self._owner(owner_key).activities, limit)

    def get_transactions(
        self,
        owner_key: str,
        limit: int | None = DEFAULT_TRANSACTIONS_LIMIT,
    ) -> list[Transaction]:
        return _newest_first(self._owner(owner_key).transactions, limit)

    def get_notifications(
        self,
        owner_key: str,
        limit: int | None = DEFAULT_NOTIFICATIONS_LIMIT,
    ) -> list[Notification]:
        return _newest_first(self._owner(owner_key).notifications, limit)

    def unread_notification_count(self, owner_key: str) -> int:
        return sum(1 for notification in self._owner(owner_key).notifications if not notification.read)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_booking(self, owner_key: str, fields: NewBooking | Mapping[str, Any]) -> Booking:
        """Create a booking for *owner_key* and emit INSERT on ``bookings:<owner>``."""
        data = self._owner(owner_key)
        new = fields if isinstance(fields, NewBooking) else NewBooking.model_validate(fields)
        booking = Booking(
            id=self._issue_id(Collection.BOOKINGS),
            user_id=owner_key,
            created_at=self._timestamp(),
            **new.model_dump(),
        )
        data.bookings.append(booking)
        self._publish(ChangeKind.INSERT, Collection.BOOKINGS, owner_key, booking)
        return booking.model_copy(deep=True)

    def update_booking(
        self,
        owner_key: str,
        booking_id: str,
        changes: BookingUpdate | Mapping[str, Any],
    ) -> Booking | None:
        """Merge *changes* over the owner's booking *booking_id*.

        Returns the merged booking, or ``None`` when the owner has no such
        booking (no event is emitted in that case).
        """
        data = self._owner(owner_key)
        update = changes if isinstance(changes, BookingUpdate) else BookingUpdate.model_validate(changes)
        for index, existing in enumerate(data.bookings):
            if existing.id == booking_id:
                break
        else:
            _logger.debug("update_booking: owner=%s has no booking id=%s", owner_key, booking_id)
            return None

        updated = existing.model_copy(update=update.changes(), deep=True)
        data.bookings[index] = updated
        self._publish(ChangeKind.UPDATE, Collection.BOOKINGS, owner_key, updated)
        return updated.model_copy(deep=True)

    def remove_booking(self, owner_key: str, booking_id: str) -> bool:
        """Remove the owner's booking *booking_id*; returns whether one was removed."""
        data = self._owner(owner_key)
        for index, existing in enumerate(data.bookings):
            if existing.id == booking_id:
                removed = data.bookings.pop(index)
                self._publish(ChangeKind.DELETE, Collection.BOOKINGS, owner_key, removed)
                return True
        _logger.debug("remove_booking: owner=%s has no booking id=%s", owner_key, booking_id)
        return False

    def add_activity(self, owner_key: str, fields: NewActivity | Mapping[str, Any]) -> Activity:
        data = self._owner(owner_key)
        new = fields if isinstance(fields, NewActivity) else NewActivity.model_validate(fields)
        activity = Activity(
            id=self._issue_id(Collection.ACTIVITIES),
            user_id=owner_key,
            created_at=self._timestamp(),
            **new.model_dump(),
        )
        data.activities.insert(0, activity)
        self._publish(ChangeKind.INSERT, Collection.ACTIVITIES, owner_key, activity)
        return activity.model_copy(deep=True)

    def add_transaction(self, owner_key: str, fields: NewTransaction | Mapping[str, Any]) -> Transaction:
        data = self._owner(owner_key)
        new = fields if isinstance(fields, NewTransaction) else NewTransaction.model_validate(fields)
        transaction = Transaction(
            id=self._issue_id(Collection.TRANSACTIONS),
            user_id=owner_key,
            created_at=self._timestamp(),
            **new.model_dump(),
        )
        data.transactions.insert(0, transaction)
        self._publish(ChangeKind.INSERT, Collection.TRANSACTIONS, owner_key, transaction)
        return transaction.model_copy(deep=True)

    def add_points(self, owner_key: str, delta: int) -> Profile:
        """Adjust the loyalty balance by *delta*, never going below zero.

        The new balance is validated before it is stored, so a non-integral
        *delta* raises :class:`pydantic.ValidationError` and leaves the
        balance untouched.
        """
        data = self._owner(owner_key)
        balance = max(0, data.profile.loyalty_points + delta)
        data.profile = Profile.model_validate({"id": data.profile.id, "loyalty_points": balance})
        self._publish(ChangeKind.UPDATE, Collection.PROFILE, owner_key, data.profile)
        return data.profile

    # ------------------------------------------------------------------
    # Notification inbox
    # ------------------------------------------------------------------

    def add_notification(self, owner_key: str, fields: NewNotification | Mapping[str, Any]) -> Notification:
        """Deliver an unread notification to *owner_key*'s inbox."""
        data = self._owner(owner_key)
        new = fields if isinstance(fields, NewNotification) else NewNotification.model_validate(fields)
        notification = Notification(
            id=self._issue_id(Collection.NOTIFICATIONS),
            user_id=owner_key,
            created_at=self._timestamp(),
            **new.model_dump(),
        )
        data.notifications.insert(0, notification)
        self._publish(ChangeKind.INSERT, Collection.NOTIFICATIONS, owner_key, notification)
        return notification.model_copy(deep=True)

    def mark_notification_read(self, owner_key: str, notification_id: str) -> Notification | None:
        """Flag one notification as read; ``None`` when the owner has no such notification.

        Marking an already-read notification returns it without emitting.
        """
        data = self._owner(owner_key)
        for index, existing in enumerate(data.notifications):
            if existing.id == notification_id:
                break
        else:
            _logger.debug("mark_notification_read: owner=%s has no notification id=%s", owner_key, notification_id)
            return None

        if existing.read:
            return existing.model_copy(deep=True)
        updated = existing.model_copy(update={"read": True}, deep=True)
        data.notifications[index] = updated
        self._publish(ChangeKind.UPDATE, Collection.NOTIFICATIONS, owner_key, updated)
        return updated.model_copy(deep=True)

    def mark_all_notifications_read(self, owner_key: str) -> int:
        """Flag every unread notification as read, one UPDATE each; returns how many changed."""
        data = self._owner(owner_key)
        changed = 0
        for index, existing in enumerate(data.notifications):
            if existing.read:
                continue
            updated = existing.model_copy(update={"read": True}, deep=True)
            data.notifications[index] = updated
            self._publish(ChangeKind.UPDATE, Collection.NOTIFICATIONS, owner_key, updated)
            changed += 1
        return changed

    def remove_notification(self, owner_key: str, notification_id: str) -> bool:
        data = self._owner(owner_key)
        for index, existing in enumerate(data.notifications):
            if existing.id == notification_id:
                removed = data.notifications.pop(index)
                self._publish(ChangeKind.DELETE, Collection.NOTIFICATIONS, owner_key, removed)
                return True
        _logger.debug("remove_notification: owner=%s has no notification id=%s", owner_key, notification_id)
        return False

    def clear_notifications(self, owner_key: str) -> int:
        """Empty the inbox, emitting one DELETE per removed notification."""
        data = self._owner(owner_key)
        removed, data.notifications = data.notifications, []
        for notification in removed:
            self._publish(ChangeKind.DELETE, Collection.NOTIFICATIONS, owner_key, notification)
        return len(removed)
