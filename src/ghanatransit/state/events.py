"""Change events emitted by the store.

Every successful mutation produces exactly one :class:`ChangeEvent` on
the ``"<collection>:<owner_key>"`` channel of the affected owner.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from ghanatransit.models.activity import Activity
from ghanatransit.models.booking import Booking
from ghanatransit.models.notification import Notification
from ghanatransit.models.profile import Profile
from ghanatransit.models.transaction import Transaction


class ChangeKind(StrEnum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Collection(StrEnum):
    BOOKINGS = "bookings"
    ACTIVITIES = "activities"
    TRANSACTIONS = "transactions"
    PROFILE = "profile"
    NOTIFICATIONS = "notifications"


def channel_name(collection: Collection | str, owner_key: str) -> str:
    """Build the owner-scoped channel name, e.g. ``"bookings:u1"``."""
    return f"{Collection(collection).value}:{owner_key}"


class ChangeEvent(BaseModel):
    """Tagged payload describing one mutation.

    For DELETE events ``entity`` is the record as it was just before removal.
    """

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    collection: Collection
    owner_key: str
    entity: Booking | Activity | Transaction | Profile | Notification

    @property
    def channel(self) -> str:
        return channel_name(self.collection, self.owner_key)
