"""ghanatransit - in-memory reactive store for the GhanaTransit booking app."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ghanatransit")
except PackageNotFoundError:
    __version__ = "0+local"
from ghanatransit.config import TransitConfig
from ghanatransit.exceptions import (
    InsufficientPointsError,
    TransitBridgeError,
    TransitConfigError,
    TransitError,
)
from ghanatransit.flows import BookingConfirmation, RewardRedemption, book_trip, check_upcoming_trips, redeem_reward
from ghanatransit.models import (
    Activity,
    Booking,
    BookingUpdate,
    NewActivity,
    NewBooking,
    NewNotification,
    NewTransaction,
    Notification,
    NotificationPriority,
    NotificationType,
    Profile,
    Transaction,
    TransactionType,
)
from ghanatransit.state.bus import ChangeBus, EventBus
from ghanatransit.state.events import ChangeEvent, ChangeKind, Collection, channel_name
from ghanatransit.state.store import ReactiveStore

__all__ = [
    "__version__",
    "Activity",
    "Booking",
    "BookingConfirmation",
    "BookingUpdate",
    "ChangeBus",
    "ChangeEvent",
    "ChangeKind",
    "Collection",
    "EventBus",
    "InsufficientPointsError",
    "NewActivity",
    "NewBooking",
    "NewNotification",
    "NewTransaction",
    "Notification",
    "NotificationPriority",
    "NotificationType",
    "Profile",
    "ReactiveStore",
    "RewardRedemption",
    "Transaction",
    "TransactionType",
    "TransitBridgeError",
    "TransitConfig",
    "TransitConfigError",
    "TransitError",
    "book_trip",
    "channel_name",
    "check_upcoming_trips",
    "redeem_reward",
]
