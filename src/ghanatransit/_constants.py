"""Internal constants shared across the library."""

DEFAULT_LOYALTY_POINTS = 320

DEFAULT_BOOKINGS_LIMIT = 5
DEFAULT_ACTIVITIES_LIMIT = 10
DEFAULT_TRANSACTIONS_LIMIT = 50

# ------------------------------------------------------------------
# Dashboard projections
# ------------------------------------------------------------------

UPCOMING_TRIPS_LIMIT = 5
RECENT_ACTIVITIES_LIMIT = 10
CONFIRMED_STATUS = "confirmed"
PLACEHOLDER = "N/A"
DEFAULT_BUS_TYPE = "Standard"

DEFAULT_NOTIFICATIONS_LIMIT = 50

# ------------------------------------------------------------------
# Booking and rewards flows
# ------------------------------------------------------------------

LOYALTY_POINTS_RATE = 0.1
REWARD_CODE_PREFIX = "GH"
REWARD_VALIDITY_DAYS = 30
