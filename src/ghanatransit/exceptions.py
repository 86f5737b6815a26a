"""Custom exception hierarchy for ghanatransit."""

from __future__ import annotations


class TransitError(Exception):
    """Base exception for all ghanatransit errors."""


class TransitConfigError(TransitError):
    """Invalid or missing configuration."""


class TransitBridgeError(TransitError):
    """Realtime bridge failure (broker not connected, publish rejected)."""

    def __init__(
        self,
        message: str,
        *,
        topic: str = "",
        rc: int | None = None,
    ) -> None:
        self.topic = topic
        self.rc = rc
        super().__init__(message)


class InsufficientPointsError(TransitError):
    """Loyalty balance is too low for the requested redemption."""

    def __init__(self, message: str, *, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(message)

    @property
    def shortfall(self) -> int:
        return self.required - self.available
