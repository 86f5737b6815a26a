"""Booking records: reserved trips."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field, model_validator

from ghanatransit.models._base import TransitBaseModel, UtcTimestamp


class _BookingFields(TransitBaseModel):
    route_from: str
    route_to: str
    departure_date: str = Field(..., description="ISO date, e.g. 2025-01-01")
    departure_time: str = Field(..., description="Local departure time, e.g. 08:00")
    status: str = Field(..., description="Lifecycle status, e.g. pending/confirmed/cancelled")
    total_price: float
    booking_reference: str
    passengers: int
    fare_class: str = Field(..., alias="class")
    payment_method: str | None = Field(default=None, json_schema_extra={"redact": "full"})
    bus_number: str | None = None
    driver_name: str | None = None
    driver_phone: str | None = Field(default=None, json_schema_extra={"redact": "partial"})
    seat_numbers: list[str] | None = None


class NewBooking(_BookingFields):
    """Caller-supplied booking fields (id, owner and timestamp are injected)."""


class Booking(_BookingFields):
    """A reserved trip owned by exactly one owner key."""

    id: str
    user_id: str
    created_at: UtcTimestamp


class BookingUpdate(TransitBaseModel):
    """Partial booking update. Only explicitly supplied fields are merged."""

    _NON_NULLABLE: ClassVar[frozenset[str]] = frozenset(
        {
            "route_from",
            "route_to",
            "departure_date",
            "departure_time",
            "status",
            "total_price",
            "booking_reference",
            "passengers",
            "fare_class",
        }
    )

    route_from: str | None = None
    route_to: str | None = None
    departure_date: str | None = None
    departure_time: str | None = None
    status: str | None = None
    total_price: float | None = None
    booking_reference: str | None = None
    passengers: int | None = None
    fare_class: str | None = Field(default=None, alias="class")
    payment_method: str | None = None
    bus_number: str | None = None
    driver_name: str | None = None
    driver_phone: str | None = None
    seat_numbers: list[str] | None = None

    @model_validator(mode="after")
    def _reject_null_required(self) -> BookingUpdate:
        for name in self.model_fields_set & self._NON_NULLABLE:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be cleared")
        return self

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller supplied, keyed by field name."""
        return self.model_dump(exclude_unset=True)
