"""Base models shared by every ghanatransit record.

Entity and input models inherit from :class:`TransitBaseModel`:

* frozen, so records handed out by the store cannot be mutated in place;
* ``extra="forbid"``, so misspelled field names fail at the boundary
  instead of being silently dropped.

API response projections inherit from :class:`CamelModel`, which adds
``alias_generator=to_camel`` so ``model_dump(by_alias=True)`` produces
the camelCase keys dashboard clients consume.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalise aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


UtcTimestamp = Annotated[datetime, AfterValidator(ensure_utc)]
"""Annotated type that guarantees a timezone-aware UTC datetime."""

JsonScalar = str | int | float | bool
"""Value type allowed in open metadata bags."""


class TransitBaseModel(BaseModel):
    """Base for stored entities and caller-supplied inputs."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
    )


class CamelModel(TransitBaseModel):
    """Base for JSON response projections with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel)
