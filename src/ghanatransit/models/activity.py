"""Activity records: logged user actions."""

from __future__ import annotations

from pydantic import Field

from ghanatransit.models._base import JsonScalar, TransitBaseModel, UtcTimestamp


class _ActivityFields(TransitBaseModel):
    activity_type: str
    description: str
    points_earned: int | None = None
    metadata: dict[str, JsonScalar] = Field(
        default_factory=dict,
        description="Open key-value bag; values are JSON scalars only.",
    )


class NewActivity(_ActivityFields):
    """Caller-supplied activity fields."""


class Activity(_ActivityFields):
    id: str
    user_id: str
    created_at: UtcTimestamp
