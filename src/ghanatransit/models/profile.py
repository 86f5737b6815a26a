"""Per-owner aggregate state."""

from __future__ import annotations

from pydantic import Field

from ghanatransit.models._base import TransitBaseModel


class Profile(TransitBaseModel):
    id: str = Field(..., description="Owner key")
    loyalty_points: int = Field(..., ge=0)
