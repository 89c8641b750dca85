from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.utils.constants import MAX_PARTICIPANTS


class PlanCreate(BaseModel):
    """Plan fields as the web client sends them (camelCase aliases)."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=50)
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    place_name: str = Field(alias="placeName", min_length=1, max_length=300)
    starts_at: datetime = Field(alias="datetime")
    max_participants: int = Field(alias="maxParticipants", ge=1, le=MAX_PARTICIPANTS)

    @field_validator("starts_at")
    @classmethod
    def must_be_future(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        if v <= datetime.now(timezone.utc):
            raise ValueError("Date must be in the future")
        return v
