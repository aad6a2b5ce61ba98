# evently/schemas/event.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime, timezone


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EventOwner(BaseModel):
    id: str
    name: str
    email: str

    model_config = {"from_attributes": True}


class Event(BaseModel):
    id: str = Field(..., json_schema_extra={"example": "evt_c5a6d8e0f9b1"})
    title: str = Field(..., json_schema_extra={"example": "Community Meetup"})
    description: str
    date: datetime
    location: str
    image_url: Optional[str] = None
    capacity: int
    confirmed_count: int
    available_spots: int
    owner_id: str
    owner: Optional[EventOwner] = None
    created_at: datetime
    updated_at: datetime
    has_rsvped: bool = False

    model_config = {"from_attributes": True}


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=2000)
    date: datetime
    location: str = Field(..., min_length=1, max_length=200)
    capacity: int = Field(..., ge=1, le=100000)
    image_url: Optional[str] = None

    @field_validator("title", "description", "location")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Field cannot be blank")
        return value

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: datetime) -> datetime:
        return as_utc(value)


# Schema for updating an event. All fields are optional.
class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    date: Optional[datetime] = None
    location: Optional[str] = Field(None, min_length=1, max_length=200)
    capacity: Optional[int] = Field(None, ge=1, le=100000)
    image_url: Optional[str] = None

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None


class Pagination(BaseModel):
    totalItems: int
    totalPages: int
    currentPage: int
    hasMore: bool


class PaginatedEvent(BaseModel):
    data: List[Event]
    pagination: Pagination
