# evently/schemas/rsvp.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from evently.schemas.admission import RegistrationStatus, RejectionReason
from evently.schemas.event import EventOwner


class RsvpCommitted(BaseModel):
    status: RegistrationStatus = RegistrationStatus.COMMITTED
    event_id: str
    confirmed_count: int
    capacity: int
    available_spots: int


class RsvpRejected(BaseModel):
    status: RegistrationStatus = RegistrationStatus.REJECTED
    reason: RejectionReason


class RsvpStatusResponse(BaseModel):
    active: bool


class RosterEntry(BaseModel):
    caller_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    joined_at: datetime


class RosterResponse(BaseModel):
    event_id: str
    title: str
    confirmed_count: int
    capacity: int
    attendees: list[RosterEntry]


class MyRsvpEvent(BaseModel):
    id: str
    title: str
    description: str
    date: datetime
    location: str
    image_url: Optional[str] = None
    capacity: int
    confirmed_count: int
    owner: Optional[EventOwner] = None

    model_config = {"from_attributes": True}


class MyRsvp(BaseModel):
    attendance_id: str
    joined_at: datetime
    event: MyRsvpEvent
