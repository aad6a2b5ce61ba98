from datetime import datetime, timedelta, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from evently.crud import crud_event
from evently.models.attendance import Attendance
from evently.models.event import Event
from evently.schemas.event import EventCreate


def create_random_event(
    db: Session,
    owner_id: str = "owner_test",
    capacity: int = 10,
    title: str = "Test Event",
    days_ahead: int = 10,
) -> Event:
    """
    Creates a dummy event for testing purposes.
    A negative `days_ahead` gives an event that has already happened.
    """
    event_in = EventCreate(
        title=title,
        description="An event created by the test suite",
        date=datetime.now(timezone.utc) + timedelta(days=days_ahead),
        location="Test Hall",
        capacity=capacity,
    )
    return crud_event.event.create_with_owner(db, obj_in=event_in, owner_id=owner_id)


def force_confirmed_count(db: Session, event_id: str, confirmed_count: int) -> None:
    """Overwrite the counter directly, bypassing the ledger, to simulate drift."""
    db.execute(
        update(Event)
        .where(Event.id == event_id)
        .values(confirmed_count=confirmed_count)
        .execution_options(synchronize_session=False)
    )
    db.commit()


def backdate_activity(db: Session, event_id: str, minutes: int) -> None:
    """Move the event's and its attendance records' last change into the past."""
    past = datetime.now(timezone.utc) - timedelta(minutes=minutes)
    db.execute(
        update(Event)
        .where(Event.id == event_id)
        .values(updated_at=past)
        .execution_options(synchronize_session=False)
    )
    db.execute(
        update(Attendance)
        .where(Attendance.event_id == event_id)
        .values(updated_at=past)
        .execution_options(synchronize_session=False)
    )
    db.commit()
