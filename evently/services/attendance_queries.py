# evently/services/attendance_queries.py
"""Read-only attendance projections."""

from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from evently.constants.rsvp import AttendanceStatus
from evently.crud.crud_attendance import attendance_registry
from evently.crud.crud_event import event as event_crud
from evently.schemas.admission import RejectionReason
from evently.schemas.rsvp import MyRsvp, MyRsvpEvent, RosterEntry, RosterResponse


def my_status(db: Session, *, event_id: str, caller_id: str) -> bool:
    """True if the caller currently holds an active attendance for the event."""
    status = attendance_registry.status_of(db, event_id=event_id, caller_id=caller_id)
    return status == AttendanceStatus.ACTIVE


def my_active_attendances(db: Session, *, caller_id: str) -> List[MyRsvp]:
    """The caller's active attendances for events that have not happened yet."""
    rows = attendance_registry.list_active_by_caller(db, caller_id=caller_id)
    return [
        MyRsvp(
            attendance_id=attendance.id,
            joined_at=attendance.updated_at,
            event=MyRsvpEvent.model_validate(event),
        )
        for attendance, event in rows
    ]


def roster_of(
    db: Session, *, event_id: str, requester_id: str
) -> Tuple[Optional[RosterResponse], Optional[RejectionReason]]:
    """
    Active attendees of an event, visible to the event owner only.

    Returns (roster, None) on success or (None, reason) when the event does
    not exist or the requester does not own it.
    """
    event = event_crud.get(db, id=event_id)
    if not event:
        return None, RejectionReason.EVENT_NOT_FOUND
    if event.owner_id != requester_id:
        return None, RejectionReason.NOT_OWNER

    rows = attendance_registry.list_active_by_event(db, event_id=event_id)
    attendees = [
        RosterEntry(
            caller_id=attendance.caller_id,
            name=user.name if user else None,
            email=user.email if user else None,
            joined_at=attendance.updated_at,
        )
        for attendance, user in rows
    ]
    return (
        RosterResponse(
            event_id=event.id,
            title=event.title,
            confirmed_count=event.confirmed_count,
            capacity=event.capacity,
            attendees=attendees,
        ),
        None,
    )
