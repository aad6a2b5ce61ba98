# evently/api/v1/endpoints/events.py
import math
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from evently.api import deps
from evently.crud import crud_attendance, crud_capacity, crud_event
from evently.db.session import get_db
from evently.schemas.admission import LedgerOutcome, RejectionReason
from evently.schemas.event import (
    Event as EventSchema,
    EventCreate,
    EventUpdate,
    PaginatedEvent,
)
from evently.schemas.rsvp import RosterResponse
from evently.schemas.token import TokenPayload
from evently.services import attendance_queries

router = APIRouter(prefix="/events", tags=["Events"])


def _serialize(event, rsvped_ids: set[str] = frozenset()) -> EventSchema:
    return EventSchema.model_validate(event).model_copy(
        update={"has_rsvped": event.id in rsvped_ids}
    )


def _get_owned_event(db: Session, event_id: str, user_id: str):
    event = crud_event.event.get_with_owner(db, id=event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    if event.owner_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized. Only the event creator can modify this event.",
        )
    return event


@router.post("", response_model=EventSchema, status_code=status.HTTP_201_CREATED)
def create_event(
    event_in: EventCreate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Creates a new event owned by the current user."""
    if event_in.date <= datetime.now(timezone.utc):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Event date must be in the future",
        )
    event = crud_event.event.create_with_owner(db, obj_in=event_in, owner_id=current_user.sub)
    return _serialize(event)


@router.get("", response_model=PaginatedEvent)
def list_events(
    db: Session = Depends(get_db),
    current_user: TokenPayload | None = Depends(deps.get_current_user_optional),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    search: str | None = Query(None, max_length=100),
    mine: bool = Query(False, description="Only events created by the caller"),
):
    """Retrieves a paginated list of upcoming events, earliest first."""
    owner_id = current_user.sub if (mine and current_user) else None
    result = crud_event.event.get_upcoming(
        db, skip=(page - 1) * limit, limit=limit, search=search, owner_id=owner_id
    )
    events, total = result["events"], result["totalCount"]

    rsvped_ids: set[str] = set()
    if current_user:
        rsvped_ids = crud_attendance.attendance_registry.active_event_ids(
            db, caller_id=current_user.sub, event_ids=[e.id for e in events]
        )

    return {
        "data": [_serialize(e, rsvped_ids) for e in events],
        "pagination": {
            "totalItems": total,
            "totalPages": math.ceil(total / limit),
            "currentPage": page,
            "hasMore": page * limit < total,
        },
    }


@router.get("/mine", response_model=List[EventSchema])
def list_my_events(
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """All events created by the current user, past ones included."""
    return [
        _serialize(e) for e in crud_event.event.get_by_owner(db, owner_id=current_user.sub)
    ]


@router.get("/{eventId}", response_model=EventSchema)
def get_event_by_id(
    eventId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload | None = Depends(deps.get_current_user_optional),
):
    """Get a specific event by its ID."""
    event = crud_event.event.get_with_owner(db, id=eventId)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    rsvped_ids: set[str] = set()
    if current_user and attendance_queries.my_status(
        db, event_id=eventId, caller_id=current_user.sub
    ):
        rsvped_ids = {eventId}
    return _serialize(event, rsvped_ids)


@router.patch("/{eventId}", response_model=EventSchema)
def update_event(
    eventId: str,
    event_in: EventUpdate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Partially update an event. Capacity cannot drop below confirmed seats.

    A capacity change and the descriptive fields sent with it are written by
    one conditional statement, so a rejected resize changes nothing.
    """
    event = _get_owned_event(db, eventId, current_user.sub)

    if event_in.capacity is not None and event_in.capacity != event.capacity:
        resized = crud_capacity.capacity_ledger.resize(
            db,
            eventId,
            event_in.capacity,
            details=crud_event.event.detail_values(event_in),
        )
        if resized.outcome == LedgerOutcome.NOT_FOUND:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
        if resized.outcome == LedgerOutcome.BELOW_CONFIRMED:
            snapshot = crud_capacity.capacity_ledger.snapshot(db, eventId)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=(
                    "Cannot reduce capacity below current attendee count "
                    f"({snapshot.confirmed_count if snapshot else 0})"
                ),
            )
        # The resize committed; reload so the ORM object carries fresh values.
        return _serialize(crud_event.event.get_with_owner(db, id=eventId))

    event = crud_event.event.update_details(db, db_obj=event, obj_in=event_in)
    return _serialize(event)


@router.delete("/{eventId}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    eventId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Deletes an event and every attendance record attached to it."""
    _get_owned_event(db, eventId, current_user.sub)
    if not crud_event.event.remove_with_attendances(db, id=eventId):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{eventId}/attendees", response_model=RosterResponse)
def list_attendees(
    eventId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Roster of active attendees; only the event creator may view it."""
    roster, reason = attendance_queries.roster_of(
        db, event_id=eventId, requester_id=current_user.sub
    )
    if reason == RejectionReason.EVENT_NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    if reason == RejectionReason.NOT_OWNER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized. Only the event creator can view attendees.",
        )
    return roster
