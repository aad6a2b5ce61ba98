# evently/api/v1/endpoints/rsvp.py
"""
RSVP endpoints: join, leave, status and the caller's upcoming attendances.

Join and leave always answer with either a committed capacity snapshot or a
stable rejection reason; storage error text never reaches the client.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from evently.api import deps
from evently.core.config import settings
from evently.core.limiter import limiter
from evently.db.session import get_db
from evently.schemas.admission import RegistrationResult, RejectionReason
from evently.schemas.rsvp import MyRsvp, RsvpCommitted, RsvpRejected, RsvpStatusResponse
from evently.schemas.token import TokenPayload
from evently.services import attendance_queries
from evently.services.registration_coordinator import registration_coordinator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rsvp", tags=["RSVP"])

REJECTION_STATUS_CODES = {
    RejectionReason.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    RejectionReason.EVENT_IN_PAST: status.HTTP_400_BAD_REQUEST,
    RejectionReason.EVENT_FULL: status.HTTP_409_CONFLICT,
    RejectionReason.ALREADY_RSVPED: status.HTTP_409_CONFLICT,
    RejectionReason.NOT_RSVPED: status.HTTP_404_NOT_FOUND,
    RejectionReason.NOT_OWNER: status.HTTP_403_FORBIDDEN,
    RejectionReason.TRANSIENT_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
    RejectionReason.INCONSISTENT_STATE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

REJECTION_RESPONSES = {
    code: {"model": RsvpRejected} for code in set(REJECTION_STATUS_CODES.values())
}


def _to_response(result: RegistrationResult, success_code: int):
    if result.committed:
        snapshot = result.snapshot
        body = RsvpCommitted(
            event_id=snapshot.event_id,
            confirmed_count=snapshot.confirmed_count,
            capacity=snapshot.capacity,
            available_spots=snapshot.available_spots,
        )
        return JSONResponse(status_code=success_code, content=body.model_dump(mode="json"))

    body = RsvpRejected(reason=result.reason)
    return JSONResponse(
        status_code=REJECTION_STATUS_CODES[result.reason],
        content=body.model_dump(mode="json"),
    )


@router.get("/my-rsvps", response_model=List[MyRsvp])
def list_my_rsvps(
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """The caller's active RSVPs for upcoming events."""
    return attendance_queries.my_active_attendances(db, caller_id=current_user.sub)


@router.get("/{eventId}/status", response_model=RsvpStatusResponse)
def get_rsvp_status(
    eventId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    active = attendance_queries.my_status(db, event_id=eventId, caller_id=current_user.sub)
    return {"active": active}


@router.post(
    "/{eventId}",
    response_model=RsvpCommitted,
    status_code=status.HTTP_201_CREATED,
    responses=REJECTION_RESPONSES,
)
@limiter.limit(settings.RSVP_RATE_LIMIT)
def join_event(
    request: Request,
    eventId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    RSVP to an event.

    Takes a seat only while the event has capacity left and the caller has
    no active RSVP for it. Rate limited per client address.
    """
    result = registration_coordinator.join(db, event_id=eventId, caller_id=current_user.sub)
    return _to_response(result, status.HTTP_201_CREATED)


@router.delete(
    "/{eventId}",
    response_model=RsvpCommitted,
    responses=REJECTION_RESPONSES,
)
@limiter.limit(settings.RSVP_RATE_LIMIT)
def leave_event(
    request: Request,
    eventId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Cancel the caller's RSVP and free the seat."""
    result = registration_coordinator.leave(db, event_id=eventId, caller_id=current_user.sub)
    return _to_response(result, status.HTTP_200_OK)
