# evently/crud/crud_attendance.py
"""
Attendance registry: the only writer of an attendance record's status.

At most one record exists per (event, caller) pair, guaranteed by the
`unique_attendance_event_caller` constraint. Joins flip a cancelled record
back to active or insert a new one; a losing concurrent insert surfaces as an
IntegrityError and is reported as ALREADY_ACTIVE.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import and_, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from evently.constants.rsvp import AttendanceStatus
from evently.crud.base import TransientStorageError
from evently.models.attendance import Attendance
from evently.models.event import Event
from evently.models.user import User
from evently.schemas.admission import RegistryOutcome

logger = logging.getLogger(__name__)


class CRUDAttendance:
    """Status transitions and lookups for attendance records."""

    def activate(self, db: Session, *, event_id: str, caller_id: str) -> RegistryOutcome:
        """
        Make the caller an active attendee of the event.

        Returns CREATED for a first join, REACTIVATED when a cancelled record
        was flipped back, and ALREADY_ACTIVE when the pair is already active.
        Raises TransientStorageError on any other storage fault.
        """
        now = datetime.now(timezone.utc)
        try:
            flipped = db.execute(
                update(Attendance)
                .where(
                    and_(
                        Attendance.event_id == event_id,
                        Attendance.caller_id == caller_id,
                        Attendance.status == AttendanceStatus.CANCELLED,
                    )
                )
                .values(status=AttendanceStatus.ACTIVE, updated_at=now)
                .returning(Attendance.id)
                .execution_options(synchronize_session=False)
            ).scalar_one_or_none()

            if flipped is not None:
                db.commit()
                logger.info(f"Attendance reactivated for caller {caller_id}, event {event_id}")
                return RegistryOutcome.REACTIVATED

            db.execute(
                insert(Attendance).values(
                    event_id=event_id,
                    caller_id=caller_id,
                    status=AttendanceStatus.ACTIVE,
                    created_at=now,
                    updated_at=now,
                )
            )
            db.commit()
            logger.info(f"Attendance created for caller {caller_id}, event {event_id}")
            return RegistryOutcome.CREATED

        except IntegrityError as e:
            db.rollback()
            # The constraint that fired is only the pair constraint if the pair
            # now has a record; otherwise the event row itself disappeared.
            if self.get_by_pair(db, event_id=event_id, caller_id=caller_id) is not None:
                logger.warning(
                    f"Duplicate activation rejected for caller {caller_id}, event {event_id}"
                )
                return RegistryOutcome.ALREADY_ACTIVE
            raise TransientStorageError("attendance.activate", e) from e

        except SQLAlchemyError as e:
            logger.error(
                f"Failed to activate attendance for caller {caller_id}, event {event_id}: {str(e)}",
                exc_info=True,
                extra={"caller_id": caller_id, "event_id": event_id},
            )
            db.rollback()
            raise TransientStorageError("attendance.activate", e) from e

    def deactivate(self, db: Session, *, event_id: str, caller_id: str) -> RegistryOutcome:
        """Flip an active record to cancelled; NOT_ACTIVE if there is none."""
        now = datetime.now(timezone.utc)
        try:
            cancelled = db.execute(
                update(Attendance)
                .where(
                    and_(
                        Attendance.event_id == event_id,
                        Attendance.caller_id == caller_id,
                        Attendance.status == AttendanceStatus.ACTIVE,
                    )
                )
                .values(status=AttendanceStatus.CANCELLED, updated_at=now)
                .returning(Attendance.id)
                .execution_options(synchronize_session=False)
            ).scalar_one_or_none()
            db.commit()
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to cancel attendance for caller {caller_id}, event {event_id}: {str(e)}",
                exc_info=True,
                extra={"caller_id": caller_id, "event_id": event_id},
            )
            db.rollback()
            raise TransientStorageError("attendance.deactivate", e) from e

        if cancelled is None:
            logger.info(f"No active attendance for caller {caller_id}, event {event_id}")
            return RegistryOutcome.NOT_ACTIVE

        logger.info(f"Attendance cancelled for caller {caller_id}, event {event_id}")
        return RegistryOutcome.CANCELLED

    def get_by_pair(
        self, db: Session, *, event_id: str, caller_id: str
    ) -> Optional[Attendance]:
        """Get the caller's record for an event (any status)."""
        return db.query(Attendance).filter(
            and_(
                Attendance.event_id == event_id,
                Attendance.caller_id == caller_id,
            )
        ).first()

    def status_of(self, db: Session, *, event_id: str, caller_id: str) -> str:
        """Return 'active', 'cancelled' or 'none'."""
        status = db.execute(
            select(Attendance.status).where(
                and_(
                    Attendance.event_id == event_id,
                    Attendance.caller_id == caller_id,
                )
            )
        ).scalar_one_or_none()
        return status if status is not None else AttendanceStatus.NONE

    def active_event_ids(
        self, db: Session, *, caller_id: str, event_ids: List[str]
    ) -> set[str]:
        """Subset of `event_ids` the caller is actively attending."""
        if not event_ids:
            return set()
        rows = db.execute(
            select(Attendance.event_id).where(
                and_(
                    Attendance.caller_id == caller_id,
                    Attendance.event_id.in_(event_ids),
                    Attendance.status == AttendanceStatus.ACTIVE,
                )
            )
        ).scalars()
        return set(rows)

    def count_active(self, db: Session, *, event_id: str) -> int:
        """Count active records for an event."""
        return db.query(func.count(Attendance.id)).filter(
            and_(
                Attendance.event_id == event_id,
                Attendance.status == AttendanceStatus.ACTIVE,
            )
        ).scalar() or 0

    def list_active_by_event(
        self, db: Session, *, event_id: str
    ) -> List[Tuple[Attendance, Optional[User]]]:
        """Active records for an event with the attendee's profile, earliest first."""
        return (
            db.query(Attendance, User)
            .outerjoin(User, User.id == Attendance.caller_id)
            .filter(
                and_(
                    Attendance.event_id == event_id,
                    Attendance.status == AttendanceStatus.ACTIVE,
                )
            )
            .order_by(Attendance.updated_at.asc())
            .all()
        )

    def list_active_by_caller(
        self, db: Session, *, caller_id: str, upcoming_only: bool = True
    ) -> List[Tuple[Attendance, Event]]:
        """A caller's active records joined with their events and creators, newest first."""
        query = (
            db.query(Attendance, Event)
            .join(Event, Event.id == Attendance.event_id)
            .options(joinedload(Event.owner))
            .filter(
                and_(
                    Attendance.caller_id == caller_id,
                    Attendance.status == AttendanceStatus.ACTIVE,
                )
            )
        )
        if upcoming_only:
            query = query.filter(Event.date >= datetime.now(timezone.utc))
        return query.order_by(Attendance.updated_at.desc()).all()

    def drifted_event_ids(self, db: Session) -> List[str]:
        """Events whose confirmed_count differs from their active record count."""
        active_counts = (
            select(
                Attendance.event_id.label("event_id"),
                func.count(Attendance.id).label("active"),
            )
            .where(Attendance.status == AttendanceStatus.ACTIVE)
            .group_by(Attendance.event_id)
            .subquery()
        )
        rows = db.execute(
            select(Event.id)
            .outerjoin(active_counts, active_counts.c.event_id == Event.id)
            .where(Event.confirmed_count != func.coalesce(active_counts.c.active, 0))
        ).scalars()
        return list(rows)

    def delete_by_event(self, db: Session, *, event_id: str) -> int:
        """
        Delete every record of an event without committing, so the caller can
        delete the event itself in the same transaction.
        """
        result = db.execute(
            delete(Attendance)
            .where(Attendance.event_id == event_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


# Singleton instance
attendance_registry = CRUDAttendance()
