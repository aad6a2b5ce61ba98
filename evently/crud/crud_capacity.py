# evently/crud/crud_capacity.py
"""
Capacity ledger: the only writer of an event's `confirmed_count`.

Each operation is a single conditional UPDATE ... RETURNING against one event
row, committed on its own. The comparison and the increment happen inside the
storage engine's row update, so concurrent callers on any number of server
instances are serialized by the database and never by this process.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import and_, exists, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from evently.constants.rsvp import AttendanceStatus
from evently.crud.base import TransientStorageError
from evently.models.attendance import Attendance
from evently.models.event import Event
from evently.schemas.admission import CapacitySnapshot, LedgerOutcome, LedgerResult

logger = logging.getLogger(__name__)


class CRUDCapacity:
    """Atomic admit/release/resize operations on event counters."""

    def admit(self, db: Session, event_id: str) -> LedgerResult:
        """
        Take one seat if `confirmed_count < capacity`.

        Returns ADMITTED with the post-increment snapshot, CAPACITY_EXCEEDED
        when the event is full, or NOT_FOUND when there is no such event.
        """
        return self._conditional_update(
            db,
            event_id=event_id,
            condition=Event.confirmed_count < Event.capacity,
            values={"confirmed_count": Event.confirmed_count + 1},
            success=LedgerOutcome.ADMITTED,
            rejection=LedgerOutcome.CAPACITY_EXCEEDED,
            operation="ledger.admit",
        )

    def release(self, db: Session, event_id: str) -> LedgerResult:
        """Give one seat back if `confirmed_count > 0`."""
        return self._conditional_update(
            db,
            event_id=event_id,
            condition=Event.confirmed_count > 0,
            values={"confirmed_count": Event.confirmed_count - 1},
            success=LedgerOutcome.RELEASED,
            rejection=LedgerOutcome.AT_FLOOR,
            operation="ledger.release",
        )

    def resize(
        self, db: Session, event_id: str, new_capacity: int, *, details: Optional[dict] = None
    ) -> LedgerResult:
        """
        Change an event's capacity.
        Rejected with BELOW_CONFIRMED if seats already taken exceed the new value.

        `details` are descriptive column values written by the same statement,
        so they are applied together with the new capacity or not at all.
        """
        if new_capacity < 1:
            raise ValueError("Capacity must be at least 1")
        return self._conditional_update(
            db,
            event_id=event_id,
            condition=Event.confirmed_count <= new_capacity,
            values={**(details or {}), "capacity": new_capacity},
            success=LedgerOutcome.RESIZED,
            rejection=LedgerOutcome.BELOW_CONFIRMED,
            operation="ledger.resize",
        )

    def reconcile(
        self, db: Session, event_id: str, *, quiet_since: datetime
    ) -> LedgerResult:
        """
        Re-derive `confirmed_count` from the number of active attendance rows.

        Only applies when neither the event's counters nor any of its
        attendance records have changed since `quiet_since`. A join between
        its ledger and registry steps has touched the counters, and a leave
        between its registry and ledger steps has touched a record, so neither
        is counted twice. Never sets a count above capacity.
        """
        active_count = (
            select(func.count(Attendance.id))
            .where(
                and_(
                    Attendance.event_id == Event.id,
                    Attendance.status == AttendanceStatus.ACTIVE,
                )
            )
            .scalar_subquery()
        )
        recent_activity = exists().where(
            and_(
                Attendance.event_id == Event.id,
                Attendance.updated_at >= quiet_since,
            )
        )
        return self._conditional_update(
            db,
            event_id=event_id,
            condition=and_(
                Event.updated_at < quiet_since,
                ~recent_activity,
                Event.confirmed_count != active_count,
                active_count <= Event.capacity,
            ),
            values={"confirmed_count": active_count},
            success=LedgerOutcome.RECONCILED,
            rejection=LedgerOutcome.UNCHANGED,
            operation="ledger.reconcile",
        )

    def snapshot(self, db: Session, event_id: str) -> Optional[CapacitySnapshot]:
        """Read-only view of the current counters."""
        row = db.execute(
            select(Event.confirmed_count, Event.capacity).where(Event.id == event_id)
        ).first()
        if row is None:
            return None
        return CapacitySnapshot(
            event_id=event_id, confirmed_count=row.confirmed_count, capacity=row.capacity
        )

    def _conditional_update(
        self,
        db: Session,
        *,
        event_id: str,
        condition,
        values: dict,
        success: LedgerOutcome,
        rejection: LedgerOutcome,
        operation: str,
    ) -> LedgerResult:
        now = datetime.now(timezone.utc)
        try:
            result = db.execute(
                update(Event)
                .where(and_(Event.id == event_id, condition))
                .values(**values, updated_at=now)
                .returning(Event.confirmed_count, Event.capacity)
                .execution_options(synchronize_session=False)
            )
            row = result.first()

            if row is None:
                # Nothing matched: either the guard failed or the event is gone.
                exists = db.execute(
                    select(Event.id).where(Event.id == event_id)
                ).first() is not None
                db.commit()
                outcome = rejection if exists else LedgerOutcome.NOT_FOUND
                logger.info(f"{operation} rejected for event {event_id}: {outcome.value}")
                return LedgerResult(outcome=outcome)

            db.commit()
        except SQLAlchemyError as e:
            logger.error(
                f"{operation} failed for event {event_id}: {str(e)}",
                exc_info=True,
                extra={"event_id": event_id, "operation": operation},
            )
            db.rollback()
            raise TransientStorageError(operation, e) from e

        snapshot = CapacitySnapshot(
            event_id=event_id, confirmed_count=row.confirmed_count, capacity=row.capacity
        )
        logger.debug(
            f"{operation} applied for event {event_id}: "
            f"{snapshot.confirmed_count}/{snapshot.capacity}"
        )
        return LedgerResult(outcome=success, snapshot=snapshot)


# Singleton instance
capacity_ledger = CRUDCapacity()
