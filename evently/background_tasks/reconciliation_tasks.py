# evently/background_tasks/reconciliation_tasks.py
"""
Background task: bring each event's confirmed_count back in line with its
active attendance records.

The request path keeps the two consistent, except when a process dies between
the ledger step and the registry step of a join, or when a compensating
release cannot be applied. This job closes that gap.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from evently.crud.base import TransientStorageError
from evently.crud.crud_attendance import attendance_registry
from evently.crud.crud_capacity import capacity_ledger
from evently.db.session import SessionLocal
from evently.schemas.admission import LedgerOutcome

logger = logging.getLogger(__name__)

# Events with ledger activity more recent than this are skipped this round.
QUIET_PERIOD = timedelta(minutes=2)


def reconcile_event_counts(db: Session, *, quiet_period: timedelta = QUIET_PERIOD) -> int:
    """
    Re-derive confirmed_count for every drifted event.
    Returns the number of events corrected.
    """
    quiet_since = datetime.now(timezone.utc) - quiet_period
    corrected = 0

    for event_id in attendance_registry.drifted_event_ids(db):
        try:
            result = capacity_ledger.reconcile(db, event_id, quiet_since=quiet_since)
        except TransientStorageError:
            # Already logged by the ledger; try again next round.
            continue

        if result.outcome == LedgerOutcome.RECONCILED:
            corrected += 1
            logger.warning(
                f"Reconciled confirmed_count for event {event_id} to "
                f"{result.snapshot.confirmed_count}/{result.snapshot.capacity}",
                extra={"event_id": event_id},
            )

    return corrected


def run_reconciliation():
    """Scheduler entry point: owns its own database session."""
    db = SessionLocal()
    try:
        corrected = reconcile_event_counts(db)
        logger.info(f"Reconciliation finished, {corrected} events corrected")
    finally:
        db.close()
