# evently/services/registration_coordinator.py
"""
Registration Coordinator

Runs a join or leave request across the capacity ledger and the attendance
registry as one all-or-nothing operation:

- join:  ledger.admit -> registry.activate, releasing the seat again if the
         registry step fails
- leave: registry.deactivate -> ledger.release, surfacing (not undoing) a
         release that finds the counter already at zero

No in-process locks are taken. Per-event mutual exclusion comes only from
the ledger's conditional UPDATE, and duplicate joins are stopped by the
attendance unique constraint.
"""

import logging
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import (
    Retrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from evently.constants.rsvp import AttendanceStatus
from evently.core.config import settings
from evently.crud.base import TransientStorageError
from evently.crud.crud_attendance import attendance_registry, CRUDAttendance
from evently.crud.crud_capacity import capacity_ledger, CRUDCapacity
from evently.crud.crud_event import event as event_crud, CRUDEvent
from evently.schemas.admission import (
    LedgerOutcome,
    LedgerResult,
    RegistryOutcome,
    RegistrationResult,
    RejectionReason,
)

logger = logging.getLogger(__name__)


class RequestState(str, Enum):
    """Where a join/leave request stopped; attached to log records."""
    START = "Start"
    LEDGER_PENDING = "LedgerPending"
    LEDGER_REJECTED = "LedgerRejected"
    LEDGER_ADMITTED = "LedgerAdmitted"
    REGISTRY_PENDING = "RegistryPending"
    REGISTRY_REJECTED = "RegistryRejected"
    COMPENSATING = "Compensating"
    COMPENSATED_RELEASED = "CompensatedReleased"
    COMMITTED = "Committed"


class RegistrationCoordinator:
    """Join/leave orchestration with compensation on partial failure."""

    def __init__(
        self,
        ledger: CRUDCapacity = capacity_ledger,
        registry: CRUDAttendance = attendance_registry,
        events: CRUDEvent = event_crud,
        compensation_attempts: int | None = None,
        compensation_wait=None,
    ):
        self.ledger = ledger
        self.registry = registry
        self.events = events
        if compensation_attempts is None:
            compensation_attempts = settings.COMPENSATION_MAX_ATTEMPTS
        if compensation_attempts < 1:
            raise ValueError("compensation_attempts must be at least 1")
        self.compensation_attempts = compensation_attempts
        if compensation_wait is None:
            compensation_wait = wait_exponential(
                multiplier=settings.COMPENSATION_BACKOFF_SECONDS, max=2
            )
        self.compensation_wait = compensation_wait

    # ========================================
    # Join
    # ========================================

    def join(self, db: Session, *, event_id: str, caller_id: str) -> RegistrationResult:
        """Take a seat at an event for the caller."""
        try:
            if not self.events.exists(db, id=event_id):
                return RegistrationResult.reject(RejectionReason.EVENT_NOT_FOUND)
            if not self.events.is_future(db, id=event_id):
                return RegistrationResult.reject(RejectionReason.EVENT_IN_PAST)
            # Read-only shortcut for the common double-click; the unique
            # constraint below still decides races.
            current = self.registry.status_of(db, event_id=event_id, caller_id=caller_id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                f"Join precondition lookup failed for event {event_id}: {str(e)}",
                exc_info=True,
                extra={"event_id": event_id, "caller_id": caller_id},
            )
            return RegistrationResult.reject(RejectionReason.TRANSIENT_ERROR)

        if current == AttendanceStatus.ACTIVE:
            return RegistrationResult.reject(RejectionReason.ALREADY_RSVPED)

        # Step 1: ledger
        try:
            admitted = self.ledger.admit(db, event_id)
        except TransientStorageError:
            self._log_state(RequestState.LEDGER_REJECTED, event_id, caller_id)
            return RegistrationResult.reject(RejectionReason.TRANSIENT_ERROR)

        if admitted.outcome == LedgerOutcome.CAPACITY_EXCEEDED:
            return RegistrationResult.reject(RejectionReason.EVENT_FULL)
        if admitted.outcome == LedgerOutcome.NOT_FOUND:
            return RegistrationResult.reject(RejectionReason.EVENT_NOT_FOUND)

        # Step 2: registry
        try:
            activated = self.registry.activate(db, event_id=event_id, caller_id=caller_id)
        except TransientStorageError:
            self._log_state(RequestState.REGISTRY_REJECTED, event_id, caller_id)
            self._compensate(db, event_id=event_id, caller_id=caller_id)
            return RegistrationResult.reject(RejectionReason.TRANSIENT_ERROR)

        if activated == RegistryOutcome.ALREADY_ACTIVE:
            # A concurrent duplicate join won the insert; give the seat back.
            self._log_state(RequestState.REGISTRY_REJECTED, event_id, caller_id)
            if not self._compensate(db, event_id=event_id, caller_id=caller_id):
                return RegistrationResult.reject(RejectionReason.TRANSIENT_ERROR)
            return RegistrationResult.reject(RejectionReason.ALREADY_RSVPED)

        logger.info(
            f"User {caller_id} joined event {event_id} "
            f"({admitted.snapshot.confirmed_count}/{admitted.snapshot.capacity})"
        )
        return RegistrationResult.commit(admitted.snapshot)

    # ========================================
    # Leave
    # ========================================

    def leave(self, db: Session, *, event_id: str, caller_id: str) -> RegistrationResult:
        """Give up the caller's seat at an event."""
        try:
            deactivated = self.registry.deactivate(db, event_id=event_id, caller_id=caller_id)
        except TransientStorageError:
            return RegistrationResult.reject(RejectionReason.TRANSIENT_ERROR)

        if deactivated == RegistryOutcome.NOT_ACTIVE:
            return RegistrationResult.reject(RejectionReason.NOT_RSVPED)

        try:
            released = self._release_with_retry(db, event_id)
        except TransientStorageError:
            logger.error(
                f"Seat release failed after cancelling attendance of {caller_id} "
                f"for event {event_id}; confirmed_count is overstated until reconciled",
                extra={"event_id": event_id, "caller_id": caller_id},
            )
            return RegistrationResult.reject(RejectionReason.TRANSIENT_ERROR)

        if not released.ok:
            # Cancelled record but nothing to release: the counter and the
            # registry disagree. Surface it, do not re-activate.
            logger.error(
                f"Inconsistent state on leave: event {event_id}, caller {caller_id}, "
                f"ledger outcome {released.outcome.value}",
                extra={
                    "event_id": event_id,
                    "caller_id": caller_id,
                    "ledger_outcome": released.outcome.value,
                },
            )
            return RegistrationResult.reject(RejectionReason.INCONSISTENT_STATE)

        logger.info(
            f"User {caller_id} left event {event_id} "
            f"({released.snapshot.confirmed_count}/{released.snapshot.capacity})"
        )
        return RegistrationResult.commit(released.snapshot)

    # ========================================
    # Compensation
    # ========================================

    def _release_with_retry(self, db: Session, event_id: str) -> LedgerResult:
        retryer = Retrying(
            stop=stop_after_attempt(self.compensation_attempts),
            wait=self.compensation_wait,
            retry=retry_if_exception_type(TransientStorageError),
            reraise=True,
        )
        return retryer(self.ledger.release, db, event_id)

    def _compensate(self, db: Session, *, event_id: str, caller_id: str) -> bool:
        """
        Undo a successful admit. Returns False if the seat could not be
        given back, leaving confirmed_count overstated for reconciliation.
        """
        self._log_state(RequestState.COMPENSATING, event_id, caller_id)
        try:
            released = self._release_with_retry(db, event_id)
        except TransientStorageError:
            logger.error(
                f"Compensating release failed for event {event_id} after "
                f"{self.compensation_attempts} attempts; confirmed_count is overstated "
                f"until reconciled",
                extra={"event_id": event_id, "caller_id": caller_id},
            )
            return False

        if not released.ok:
            logger.warning(
                f"Compensating release for event {event_id} returned {released.outcome.value}",
                extra={"event_id": event_id, "caller_id": caller_id},
            )
            return True

        self._log_state(RequestState.COMPENSATED_RELEASED, event_id, caller_id)
        return True

    @staticmethod
    def _log_state(state: RequestState, event_id: str, caller_id: str) -> None:
        logger.debug(
            f"Registration for caller {caller_id}, event {event_id} -> {state.value}",
            extra={"event_id": event_id, "caller_id": caller_id, "state": state.value},
        )


# Singleton instance
registration_coordinator = RegistrationCoordinator()
