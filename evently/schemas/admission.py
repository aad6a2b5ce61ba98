# evently/schemas/admission.py
"""
Result types for RSVP admission control.

Every expected business outcome (full event, duplicate join, leave without a
join) is a returned value, never an exception. Only storage faults are raised.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class LedgerOutcome(str, Enum):
    """Outcome of a conditional update on an event's counters."""
    ADMITTED = "ADMITTED"
    RELEASED = "RELEASED"
    RESIZED = "RESIZED"
    RECONCILED = "RECONCILED"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    AT_FLOOR = "AT_FLOOR"
    BELOW_CONFIRMED = "BELOW_CONFIRMED"
    UNCHANGED = "UNCHANGED"
    NOT_FOUND = "NOT_FOUND"


class RegistryOutcome(str, Enum):
    """Outcome of a status flip on an attendance record."""
    CREATED = "CREATED"
    REACTIVATED = "REACTIVATED"
    ALREADY_ACTIVE = "ALREADY_ACTIVE"
    CANCELLED = "CANCELLED"
    NOT_ACTIVE = "NOT_ACTIVE"


class RegistrationStatus(str, Enum):
    COMMITTED = "Committed"
    REJECTED = "Rejected"


class RejectionReason(str, Enum):
    """Stable reason codes surfaced to callers."""
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    EVENT_IN_PAST = "EVENT_IN_PAST"
    EVENT_FULL = "EVENT_FULL"
    ALREADY_RSVPED = "ALREADY_RSVPED"
    NOT_RSVPED = "NOT_RSVPED"
    NOT_OWNER = "NOT_OWNER"
    TRANSIENT_ERROR = "TRANSIENT_ERROR"
    INCONSISTENT_STATE = "INCONSISTENT_STATE"


@dataclass(frozen=True)
class CapacitySnapshot:
    """Counters of one event as returned by a ledger update."""
    event_id: str
    confirmed_count: int
    capacity: int

    @property
    def available_spots(self) -> int:
        return max(0, self.capacity - self.confirmed_count)


@dataclass(frozen=True)
class LedgerResult:
    outcome: LedgerOutcome
    snapshot: Optional[CapacitySnapshot] = None

    @property
    def ok(self) -> bool:
        return self.outcome in (
            LedgerOutcome.ADMITTED,
            LedgerOutcome.RELEASED,
            LedgerOutcome.RESIZED,
            LedgerOutcome.RECONCILED,
        )


@dataclass(frozen=True)
class RegistrationResult:
    """Final answer of a join or leave request."""
    status: RegistrationStatus
    reason: Optional[RejectionReason] = None
    snapshot: Optional[CapacitySnapshot] = None

    @property
    def committed(self) -> bool:
        return self.status == RegistrationStatus.COMMITTED

    @classmethod
    def commit(cls, snapshot: CapacitySnapshot) -> "RegistrationResult":
        return cls(status=RegistrationStatus.COMMITTED, snapshot=snapshot)

    @classmethod
    def reject(cls, reason: RejectionReason) -> "RegistrationResult":
        return cls(status=RegistrationStatus.REJECTED, reason=reason)
