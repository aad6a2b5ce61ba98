# evently/constants/rsvp.py
"""
Constants for attendance status values.

Provides type-safe constants to replace hardcoded strings throughout the codebase.
"""


class AttendanceStatus:
    """Attendance record status values."""
    ACTIVE = "active"
    CANCELLED = "cancelled"
    # Reserved for a future waitlist; nothing writes it yet.
    WAITLISTED = "waitlisted"

    # Returned by status lookups when the pair has no record at all.
    NONE = "none"

    @classmethod
    def all_values(cls) -> list[str]:
        """Return all valid stored status values."""
        return [cls.ACTIVE, cls.CANCELLED, cls.WAITLISTED]
