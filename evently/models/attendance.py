# evently/models/attendance.py
"""
Attendance model: one row per (event, caller) pair.

The row is flipped between active and cancelled instead of being re-inserted,
so the unique constraint on the pair is what rejects a concurrent duplicate
join.
"""

import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Index, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from evently.db.base_class import Base
from evently.constants.rsvp import AttendanceStatus


class Attendance(Base):
    __tablename__ = "attendances"

    id = Column(String, primary_key=True, default=lambda: f"att_{uuid.uuid4().hex[:12]}")
    event_id = Column(String, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    caller_id = Column(String, nullable=False, index=True)  # No FK - identity is external
    status = Column(String(20), nullable=False, server_default=AttendanceStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    event = relationship("Event", back_populates="attendances")

    __table_args__ = (
        UniqueConstraint("event_id", "caller_id", name="unique_attendance_event_caller"),
        Index("ix_attendances_event_status", "event_id", "status"),
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in AttendanceStatus.all_values()) + ")",
            name="check_attendance_status",
        ),
    )
