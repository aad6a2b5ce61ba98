# evently/models/event.py
from sqlalchemy import (
    Column,
    String,
    DateTime,
    Integer,
    CheckConstraint,
    text,
    func,
)
from sqlalchemy.orm import relationship
from evently.db.base_class import Base
import uuid


class Event(Base):
    """
    Event model carrying its own admission counters.

    `confirmed_count` is only ever changed by the capacity ledger through a
    conditional UPDATE; the CHECK constraints below back the same bounds at
    the schema level.
    """
    __tablename__ = "events"

    id = Column(
        String, primary_key=True, default=lambda: f"evt_{uuid.uuid4().hex[:12]}"
    )
    # No FK - identity is external
    owner_id = Column(String, nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(2000), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    location = Column(String(200), nullable=False)
    image_url = Column(String, nullable=True)
    capacity = Column(Integer, nullable=False)
    confirmed_count = Column(Integer, nullable=False, server_default=text("0"), default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    owner = relationship(
        "User",
        primaryjoin="foreign(Event.owner_id) == User.id",
        viewonly=True,
    )
    attendances = relationship(
        "Attendance",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("capacity >= 1", name="check_event_capacity_positive"),
        CheckConstraint("confirmed_count >= 0", name="check_event_confirmed_non_negative"),
        CheckConstraint(
            "confirmed_count <= capacity", name="check_event_confirmed_lte_capacity"
        ),
    )

    @property
    def available_spots(self) -> int:
        return max(0, self.capacity - self.confirmed_count)

    @property
    def is_full(self) -> bool:
        # Display only; admission decisions go through the ledger.
        return self.confirmed_count >= self.capacity
