# evently/crud/crud_event.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from .base import CRUDBase, TransientStorageError
from .crud_attendance import attendance_registry
from evently.models.event import Event
from evently.schemas.event import EventCreate, EventUpdate

logger = logging.getLogger(__name__)


class CRUDEvent(CRUDBase[Event, EventCreate, EventUpdate]):

    def create_with_owner(self, db: Session, *, obj_in: EventCreate, owner_id: str) -> Event:
        db_obj = Event(**obj_in.model_dump(), owner_id=owner_id, confirmed_count=0)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        logger.info(f"Event {db_obj.id} created by {owner_id} with capacity {db_obj.capacity}")
        return db_obj

    def get_with_owner(self, db: Session, *, id: str) -> Optional[Event]:
        return (
            db.query(self.model)
            .options(joinedload(self.model.owner))
            .filter(self.model.id == id)
            .first()
        )

    def get_upcoming(
        self,
        db: Session,
        *,
        skip: int = 0,
        limit: int = 10,
        search: str | None = None,
        owner_id: str | None = None,
    ) -> dict:
        """
        Upcoming events ordered by date, with optional search and owner filter.
        Returns the page and the total count before pagination.
        """
        query = db.query(self.model).filter(
            self.model.date >= datetime.now(timezone.utc)
        )

        if owner_id:
            query = query.filter(self.model.owner_id == owner_id)

        # Filtering by search term
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    self.model.title.ilike(pattern),
                    self.model.description.ilike(pattern),
                    self.model.location.ilike(pattern),
                )
            )

        total_count = query.count()
        events = (
            query.options(joinedload(self.model.owner))
            .order_by(self.model.date.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return {"events": events, "totalCount": total_count}

    def get_by_owner(self, db: Session, *, owner_id: str) -> List[Event]:
        """All events created by a user, past ones included."""
        return (
            db.query(self.model)
            .options(joinedload(self.model.owner))
            .filter(self.model.owner_id == owner_id)
            .order_by(self.model.date.asc())
            .all()
        )

    # --- Metadata lookups used by the registration coordinator ---

    def exists(self, db: Session, *, id: str) -> bool:
        return db.query(self.model.id).filter(self.model.id == id).first() is not None

    def is_future(self, db: Session, *, id: str) -> bool:
        return (
            db.query(self.model.id)
            .filter(
                self.model.id == id,
                self.model.date > datetime.now(timezone.utc),
            )
            .first()
            is not None
        )

    def owner_of(self, db: Session, *, id: str) -> Optional[str]:
        row = db.query(self.model.owner_id).filter(self.model.id == id).first()
        return row.owner_id if row else None

    @staticmethod
    def detail_values(obj_in: EventUpdate) -> dict:
        """Descriptive fields set on an update request, capacity excluded."""
        return {
            field: value
            for field, value in obj_in.model_dump(exclude_unset=True, exclude={"capacity"}).items()
            # Only the image may be cleared; required columns ignore explicit nulls.
            if value is not None or field == "image_url"
        }

    def update_details(self, db: Session, *, db_obj: Event, obj_in: EventUpdate) -> Event:
        """
        Update descriptive fields only. Capacity changes go through the
        capacity ledger so they are checked against confirmed seats atomically.
        """
        event_id = db_obj.id
        try:
            return super().update(db, db_obj=db_obj, obj_in=self.detail_values(obj_in))
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to update event {event_id}: {str(e)}",
                exc_info=True,
                extra={"event_id": event_id},
            )
            db.rollback()
            raise TransientStorageError("event.update", e) from e

    def remove_with_attendances(self, db: Session, *, id: str) -> bool:
        """
        Delete an event and all of its attendance records in one transaction.
        Returns False if the event does not exist.
        """
        try:
            db_obj = self.get(db, id=id)
            if not db_obj:
                return False
            removed = attendance_registry.delete_by_event(db, event_id=id)
            db.delete(db_obj)
            db.commit()
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to delete event {id}: {str(e)}",
                exc_info=True,
                extra={"event_id": id},
            )
            db.rollback()
            raise TransientStorageError("event.delete", e) from e

        logger.info(f"Event {id} deleted along with {removed} attendance records")
        return True


event = CRUDEvent(Event)
