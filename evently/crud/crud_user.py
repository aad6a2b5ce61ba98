# evently/crud/crud_user.py
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .base import CRUDBase
from evently.core.security import hash_password, verify_password
from evently.models.user import User
from evently.schemas.user import UserCreate

logger = logging.getLogger(__name__)


class CRUDUser(CRUDBase[User, UserCreate, UserCreate]):

    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        return db.query(self.model).filter(self.model.email == email.lower()).first()

    def create(self, db: Session, *, obj_in: UserCreate) -> Optional[User]:
        """
        Create a user with a hashed password.
        Returns None if the email is already taken (unique index on email).
        """
        db_obj = User(
            name=obj_in.name,
            email=obj_in.email.lower(),
            password_hash=hash_password(obj_in.password),
        )
        try:
            db.add(db_obj)
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info(f"Signup rejected, email already registered: {obj_in.email}")
            return None
        db.refresh(db_obj)
        return db_obj

    def authenticate(self, db: Session, *, email: str, password: str) -> Optional[User]:
        user = self.get_by_email(db, email=email)
        if not user or not verify_password(password, user.password_hash):
            return None
        return user


user = CRUDUser(User)
