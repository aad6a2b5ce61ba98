import uuid

from sqlalchemy.orm import Session

from evently.crud import crud_user
from evently.models.user import User
from evently.schemas.user import UserCreate

TEST_PASSWORD = "secret123"


def create_random_user(db: Session, name: str = "Test User") -> User:
    """
    Creates a dummy user with a unique email for testing purposes.
    """
    user_in = UserCreate(
        name=name,
        email=f"user_{uuid.uuid4().hex[:8]}@example.com",
        password=TEST_PASSWORD,
    )
    return crud_user.user.create(db, obj_in=user_in)
