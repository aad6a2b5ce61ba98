# evently/api/v1/endpoints/auth.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from evently.api import deps
from evently.core.security import create_access_token
from evently.crud import crud_user
from evently.db.session import get_db
from evently.schemas.token import TokenPayload
from evently.schemas.user import AuthResponse, User as UserSchema, UserCreate, UserLogin

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(user_in: UserCreate, db: Session = Depends(get_db)):
    """Register a new user and return a bearer token."""
    if crud_user.user.get_by_email(db, email=user_in.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists",
        )

    user = crud_user.user.create(db, obj_in=user_in)
    if user is None:
        # Lost a race with a concurrent signup for the same email
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists",
        )

    return {"token": create_access_token(user.id, user.email), "user": user}


@router.post("/login", response_model=AuthResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    user = crud_user.user.authenticate(
        db, email=credentials.email, password=credentials.password
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return {"token": create_access_token(user.id, user.email), "user": user}


@router.get("/me", response_model=UserSchema)
def read_me(
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    user = crud_user.user.get(db, id=current_user.sub)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
