# evently/core/security.py
"""
Password hashing and access token helpers.
"""

from datetime import datetime, timedelta, timezone

from jose import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from evently.core.config import settings


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


def create_access_token(subject: str, email: str | None = None) -> str:
    """Issue a signed bearer token whose `sub` claim is the user id."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload = {"sub": subject, "exp": int(expire.timestamp())}
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
