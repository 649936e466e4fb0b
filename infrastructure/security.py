from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from domain.auth import User
from domain.enums import UserRole
from infrastructure.config import JWT_SECRET_KEY, JWT_ALGORITHM

ACCESS_TOKEN_EXPIRE_MINUTES = 30


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token (identity service format; used by local tooling)"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> User:
    """Decode a bearer token into the caller identity.

    Raises JWTError for a bad signature or expired token and ValueError for
    a token without a subject or with an unknown role.
    """
    payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    user_id = payload.get("sub") or payload.get("userId")
    if not user_id:
        raise ValueError("Token has no subject")
    return User(
        user_id=str(user_id),
        role=UserRole(payload.get("role", UserRole.USER.value)),
        email=payload.get("email")
    )


__all__ = ["create_access_token", "decode_access_token", "JWTError", "ACCESS_TOKEN_EXPIRE_MINUTES"]
