"""API Dependencies - Caller identity"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from domain.auth import User
from domain.enums import UserRole
from infrastructure.security import decode_access_token, JWTError

bearer_scheme = HTTPBearer(auto_error=False)


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
) -> User:
    """Bearer token first, then identity headers injected by the gateway"""
    if credentials is not None:
        try:
            return decode_access_token(credentials.credentials)
        except (JWTError, ValueError):
            raise _credentials_exception()

    if x_user_id:
        try:
            role = UserRole(x_user_role) if x_user_role else UserRole.USER
        except ValueError:
            raise _credentials_exception(f"Unknown role: {x_user_role}")
        return User(user_id=x_user_id, role=role, email=x_user_email)

    raise _credentials_exception("Not authenticated")
