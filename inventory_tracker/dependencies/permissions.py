# inventory_tracker/dependencies/permissions.py
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyCookie

from inventory_tracker.core.config import settings
from inventory_tracker.core.security import decode_session_token
from inventory_tracker.models.user import CurrentUser

session_cookie_scheme = APIKeyCookie(name=settings.SESSION_COOKIE_NAME, auto_error=False)


async def get_current_user(session: Optional[str] = Depends(session_cookie_scheme)) -> CurrentUser:
    """
    Get the current user from the session cookie
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
    )

    if not session:
        raise credentials_exception

    payload = decode_session_token(session)
    if payload is None:
        raise credentials_exception

    return CurrentUser(
        id=payload["sub"],
        name=payload.get("name") or payload["sub"],
        is_admin=bool(payload.get("admin", False)),
    )


async def get_current_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """
    Get the current user and require the admin flag
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )
    return current_user
