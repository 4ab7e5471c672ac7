# inventory_tracker/core/security.py
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from inventory_tracker.core.config import settings


def create_session_token(
        user_id: str,
        name: str,
        is_admin: bool = False,
        expires_delta: Optional[timedelta] = None
) -> str:
    """
    Sign a session cookie value for a user.

    Session issuance lives with the identity provider; this is used by tooling
    and tests that need a valid cookie.
    """
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)

    to_encode = {"exp": expire, "sub": str(user_id), "name": name, "admin": bool(is_admin)}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_session_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify a session cookie and return its claims, or None if it is invalid or expired.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    if not payload.get("sub"):
        return None

    return payload
