"""
Session-based authentication for the admin surface.

The session itself lives in the database (see models.AdminSession). The client
holds a signed token that only carries the session id, read from an httpOnly
cookie (preferred) or an Authorization header (fallback).
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from studio_site.config import Settings
from studio_site.dependencies import get_settings, get_storage
from studio_site.storage import DatabaseStorage

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_TYPE = "session"


@dataclass(frozen=True)
class AdminIdentity:
    """Authenticated admin attached to a request."""
    id: int
    username: str


def create_session_token(sid: str, settings: Settings, expires_at: datetime) -> str:
    """
    Sign a session id so clients cannot forge or guess one.

    Args:
        sid: Session id stored in the sessions table
        settings: Application settings (secret)
        expires_at: Session expiry, mirrored in the token

    Returns:
        str: Encoded JWT token
    """
    to_encode = {
        "sid": sid,
        "type": TOKEN_TYPE,
        "iat": datetime.now(timezone.utc),
        "exp": expires_at,
    }
    return jwt.encode(to_encode, settings.SESSION_SECRET, algorithm=ALGORITHM)


def decode_session_token(token: str, settings: Settings) -> Optional[str]:
    """Return the session id carried by a valid token, otherwise None."""
    try:
        payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != TOKEN_TYPE:
        return None
    return payload.get("sid")


def session_expiry(settings: Settings) -> datetime:
    return datetime.now(timezone.utc) + timedelta(seconds=settings.SESSION_MAX_AGE_SECONDS)


def extract_token(request: Request, settings: Settings) -> Optional[str]:
    """Read the session token from the cookie, falling back to a Bearer header."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token

    authorization = request.headers.get("Authorization")
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return None


async def resolve_admin(
    request: Request,
    storage: DatabaseStorage,
    settings: Settings,
) -> Optional[AdminIdentity]:
    """
    Map a request to the admin it is authenticated as, or None for anonymous callers.

    Raises:
        StoreError: If the session lookup fails
    """
    token = extract_token(request, settings)
    if not token:
        return None

    sid = decode_session_token(token, settings)
    if not sid:
        logger.info("Rejected malformed or expired session token")
        return None

    session = await storage.get_active_session(sid)
    if session is None:
        return None

    user = await storage.get_user(session.user_id)
    if user is None:
        return None

    return AdminIdentity(id=user.id, username=user.username)


async def require_admin(
    request: Request,
    storage: DatabaseStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> AdminIdentity:
    """
    FastAPI dependency guarding admin-only routes.

    Raises:
        HTTPException: 401 if the caller has no valid admin session,
            500 if the session store cannot be queried
    """
    try:
        admin = await resolve_admin(request, storage, settings)
    except Exception as e:
        logger.error(f"Session lookup failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore nella verifica della sessione"}
        )

    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Non autorizzato"},
        )

    request.state.admin = admin
    return admin
