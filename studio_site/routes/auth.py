"""
Admin login, logout and current-user routes.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
import logging

from studio_site.config import Settings
from studio_site.dependencies import get_settings, get_storage
from studio_site.schemas import AdminUserResponse, LoginRequest, LoginResponse
from studio_site.storage import DatabaseStorage
from studio_site.utils.auth import verify_password
from studio_site.utils.rate_limit import RATE_LIMITS, limiter
from studio_site.utils.session_auth import (
    AdminIdentity,
    create_session_token,
    decode_session_token,
    extract_token,
    require_admin,
    session_expiry,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=LoginResponse)
@limiter.limit(RATE_LIMITS["login"])
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    storage: DatabaseStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """
    Authenticate an admin and open a session.

    The signed session token is set as an httpOnly cookie and also returned
    in the body for clients that prefer the Authorization header.

    Raises:
        HTTPException: 401 if the credentials are wrong, 500 if the store fails
    """
    try:
        user = await storage.get_user_by_username(credentials.username)

        if user is None or not verify_password(credentials.password, user.password_hash):
            logger.warning(f"Failed login attempt for username '{credentials.username}'")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"error": "Credenziali non valide"}
            )

        purged = await storage.delete_expired_sessions()
        if purged:
            logger.info(f"Purged {purged} expired sessions")

        expires_at = session_expiry(settings)
        session = await storage.create_session(user.id, expires_at)
        token = create_session_token(session.sid, settings, expires_at)

        response.set_cookie(
            key=settings.SESSION_COOKIE_NAME,
            value=token,
            max_age=settings.SESSION_MAX_AGE_SECONDS,
            httponly=True,
            secure=settings.SESSION_COOKIE_SECURE,
            samesite="lax",
        )

        logger.info(f"Admin '{user.username}' logged in")
        return LoginResponse(id=user.id, username=user.username, token=token)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error during login: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore durante l'accesso"}
        )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    request: Request,
    storage: DatabaseStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """End the current session, if any. Always clears the cookie."""
    token = extract_token(request, settings)
    sid = decode_session_token(token, settings) if token else None

    try:
        if sid:
            await storage.delete_session(sid)
    except Exception as e:
        logger.error(f"Error during logout: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Errore durante la disconnessione"}
        )

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@router.get("/user", response_model=AdminUserResponse)
async def current_user(admin: AdminIdentity = Depends(require_admin)):
    return AdminUserResponse(id=admin.id, username=admin.username)
