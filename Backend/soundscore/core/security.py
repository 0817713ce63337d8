import hashlib
import hmac
import logging
from typing import Optional

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from soundscore.core.config import settings
from soundscore.core.exceptions import ForbiddenError, UnauthorizedError
from soundscore.models.user import User
from soundscore.models.user_session import UserSession
from soundscore.services.database import get_db
from soundscore.services.session_store import SessionStore

logger = logging.getLogger("soundscore.security")

CSRF_HEADER_NAME = "x-csrf-token"
SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}


def set_session_cookie(response: Response, sid: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=SessionStore.sign(sid),
        max_age=settings.SESSION_TTL_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/"
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")


def generate_csrf_token(user_session: UserSession) -> str:
    """HMAC of the session id keyed by the per-session CSRF secret."""
    secret = (user_session.data or {}).get("csrf_secret", "")
    return hmac.new(secret.encode(), user_session.sid.encode(), hashlib.sha256).hexdigest()


async def get_session(request: Request, db: AsyncSession = Depends(get_db)) -> Optional[UserSession]:
    cookie_value = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not cookie_value:
        return None
    sid = SessionStore.unsign(cookie_value)
    if sid is None:
        logger.warning(f"Rejected session cookie with a bad signature from {request.client.host if request.client else 'unknown'}")
        return None
    return await SessionStore(db).load(sid)


async def get_current_user_optional(
    user_session: Optional[UserSession] = Depends(get_session),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    if user_session is None or user_session.user_id is None:
        return None
    return await db.get(User, user_session.user_id)


async def get_current_user(user: Optional[User] = Depends(get_current_user_optional)) -> User:
    if user is None:
        raise UnauthorizedError()
    return user


async def get_admin_user(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise ForbiddenError("Admin access required")
    return user


async def csrf_protect(request: Request, user_session: Optional[UserSession] = Depends(get_session)) -> None:
    """Reject state-changing requests that don't echo the session's CSRF token."""
    if request.method in SAFE_METHODS:
        return
    token = request.headers.get(CSRF_HEADER_NAME)
    if user_session is None or not token or not hmac.compare_digest(token, generate_csrf_token(user_session)):
        logger.warning(f"CSRF check failed: {request.method} {request.url.path}")
        raise ForbiddenError("Invalid CSRF token", code="CSRF_INVALID")
