import hmac
import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from soundscore.core.exceptions import ExternalServiceError
from soundscore.core.rate_limit import rate_limit
from soundscore.core.security import (
    clear_session_cookie,
    csrf_protect,
    get_current_user,
    get_session,
    set_session_cookie,
)
from soundscore.models.user import User
from soundscore.models.user_session import UserSession
from soundscore.schemas.user import NicknameUpdate, UserResponse
from soundscore.services.database import get_db
from soundscore.services.google_oauth import GoogleOAuthClient, get_google_oauth_client
from soundscore.services.session_store import SessionStore
from soundscore.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get("/login", dependencies=[Depends(rate_limit("auth"))])
@router.get("/auth/google", dependencies=[Depends(rate_limit("auth"))])
async def login(
    db: AsyncSession = Depends(get_db),
    google: GoogleOAuthClient = Depends(get_google_oauth_client),
    user_session: Optional[UserSession] = Depends(get_session)
):
    """Start the Google OAuth flow."""
    store = SessionStore(db)
    if user_session is None:
        user_session = await store.create()
    state = secrets.token_urlsafe(24)
    await store.update_data(user_session, oauth_state=state)

    response = RedirectResponse(google.authorization_url(state), status_code=302)
    set_session_cookie(response, user_session.sid)
    return response


@router.get("/callback")
@router.get("/auth/callback")
async def oauth_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    google: GoogleOAuthClient = Depends(get_google_oauth_client),
    user_session: Optional[UserSession] = Depends(get_session)
):
    """Google redirects here. On any failure the user is sent back to /api/login."""
    expected_state = (user_session.data or {}).get("oauth_state") if user_session else None
    if not code or not state or not expected_state or not hmac.compare_digest(state, expected_state):
        logger.warning("OAuth callback with missing or mismatched state")
        return RedirectResponse("/api/login", status_code=302)

    try:
        profile = await google.fetch_profile(code)
    except ExternalServiceError as e:
        logger.error(f"Google login failed: {e.detail}")
        return RedirectResponse("/api/login", status_code=302)

    user = await UserService(db).upsert_google_user(profile)
    new_session = await SessionStore(db).regenerate(user_session, user.id)
    logger.info(f"User {user.id} logged in")

    response = RedirectResponse("/", status_code=302)
    set_session_cookie(response, new_session.sid)
    return response


@router.get("/logout")
@router.get("/auth/logout")
async def logout(
    db: AsyncSession = Depends(get_db),
    user_session: Optional[UserSession] = Depends(get_session)
):
    if user_session is not None:
        await SessionStore(db).destroy(user_session)
    response = RedirectResponse("/", status_code=302)
    clear_session_cookie(response)
    return response


@router.get("/auth/user", response_model=UserResponse)
async def read_current_user(response: Response, current_user: User = Depends(get_current_user)):
    response.headers.update(NO_CACHE_HEADERS)
    return current_user


@router.post("/auth/nickname", response_model=UserResponse, dependencies=[Depends(csrf_protect)])
async def set_nickname(
    nickname_data: NicknameUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await UserService(db).set_nickname(current_user, nickname_data.nickname)
