import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from soundscore.core.security import CSRF_HEADER_NAME, generate_csrf_token, get_session, set_session_cookie
from soundscore.models.user_session import UserSession
from soundscore.schemas.system import CsrfTokenResponse, HealthResponse
from soundscore.services.database import get_db
from soundscore.services.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "database": "unavailable"}
        )
    return {"status": "ok", "database": "connected"}


@router.get("/csrf-token", response_model=CsrfTokenResponse)
async def csrf_token(
    response: Response,
    db: AsyncSession = Depends(get_db),
    user_session: Optional[UserSession] = Depends(get_session)
):
    """Token the client must echo in the x-csrf-token header on every write."""
    if user_session is None:
        user_session = await SessionStore(db).create()
        set_session_cookie(response, user_session.sid)
    return {"success": True, "token": generate_csrf_token(user_session), "header_name": CSRF_HEADER_NAME}
