import hashlib
import hmac
import logging
import secrets
import uuid
from datetime import timedelta
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from soundscore.core.config import settings
from soundscore.models.user_session import UserSession
from soundscore.services.database import utcnow

logger = logging.getLogger(__name__)


def _signature(sid: str) -> str:
    return hmac.new(settings.SESSION_SECRET.encode(), sid.encode(), hashlib.sha256).hexdigest()


class SessionStore:
    """
    Postgres-backed session storage. The cookie holds ``<sid>.<hmac>`` so a
    forged or truncated cookie never reaches the database.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    @staticmethod
    def sign(sid: str) -> str:
        return f"{sid}.{_signature(sid)}"

    @staticmethod
    def unsign(cookie_value: str) -> Optional[str]:
        sid, _, signature = cookie_value.rpartition(".")
        if not sid or not hmac.compare_digest(signature, _signature(sid)):
            return None
        return sid

    async def load(self, sid: str) -> Optional[UserSession]:
        result = await self.db.execute(
            select(UserSession).where(UserSession.sid == sid, UserSession.expire > utcnow())
        )
        return result.scalar_one_or_none()

    async def create(self, user_id: Optional[uuid.UUID] = None, data: Optional[dict] = None) -> UserSession:
        session_data = dict(data or {})
        session_data.setdefault("csrf_secret", secrets.token_hex(32))
        user_session = UserSession(
            sid=secrets.token_urlsafe(32),
            user_id=user_id,
            data=session_data,
            expire=utcnow() + timedelta(days=settings.SESSION_TTL_DAYS)
        )
        self.db.add(user_session)
        await self.db.commit()
        return user_session

    async def update_data(self, user_session: UserSession, **values) -> UserSession:
        # JSON columns don't track in-place mutation, so assign a new dict
        user_session.data = {**(user_session.data or {}), **values}
        await self.db.commit()
        return user_session

    async def regenerate(self, user_session: UserSession, user_id: uuid.UUID) -> UserSession:
        """Issue a fresh sid on login so a pre-login sid can't be fixated."""
        data = {k: v for k, v in (user_session.data or {}).items() if k not in ("oauth_state", "csrf_secret")}
        await self.db.delete(user_session)
        await self.db.flush()
        return await self.create(user_id=user_id, data=data)

    async def destroy(self, user_session: UserSession) -> None:
        await self.db.delete(user_session)
        await self.db.commit()

    async def purge_expired(self) -> int:
        result = await self.db.execute(delete(UserSession).where(UserSession.expire <= utcnow()))
        await self.db.commit()
        if result.rowcount:
            logger.info(f"Purged {result.rowcount} expired sessions")
        return result.rowcount or 0
