import uuid
import datetime
from sqlalchemy import String, ForeignKey, DateTime, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from soundscore.services.database import Base

class UserSession(Base):
    """Server-side session row referenced by the session cookie."""
    __tablename__ = "user_sessions"

    sid: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Anonymous sessions exist too: they carry the CSRF secret and OAuth state.
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    data: Mapped[dict] = mapped_column(JSON().with_variant(JSONB, "postgresql"), default=dict)
    expire: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), index=True)
