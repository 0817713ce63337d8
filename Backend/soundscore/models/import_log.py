import enum
import uuid
import datetime
from sqlalchemy import String, Text, ForeignKey, DateTime, Float, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from soundscore.services.database import Base, utcnow

class ImportStatus(str, enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

class ImportLog(Base):
    __tablename__ = "import_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Which catalogue was queried and with what
    source: Mapped[str] = mapped_column(String(50), index=True)
    parameters: Mapped[dict | None] = mapped_column(JSON().with_variant(JSONB, "postgresql"))
    status: Mapped[str] = mapped_column(String(20), default=ImportStatus.PENDING.value, index=True)

    # The admin who started the import
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), index=True)

    # Timestamps and performance tracking.
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    started_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True))
    duration_s: Mapped[float | None] = mapped_column(Float)

    # Counts of created rows, or the failure message
    result: Mapped[dict | None] = mapped_column(JSON().with_variant(JSONB, "postgresql"))
    error: Mapped[str | None] = mapped_column(Text)
