import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from soundscore.services.database import Base, utcnow

class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    RESOLVED = "resolved"

class Report(Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True)
    reported_by = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reason = Column(String(500), nullable=False)
    status = Column(String(20), nullable=False, default=ReportStatus.PENDING.value, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Moderation trail, only set while the report is resolved
    resolved_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    comment = relationship("Comment", back_populates="reports")
    reporter = relationship("User", foreign_keys=[reported_by])
