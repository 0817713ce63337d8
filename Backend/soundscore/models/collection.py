from sqlalchemy import Column, Integer, String, Text, ForeignKey, Boolean, DateTime, Uuid
from sqlalchemy.orm import relationship

from soundscore.services.database import Base, utcnow

# A collection needs at least this many releases before it can go live
MIN_ACTIVE_RELEASES = 5

class Collection(Base):
    __tablename__ = "collections"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    subtitle = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    # Curator; kept when the admin account is deleted
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    entries = relationship(
        "CollectionRelease",
        back_populates="collection",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[CollectionRelease.sort_order, CollectionRelease.id]"
    )
