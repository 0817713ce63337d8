from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship

from soundscore.services.database import Base, utcnow

class CollectionRelease(Base):
    """Association object holding a release's position inside a collection."""
    __tablename__ = "collection_releases"
    __table_args__ = (
        UniqueConstraint("collection_id", "release_id", name="uq_collection_releases_pair"),
    )

    id = Column(Integer, primary_key=True, index=True)
    collection_id = Column(Integer, ForeignKey("collections.id", ondelete="CASCADE"), nullable=False, index=True)
    release_id = Column(Integer, ForeignKey("releases.id", ondelete="CASCADE"), nullable=False, index=True)
    sort_order = Column(Integer, default=0, nullable=False)
    added_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    collection = relationship("Collection", back_populates="entries")
    release = relationship("Release", back_populates="collection_entries")
