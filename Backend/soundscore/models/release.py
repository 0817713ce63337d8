import enum
from sqlalchemy import Column, Integer, String, ForeignKey, Date, Boolean, DateTime, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from soundscore.services.database import Base, utcnow

class ReleaseType(str, enum.Enum):
    ALBUM = "album"
    SINGLE = "single"
    COMPILATION = "compilation"

class Release(Base):
    __tablename__ = "releases"
    __table_args__ = (
        UniqueConstraint("artist_id", "title", name="uq_releases_artist_title"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, default=ReleaseType.ALBUM.value)
    release_date = Column(Date, nullable=True)
    cover_url = Column(String, nullable=True)
    # e.g. {"deezer": "...", "yandex": "..."}
    streaming_links = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    deezer_id = Column(String(64), unique=True, nullable=True)
    is_test_data = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # A release is linked to one primary artist
    artist_id = Column(Integer, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True)
    artist = relationship("Artist", back_populates="releases")

    # A release has many tracks
    tracks = relationship(
        "Track",
        back_populates="release",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Track.position"
    )

    # Ratings, reviews and collection memberships go away with the release (ON DELETE CASCADE)
    comments = relationship("Comment", back_populates="release", cascade="all, delete-orphan", passive_deletes=True)
    collection_entries = relationship("CollectionRelease", back_populates="release", cascade="all, delete-orphan", passive_deletes=True)
