from sqlalchemy import Column, String, Integer, DateTime
from sqlalchemy.orm import relationship

from soundscore.services.database import Base, utcnow

class Artist(Base):
    __tablename__ = "artists"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False)

    # External catalogue IDs, all optional
    deezer_id = Column(String(64), unique=True, nullable=True)
    itunes_id = Column(String(64), nullable=True)
    yandex_music_id = Column(String(64), nullable=True)

    image_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # An artist can have many releases (one-to-many relationship)
    releases = relationship("Release", back_populates="artist", cascade="all, delete-orphan", passive_deletes=True)
