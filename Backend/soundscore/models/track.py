from sqlalchemy import Column, String, Integer, ForeignKey
from sqlalchemy.orm import relationship
from soundscore.services.database import Base

class Track(Base):
    __tablename__ = "tracks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    position = Column(Integer, nullable=True)
    duration = Column(Integer, nullable=True)  # seconds

    # Link to its parent release
    release_id = Column(Integer, ForeignKey("releases.id", ondelete="CASCADE"), nullable=False, index=True)
    release = relationship("Release", back_populates="tracks")
