import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship

from soundscore.services.database import Base, utcnow

class ReactionType(str, enum.Enum):
    LIKE = "like"
    DISLIKE = "dislike"

class CommentReaction(Base):
    __tablename__ = "comment_reactions"
    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_comment_reactions_comment_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reaction_type = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    comment = relationship("Comment", back_populates="reactions")
