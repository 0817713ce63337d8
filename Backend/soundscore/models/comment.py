from sqlalchemy import Column, Integer, Text, Boolean, DateTime, ForeignKey, Uuid, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from soundscore.services.database import Base, utcnow

class Comment(Base):
    """
    A user's rating of a release. ``text`` is the optional review that
    turns the rating into a comment, so there is one row per (user, release).
    """
    __tablename__ = "comments"
    __table_args__ = (
        UniqueConstraint("user_id", "release_id", name="uq_comments_user_release"),
        CheckConstraint("score >= 1 AND score <= 10", name="ck_comments_score_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    release_id = Column(Integer, ForeignKey("releases.id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(Integer, nullable=False)
    text = Column(Text, nullable=True)
    is_anonymous = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="comments")
    release = relationship("Release", back_populates="comments")

    # Reactions and reports are removed by the database when the comment goes
    reactions = relationship("CommentReaction", back_populates="comment", cascade="all, delete-orphan", passive_deletes=True)
    reports = relationship("Report", back_populates="comment", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def rating(self) -> int:
        return self.score
