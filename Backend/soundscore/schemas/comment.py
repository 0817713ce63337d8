import re
import logging
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from uuid import UUID
from datetime import datetime

from soundscore.models.comment_reaction import ReactionType
from .release import ReleaseSummary

security_logger = logging.getLogger("soundscore.security")

COMMENT_MIN_LENGTH = 5
COMMENT_MAX_LENGTH = 1000

# Markup that has no business in a plain-text review
UNSAFE_PATTERNS = [
    re.compile(r"<script\b[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL),
    re.compile(r"<script\b", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=", re.IGNORECASE),
    re.compile(r"<\s*(iframe|object|embed|link|style|form|input|button)\b", re.IGNORECASE),
]


def clean_comment_text(value: str) -> str:
    text = value.strip()
    if len(text) < COMMENT_MIN_LENGTH:
        raise ValueError(f"Comment must be at least {COMMENT_MIN_LENGTH} characters long")
    if len(text) > COMMENT_MAX_LENGTH:
        raise ValueError(f"Comment must be at most {COMMENT_MAX_LENGTH} characters long")
    for pattern in UNSAFE_PATTERNS:
        if pattern.search(text):
            security_logger.warning(f"Rejected comment with unsafe markup: {text[:80]!r}")
            raise ValueError("Comment contains forbidden content")
    return text


class CommentCreate(BaseModel):
    text: str
    # Optional when the user has already rated the release
    rating: Optional[int] = Field(None, ge=1, le=10, strict=True)
    is_anonymous: bool = False

    @field_validator("text")
    @classmethod
    def validate_text(cls, value: str) -> str:
        return clean_comment_text(value)

class CommentUpdate(BaseModel):
    text: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=10, strict=True)
    is_anonymous: Optional[bool] = None

    @field_validator("text")
    @classmethod
    def validate_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return clean_comment_text(value)

class CommentAuthor(BaseModel):
    id: UUID
    nickname: Optional[str] = None
    profile_image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class CommentResponse(BaseModel):
    id: int
    release_id: int
    text: Optional[str] = None
    rating: int
    is_anonymous: bool
    created_at: datetime
    updated_at: datetime

    # Hidden (None) for anonymous comments
    author: Optional[CommentAuthor] = None
    like_count: int = 0
    dislike_count: int = 0
    user_reaction: Optional[ReactionType] = None

    model_config = ConfigDict(from_attributes=True)

class UserCommentResponse(CommentResponse):
    release: Optional[ReleaseSummary] = None


class ReactionCreate(BaseModel):
    reaction_type: ReactionType

class ReactionSummary(BaseModel):
    comment_id: int
    like_count: int
    dislike_count: int
    user_reaction: Optional[ReactionType] = None
