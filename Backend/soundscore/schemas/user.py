from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, Dict
from uuid import UUID
from datetime import datetime

NICKNAME_PATTERN = r"^[a-zA-Z0-9_]+$"

class NicknameUpdate(BaseModel):
    nickname: str = Field(..., min_length=3, max_length=20, pattern=NICKNAME_PATTERN)

    @field_validator("nickname", mode="before")
    @classmethod
    def strip_nickname(cls, value):
        return value.strip() if isinstance(value, str) else value

class UserResponse(BaseModel):
    """The signed-in user's own account."""
    id: UUID
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    nickname: Optional[str] = None
    is_admin: bool = False
    created_at: datetime

    class Config:
        from_attributes = True  # Allows Pydantic to convert SQLAlchemy models to JSON


class UserPublicResponse(BaseModel):
    """Schema for publicly available user information."""
    id: UUID
    nickname: Optional[str] = None
    profile_image_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserStatsResponse(BaseModel):
    ratings_count: int = 0
    comments_count: int = 0
    average_rating: float = 0.0
    # Keys are the scores 1..10, every key is always present
    rating_distribution: Dict[int, int] = {}
    total_likes: int = 0
    total_dislikes: int = 0
    recent_activity: int = 0

    model_config = ConfigDict(from_attributes=True)
