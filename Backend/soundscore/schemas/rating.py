from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from uuid import UUID
from datetime import datetime

from .release import ReleaseSummary

class RatingCreate(BaseModel):
    score: int = Field(..., ge=1, le=10, strict=True)

class RatingResponse(BaseModel):
    id: int
    user_id: UUID
    release_id: int
    score: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class UserRatingResponse(RatingResponse):
    """A rating as shown on a user's profile, with the review text when there is one."""
    text: Optional[str] = None
    release: Optional[ReleaseSummary] = None

class ReleaseRatingStats(BaseModel):
    average_rating: float
    count: int
