from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from uuid import UUID
from datetime import datetime

from soundscore.models.report import ReportStatus

class ReportCreate(BaseModel):
    reason: str = Field(..., min_length=5, max_length=500)

    @field_validator("reason", mode="before")
    @classmethod
    def strip_reason(cls, value):
        return value.strip() if isinstance(value, str) else value

class ReportStatusUpdate(BaseModel):
    status: ReportStatus

class ReportResponse(BaseModel):
    id: int
    comment_id: int
    reported_by: UUID
    reason: str
    status: ReportStatus
    created_at: datetime
    resolved_by: Optional[UUID] = None
    resolved_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ReportedComment(BaseModel):
    id: int
    user_id: UUID
    release_id: int
    text: Optional[str] = None
    rating: int

    model_config = ConfigDict(from_attributes=True)

class AdminReportResponse(ReportResponse):
    """Report plus what a moderator needs to judge it."""
    reporter_nickname: Optional[str] = None
    comment: Optional[ReportedComment] = None
