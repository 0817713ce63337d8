from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict
from datetime import date, datetime

from soundscore.models.release import ReleaseType
from .artist import ArtistSummary
from .track import TrackResponse


def _not_in_future(value: Optional[date]) -> Optional[date]:
    if value is not None and value > date.today():
        raise ValueError("Release date cannot be in the future")
    return value


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class ReleaseBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    type: ReleaseType = ReleaseType.ALBUM
    release_date: Optional[date] = None
    cover_url: Optional[str] = None
    streaming_links: Dict[str, str] = {}
    is_test_data: bool = False

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return _strip(value)

    @field_validator("release_date")
    @classmethod
    def check_release_date(cls, value):
        return _not_in_future(value)

class ReleaseCreate(ReleaseBase):
    artist_id: int

class ReleaseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[ReleaseType] = None
    release_date: Optional[date] = None
    cover_url: Optional[str] = None
    streaming_links: Optional[Dict[str, str]] = None
    is_test_data: Optional[bool] = None
    artist_id: Optional[int] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return _strip(value)

    @field_validator("release_date")
    @classmethod
    def check_release_date(cls, value):
        return _not_in_future(value)

class ReleaseSummary(BaseModel):
    """Just enough of a release to label a rating, comment or collection entry."""
    id: int
    title: str
    type: str
    release_date: Optional[date] = None
    cover_url: Optional[str] = None
    artist: Optional[ArtistSummary] = None

    model_config = ConfigDict(from_attributes=True)

class ReleaseResponse(ReleaseBase):
    id: int
    artist_id: int
    deezer_id: Optional[str] = None
    created_at: datetime
    artist: Optional[ArtistSummary] = None

    # Aggregates computed from the ratings table
    average_rating: float = 0.0
    rating_count: int = 0
    comment_count: int = 0

    model_config = ConfigDict(from_attributes=True)

class ReleaseDetailResponse(ReleaseResponse):
    tracks: List[TrackResponse] = []

class ReleasePage(BaseModel):
    releases: List[ReleaseResponse]
    total: int
    page: int
    limit: int
    total_pages: int
