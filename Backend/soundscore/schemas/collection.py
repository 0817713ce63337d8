from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from .release import ReleaseSummary

class CollectionBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    subtitle: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    is_active: bool = False
    is_public: bool = True
    sort_order: int = Field(0, ge=0)

class CollectionCreate(CollectionBase):
    # Order of the list becomes the order inside the collection
    release_ids: List[int] = []

class CollectionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    subtitle: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    is_active: Optional[bool] = None
    is_public: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)
    # When given, replaces the whole membership
    release_ids: Optional[List[int]] = None

class CollectionReleaseAdd(BaseModel):
    release_id: int
    sort_order: Optional[int] = Field(None, ge=0)

class CollectionSortUpdate(BaseModel):
    sort_order: int = Field(..., ge=0)

class CollectionEntryResponse(BaseModel):
    sort_order: int
    added_at: datetime
    release: ReleaseSummary

    model_config = ConfigDict(from_attributes=True)

class CollectionResponse(CollectionBase):
    id: int
    user_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    releases: List[CollectionEntryResponse] = Field(default=[], validation_alias="entries")

    model_config = ConfigDict(from_attributes=True)

class CollectionStats(BaseModel):
    total_releases: int
    average_rating: float
    total_comments: int
