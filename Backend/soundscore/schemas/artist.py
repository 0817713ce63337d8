from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

class ArtistBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    deezer_id: Optional[str] = None
    itunes_id: Optional[str] = None
    yandex_music_id: Optional[str] = None
    image_url: Optional[str] = None

class ArtistCreate(ArtistBase):
    pass

class ArtistUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    deezer_id: Optional[str] = None
    itunes_id: Optional[str] = None
    yandex_music_id: Optional[str] = None
    image_url: Optional[str] = None

class ArtistSummary(BaseModel):
    id: int
    name: str
    image_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class ArtistResponse(ArtistBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class ArtistSearchResult(ArtistResponse):
    latest_release_cover: Optional[str] = None
