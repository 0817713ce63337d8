from pydantic import BaseModel, ConfigDict
from typing import Optional

class TrackBase(BaseModel):
    title: str
    position: Optional[int] = None
    duration: Optional[int] = None

class TrackResponse(TrackBase):
    id: int
    release_id: int

    model_config = ConfigDict(from_attributes=True)
