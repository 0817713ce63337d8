from pydantic import BaseModel, ConfigDict, Field
import uuid
from typing import Optional, Any
from datetime import datetime

from soundscore.models.import_log import ImportStatus
from .release import ReleaseResponse

class DeezerImportRequest(BaseModel):
    album_id: int = Field(..., gt=0)

# Properties to return to client
class ImportLogResponse(BaseModel):
    id: uuid.UUID
    source: str
    parameters: Optional[dict] = None
    status: ImportStatus
    result: Optional[Any] = None
    error: Optional[str] = None
    user_id: Optional[uuid.UUID] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_s: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)

class ImportResult(BaseModel):
    log: ImportLogResponse
    release: ReleaseResponse

class ImportStats(BaseModel):
    total_artists: int
    total_releases: int
    artists_with_deezer: int
    recent_releases: int
