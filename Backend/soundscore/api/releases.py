import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from soundscore.core.rate_limit import rate_limit
from soundscore.core.security import csrf_protect, get_admin_user
from soundscore.models.release import ReleaseType
from soundscore.models.user import User
from soundscore.schemas.release import ReleaseCreate, ReleaseDetailResponse, ReleaseResponse, ReleaseUpdate
from soundscore.schemas.track import TrackResponse
from soundscore.services.database import get_db
from soundscore.services.release_service import ReleaseService

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(csrf_protect)])

# Static routes first
@router.get("/releases/search", response_model=List[ReleaseResponse], dependencies=[Depends(rate_limit("search"))])
async def search_releases(
    q: str = Query(..., min_length=1, max_length=100),
    sort_by: Literal["date_desc", "date_asc", "rating_desc", "rating_asc"] = "date_desc",
    db: AsyncSession = Depends(get_db)
):
    """Search our catalogue by release title or artist name"""
    return await ReleaseService(db).search(q.strip(), sort_by=sort_by)

@router.get("/releases/", response_model=List[ReleaseResponse])
async def list_releases(
    artist_id: Optional[int] = None,
    year: Optional[int] = Query(None, ge=1900, le=2100),
    type: Optional[ReleaseType] = None,
    include_test_data: bool = False,
    db: AsyncSession = Depends(get_db)
):
    """List releases with their rating aggregates, newest first"""
    return await ReleaseService(db).list_releases(
        artist_id=artist_id,
        year=year,
        release_type=type.value if type else None,
        include_test_data=include_test_data
    )

@router.post(
    "/releases/",
    response_model=ReleaseResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("create"))]
)
async def create_release(release_data: ReleaseCreate, db: AsyncSession = Depends(get_db), admin: User = Depends(get_admin_user)):
    """Create a new release in our database"""
    return await ReleaseService(db).create_release(release_data)

# Dynamic routes after static ones
@router.get("/releases/{release_id}", response_model=ReleaseDetailResponse)
async def read_release(release_id: int, db: AsyncSession = Depends(get_db)):
    return await ReleaseService(db).get_release(release_id, with_tracks=True)

@router.get("/releases/{release_id}/tracks", response_model=List[TrackResponse])
async def read_release_tracks(release_id: int, db: AsyncSession = Depends(get_db)):
    return await ReleaseService(db).get_tracks(release_id)

@router.put("/releases/{release_id}", response_model=ReleaseResponse)
async def update_release(
    release_id: int,
    release_data: ReleaseUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_admin_user)
):
    return await ReleaseService(db).update_release(release_id, release_data)

@router.delete("/releases/{release_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_release(release_id: int, db: AsyncSession = Depends(get_db), admin: User = Depends(get_admin_user)):
    await ReleaseService(db).delete_release(release_id)
