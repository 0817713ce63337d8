from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from soundscore.core.rate_limit import rate_limit
from soundscore.core.security import csrf_protect, get_admin_user
from soundscore.models.user import User
from soundscore.schemas.artist import ArtistCreate, ArtistResponse, ArtistSearchResult, ArtistUpdate
from soundscore.schemas.release import ReleaseResponse
from soundscore.services.artist_service import ArtistService
from soundscore.services.database import get_db
from soundscore.services.release_service import ReleaseService

router = APIRouter(dependencies=[Depends(csrf_protect)])

# Static routes first
@router.get("/artists/", response_model=List[ArtistResponse])
async def list_artists(db: AsyncSession = Depends(get_db)):
    return await ArtistService(db).list_artists()

@router.get("/artists/search", response_model=List[ArtistSearchResult], dependencies=[Depends(rate_limit("search"))])
async def search_artists(q: str = Query(..., min_length=1, max_length=100), db: AsyncSession = Depends(get_db)):
    return await ArtistService(db).search(q.strip())

@router.post("/artists/", response_model=ArtistResponse, status_code=status.HTTP_201_CREATED)
async def create_artist(artist_data: ArtistCreate, db: AsyncSession = Depends(get_db), admin: User = Depends(get_admin_user)):
    return await ArtistService(db).create_artist(artist_data)

# Dynamic routes after static ones
@router.get("/artists/{artist_id}", response_model=ArtistResponse)
async def read_artist(artist_id: int, db: AsyncSession = Depends(get_db)):
    return await ArtistService(db).get_artist(artist_id)

@router.get("/artists/{artist_id}/releases", response_model=List[ReleaseResponse])
async def read_artist_releases(artist_id: int, db: AsyncSession = Depends(get_db)):
    await ArtistService(db).get_artist(artist_id)
    return await ReleaseService(db).list_releases(artist_id=artist_id)

@router.put("/artists/{artist_id}", response_model=ArtistResponse)
async def update_artist(artist_id: int, artist_data: ArtistUpdate, db: AsyncSession = Depends(get_db), admin: User = Depends(get_admin_user)):
    return await ArtistService(db).update_artist(artist_id, artist_data)
