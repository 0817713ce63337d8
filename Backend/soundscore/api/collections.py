from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from soundscore.core.security import csrf_protect, get_admin_user, get_current_user_optional
from soundscore.models.user import User
from soundscore.schemas.collection import (
    CollectionCreate,
    CollectionReleaseAdd,
    CollectionResponse,
    CollectionSortUpdate,
    CollectionStats,
    CollectionUpdate,
)
from soundscore.services.collection_service import CollectionService
from soundscore.services.database import get_db

router = APIRouter(dependencies=[Depends(csrf_protect)])


def _is_admin(user: Optional[User]) -> bool:
    return user is not None and user.is_admin


@router.get("/collections/", response_model=List[CollectionResponse])
async def list_collections(
    active_only: bool = True,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    # Drafts (inactive collections) are only listed for admins
    return await CollectionService(db).list_collections(active_only=active_only or not _is_admin(current_user))

@router.post("/collections/", response_model=CollectionResponse, status_code=status.HTTP_201_CREATED)
async def create_collection(collection_data: CollectionCreate, db: AsyncSession = Depends(get_db), admin: User = Depends(get_admin_user)):
    return await CollectionService(db).create_collection(collection_data, admin)

@router.get("/collections/{collection_id}", response_model=CollectionResponse)
async def get_collection(
    collection_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    return await CollectionService(db).get_collection(collection_id, include_inactive=_is_admin(current_user))

@router.get("/collections/{collection_id}/stats", response_model=CollectionStats)
async def get_collection_stats(
    collection_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    return await CollectionService(db).get_stats(collection_id, include_inactive=_is_admin(current_user))

@router.put("/collections/{collection_id}", response_model=CollectionResponse)
async def update_collection(
    collection_id: int,
    collection_data: CollectionUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_admin_user)
):
    return await CollectionService(db).update_collection(collection_id, collection_data)

@router.delete("/collections/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_collection(collection_id: int, db: AsyncSession = Depends(get_db), admin: User = Depends(get_admin_user)):
    await CollectionService(db).delete_collection(collection_id)

@router.post("/collections/{collection_id}/releases", response_model=CollectionResponse)
async def add_release_to_collection(
    collection_id: int,
    entry: CollectionReleaseAdd,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_admin_user)
):
    return await CollectionService(db).add_release(collection_id, entry.release_id, entry.sort_order)

@router.delete("/collections/{collection_id}/releases/{release_id}", response_model=CollectionResponse)
async def remove_release_from_collection(
    collection_id: int,
    release_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_admin_user)
):
    return await CollectionService(db).remove_release(collection_id, release_id)

@router.put("/collections/{collection_id}/releases/{release_id}/sort", response_model=CollectionResponse)
async def update_release_sort_order(
    collection_id: int,
    release_id: int,
    sort_data: CollectionSortUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_admin_user)
):
    return await CollectionService(db).update_release_sort_order(collection_id, release_id, sort_data.sort_order)
