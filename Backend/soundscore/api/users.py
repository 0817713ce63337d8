import uuid
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from soundscore.core.security import get_current_user_optional
from soundscore.models.user import User
from soundscore.schemas.comment import UserCommentResponse
from soundscore.schemas.rating import UserRatingResponse
from soundscore.schemas.user import UserPublicResponse, UserStatsResponse
from soundscore.services.database import get_db
from soundscore.services.user_service import UserService

router = APIRouter()


@router.get("/users/{user_id}", response_model=UserPublicResponse)
async def get_user_profile(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Public profile information for a user."""
    return await UserService(db).get_user(user_id)

@router.get("/users/{user_id}/ratings", response_model=List[UserRatingResponse])
async def get_user_ratings(
    user_id: uuid.UUID,
    search: Optional[str] = None,
    artist: Optional[str] = None,
    release: Optional[str] = None,
    sort_by: Literal["newest", "oldest", "rating_high", "rating_low"] = "newest",
    with_comments: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    return await UserService(db).get_user_ratings(
        user_id,
        search=search,
        artist=artist,
        release=release,
        sort_by=sort_by,
        with_comments=with_comments,
        viewer=current_user
    )

@router.get("/users/{user_id}/comments", response_model=List[UserCommentResponse])
async def get_user_comments(
    user_id: uuid.UUID,
    search: Optional[str] = None,
    artist: Optional[str] = None,
    release: Optional[str] = None,
    sort_by: Literal["newest", "oldest", "likes_high", "likes_low"] = "newest",
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    return await UserService(db).get_user_comments(
        user_id,
        search=search,
        artist=artist,
        release=release,
        sort_by=sort_by,
        viewer=current_user
    )

@router.get("/users/{user_id}/stats", response_model=UserStatsResponse)
async def get_user_stats(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await UserService(db).get_user_stats(user_id)
