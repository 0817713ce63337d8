import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from soundscore.core.rate_limit import rate_limit
from soundscore.core.security import csrf_protect, get_current_user, get_current_user_optional
from soundscore.models.user import User
from soundscore.schemas.rating import RatingCreate, RatingResponse, ReleaseRatingStats, UserRatingResponse
from soundscore.schemas.release import ReleaseResponse
from soundscore.services.database import get_db
from soundscore.services.rating_service import RatingService
from soundscore.services.release_service import ReleaseService
from soundscore.services.user_service import UserService

router = APIRouter(dependencies=[Depends(csrf_protect)])


@router.get("/ratings/top", response_model=List[ReleaseResponse])
async def top_rated_releases(limit: int = Query(10, ge=1, le=100), db: AsyncSession = Depends(get_db)):
    return await ReleaseService(db).top_rated(limit)

@router.get("/ratings/releases/{release_id}", response_model=ReleaseRatingStats)
async def release_rating_stats(release_id: int, db: AsyncSession = Depends(get_db)):
    return await RatingService(db).get_release_stats(release_id)

@router.get("/ratings/releases/{release_id}/user-rating", response_model=Optional[RatingResponse])
async def my_rating(release_id: int, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    return await RatingService(db).get_user_rating(current_user.id, release_id)

@router.post(
    "/ratings/releases/{release_id}/rate",
    response_model=RatingResponse,
    dependencies=[Depends(rate_limit("ratings"))]
)
async def rate_release(
    release_id: int,
    rating_data: RatingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create or update the caller's rating. Rating twice updates the same row."""
    return await RatingService(db).upsert_rating(current_user, release_id, rating_data.score)

@router.delete("/ratings/releases/{release_id}/rate", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rating(release_id: int, db: AsyncSession = Depends(get_db), current_user: User = Depends(get_current_user)):
    await RatingService(db).delete_rating(current_user, release_id)

@router.get("/ratings/users/{user_id}", response_model=List[UserRatingResponse])
async def ratings_by_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    return await UserService(db).get_user_ratings(user_id, viewer=current_user)
