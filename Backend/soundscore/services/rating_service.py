import logging
import uuid
from typing import Optional

from sqlalchemy import func, select

from soundscore.core.exceptions import NotFoundException
from soundscore.models.comment import Comment
from soundscore.models.release import Release
from soundscore.models.user import User
from soundscore.services.base import BaseService
from soundscore.services.database import utcnow
from soundscore.services.release_service import rounded_average

logger = logging.getLogger(__name__)


class RatingService(BaseService):
    """Ratings are the ``comments`` rows; a rating without text is just a score."""

    async def get_user_rating(self, user_id: uuid.UUID, release_id: int) -> Optional[Comment]:
        result = await self.db.execute(
            select(Comment).where(Comment.user_id == user_id, Comment.release_id == release_id)
        )
        return result.scalar_one_or_none()

    async def get_release_stats(self, release_id: int) -> dict:
        await self.get_or_404(Release, release_id)
        result = await self.db.execute(
            select(func.avg(Comment.score), func.count(Comment.id)).where(Comment.release_id == release_id)
        )
        average, count = result.one()
        return {"average_rating": rounded_average(average), "count": count}

    async def upsert_rating(self, user: User, release_id: int, score: int) -> Comment:
        """
        Insert the user's rating or overwrite the score of the existing one.
        A single INSERT .. ON CONFLICT keeps concurrent submissions from
        producing two rows for the same (user, release).
        """
        await self.get_or_404(Release, release_id)
        now = utcnow()
        stmt = self.insert(Comment).values(
            user_id=user.id,
            release_id=release_id,
            score=score,
            is_anonymous=False,
            created_at=now,
            updated_at=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "release_id"],
            set_={"score": stmt.excluded.score, "updated_at": stmt.excluded.updated_at}
        )
        await self.db.execute(stmt)
        await self.db.commit()

        result = await self.db.execute(
            select(Comment)
            .where(Comment.user_id == user.id, Comment.release_id == release_id)
            .execution_options(populate_existing=True)
        )
        rating = result.scalar_one()
        logger.info(f"User {user.id} rated release {release_id}: {score}")
        return rating

    async def delete_rating(self, user: User, release_id: int) -> None:
        rating = await self.get_user_rating(user.id, release_id)
        if rating is None:
            raise NotFoundException("Rating", f"{user.id}/{release_id}")
        await self.db.delete(rating)
        await self.db.commit()

