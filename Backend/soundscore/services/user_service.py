import logging
import uuid
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import selectinload

from soundscore.core.exceptions import ConflictError
from soundscore.models.artist import Artist
from soundscore.models.comment import Comment
from soundscore.models.comment_reaction import CommentReaction, ReactionType
from soundscore.models.release import Release
from soundscore.models.user import User
from soundscore.services.base import BaseService
from soundscore.services.comment_service import CommentService
from soundscore.services.database import utcnow
from soundscore.services.release_service import rounded_average

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_DAYS = 30


class UserService(BaseService):

    async def get_user(self, user_id: uuid.UUID) -> User:
        return await self.get_or_404(User, user_id, resource="User")

    async def upsert_google_user(self, profile: Dict[str, Any]) -> User:
        """Create or refresh the account for a Google profile, keyed by its ``sub`` claim."""
        result = await self.db.execute(select(User).where(User.google_id == profile["sub"]))
        user = result.scalar_one_or_none()
        if user is None:
            user = User(google_id=profile["sub"])
            self.db.add(user)
            logger.info(f"Creating user for Google subject {profile['sub']}")
        user.email = profile.get("email")
        user.first_name = profile.get("given_name")
        user.last_name = profile.get("family_name")
        user.profile_image_url = profile.get("picture")
        await self.commit(conflict_message="An account with this email already exists")
        await self.db.refresh(user)
        return user

    async def set_nickname(self, user: User, nickname: str) -> User:
        if user.nickname == nickname:
            return user
        result = await self.db.execute(
            select(User.id).where(User.nickname == nickname, User.id != user.id)
        )
        if result.first() is not None:
            raise ConflictError("Nickname is already taken", code="NICKNAME_TAKEN")
        user.nickname = nickname
        # The unique constraint settles races the pre-check above can't see
        await self.commit(conflict_message="Nickname is already taken", conflict_code="NICKNAME_TAKEN")
        await self.db.refresh(user)
        logger.info(f"User {user.id} set nickname to {nickname}")
        return user

    def _text_filters(self, query, search: Optional[str], artist: Optional[str], release: Optional[str]):
        if search or artist or release:
            query = query.join(Release, Release.id == Comment.release_id).join(Artist, Artist.id == Release.artist_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Release.title.ilike(pattern), Artist.name.ilike(pattern), Comment.text.ilike(pattern)))
        if artist:
            query = query.where(Artist.name.ilike(f"%{artist}%"))
        if release:
            query = query.where(Release.title.ilike(f"%{release}%"))
        return query

    async def get_user_ratings(
        self,
        user_id: uuid.UUID,
        search: Optional[str] = None,
        artist: Optional[str] = None,
        release: Optional[str] = None,
        sort_by: str = "newest",
        with_comments: bool = False,
        viewer: Optional[User] = None
    ) -> List[Comment]:
        await self.get_user(user_id)
        query = (
            select(Comment)
            .where(Comment.user_id == user_id)
            .options(selectinload(Comment.release).selectinload(Release.artist))
        )
        query = self._text_filters(query, search, artist, release)
        if with_comments:
            query = query.where(Comment.text.is_not(None))
        order = {
            "oldest": (Comment.created_at.asc(),),
            "rating_high": (Comment.score.desc(), Comment.created_at.desc()),
            "rating_low": (Comment.score.asc(), Comment.created_at.desc()),
        }.get(sort_by, (Comment.created_at.desc(),))
        result = await self.db.execute(query.order_by(*order, Comment.id.desc()))
        ratings = result.scalars().all()
        if not self._can_see_anonymous(user_id, viewer):
            # Anonymous reviews keep their score but drop the text on the author's public profile
            for rating in ratings:
                if rating.is_anonymous:
                    self.db.expunge(rating)
                    rating.text = None
        return ratings

    @staticmethod
    def _can_see_anonymous(user_id: uuid.UUID, viewer: Optional[User]) -> bool:
        return viewer is not None and (viewer.id == user_id or viewer.is_admin)

    async def get_user_comments(
        self,
        user_id: uuid.UUID,
        search: Optional[str] = None,
        artist: Optional[str] = None,
        release: Optional[str] = None,
        sort_by: str = "newest",
        viewer: Optional[User] = None
    ) -> List[Comment]:
        await self.get_user(user_id)
        comment_service = CommentService(self.db)
        query, counts = comment_service.comments_query()
        query = query.where(Comment.user_id == user_id).options(
            selectinload(Comment.release).selectinload(Release.artist)
        )
        if not self._can_see_anonymous(user_id, viewer):
            query = query.where(Comment.is_anonymous.is_(False))
        query = self._text_filters(query, search, artist, release)
        likes = func.coalesce(counts.c.like_count, 0)
        order = {
            "oldest": (Comment.created_at.asc(),),
            "likes_high": (likes.desc(), Comment.created_at.desc()),
            "likes_low": (likes.asc(), Comment.created_at.desc()),
        }.get(sort_by, (Comment.created_at.desc(),))
        result = await self.db.execute(query.order_by(*order, Comment.id.desc()))
        return await comment_service.decorate(result.all(), viewer)

    async def get_user_stats(self, user_id: uuid.UUID) -> dict:
        await self.get_user(user_id)
        since = utcnow() - timedelta(days=RECENT_ACTIVITY_DAYS)

        totals = await self.db.execute(
            select(
                func.count(Comment.id),
                func.count(Comment.text),
                func.avg(Comment.score),
                func.count(case((Comment.created_at >= since, 1))),
            ).where(Comment.user_id == user_id)
        )
        ratings_count, comments_count, average, recent_activity = totals.one()

        distribution = {score: 0 for score in range(1, 11)}
        rows = await self.db.execute(
            select(Comment.score, func.count(Comment.id))
            .where(Comment.user_id == user_id)
            .group_by(Comment.score)
        )
        for score, count in rows.all():
            distribution[score] = count

        reactions = await self.db.execute(
            select(
                func.count(case((CommentReaction.reaction_type == ReactionType.LIKE.value, 1))),
                func.count(case((CommentReaction.reaction_type == ReactionType.DISLIKE.value, 1))),
            )
            .join(Comment, Comment.id == CommentReaction.comment_id)
            .where(Comment.user_id == user_id)
        )
        total_likes, total_dislikes = reactions.one()

        return {
            "ratings_count": ratings_count,
            "comments_count": comments_count,
            "average_rating": rounded_average(average),
            "rating_distribution": distribution,
            "total_likes": total_likes,
            "total_dislikes": total_dislikes,
            "recent_activity": recent_activity,
        }
