import logging
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import case, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from soundscore.core.exceptions import ConflictError, ForbiddenError, NotFoundException, ValidationException
from soundscore.models.comment import Comment
from soundscore.models.comment_reaction import CommentReaction, ReactionType
from soundscore.models.release import Release
from soundscore.models.user import User
from soundscore.schemas.comment import CommentCreate, CommentUpdate
from soundscore.services.base import BaseService
from soundscore.services.database import utcnow

logger = logging.getLogger(__name__)


def reaction_counts_subquery():
    return (
        select(
            CommentReaction.comment_id.label("comment_id"),
            func.count(case((CommentReaction.reaction_type == ReactionType.LIKE.value, 1))).label("like_count"),
            func.count(case((CommentReaction.reaction_type == ReactionType.DISLIKE.value, 1))).label("dislike_count"),
        )
        .group_by(CommentReaction.comment_id)
        .subquery()
    )


class CommentService(BaseService):

    async def _user_reactions(self, user: Optional[User], comment_ids: Iterable[int]) -> Dict[int, str]:
        comment_ids = list(comment_ids)
        if user is None or not comment_ids:
            return {}
        result = await self.db.execute(
            select(CommentReaction.comment_id, CommentReaction.reaction_type)
            .where(CommentReaction.user_id == user.id, CommentReaction.comment_id.in_(comment_ids))
        )
        return {comment_id: reaction_type for comment_id, reaction_type in result.all()}

    async def decorate(self, rows: List[Tuple], viewer: Optional[User]) -> List[Comment]:
        """Attach tallies, the viewer's reaction and the visible author to each comment."""
        reactions = await self._user_reactions(viewer, (row[0].id for row in rows))
        comments = []
        for comment, like_count, dislike_count in rows:
            comment.like_count = like_count or 0
            comment.dislike_count = dislike_count or 0
            comment.user_reaction = reactions.get(comment.id)
            comment.author = None if comment.is_anonymous else comment.user
            comments.append(comment)
        return comments

    def comments_query(self):
        counts = reaction_counts_subquery()
        query = (
            select(Comment, counts.c.like_count, counts.c.dislike_count)
            .outerjoin(counts, counts.c.comment_id == Comment.id)
            .where(Comment.text.is_not(None))
            .options(selectinload(Comment.user))
        )
        return query, counts

    async def get_comment(self, comment_id: int, viewer: Optional[User] = None) -> Comment:
        query, _ = self.comments_query()
        result = await self.db.execute(
            query.where(Comment.id == comment_id).execution_options(populate_existing=True)
        )
        row = result.first()
        if row is None:
            raise NotFoundException("Comment", comment_id)
        return (await self.decorate([row], viewer))[0]

    async def list_for_release(self, release_id: int, sort_by: str = "date", viewer: Optional[User] = None) -> List[Comment]:
        await self.get_or_404(Release, release_id)
        query, counts = self.comments_query()
        query = query.where(Comment.release_id == release_id)
        if sort_by == "rating":
            query = query.order_by(Comment.score.desc(), Comment.created_at.desc())
        elif sort_by == "likes":
            query = query.order_by(func.coalesce(counts.c.like_count, 0).desc(), Comment.created_at.desc())
        else:
            query = query.order_by(Comment.created_at.desc(), Comment.id.desc())
        result = await self.db.execute(query)
        return await self.decorate(result.all(), viewer)

    async def create_comment(self, user: User, release_id: int, comment_data: CommentCreate) -> Comment:
        await self.get_or_404(Release, release_id)
        result = await self.db.execute(
            select(Comment).where(Comment.user_id == user.id, Comment.release_id == release_id)
        )
        existing = result.scalar_one_or_none()

        if existing is not None and existing.text:
            raise ConflictError(
                "You have already commented on this release. You can only edit your existing comment.",
                code="COMMENT_EXISTS"
            )

        score = comment_data.rating if comment_data.rating is not None else (existing.score if existing else None)
        if score is None:
            raise ValidationException(
                "A rating is required to post a comment",
                errors=[{"field": "rating", "message": "Rating is required", "code": "required"}]
            )

        if existing is not None:
            # The user rated earlier without text; the review attaches to that rating
            existing.text = comment_data.text
            existing.score = score
            existing.is_anonymous = comment_data.is_anonymous
            comment_id = existing.id
            await self.db.commit()
        else:
            comment = Comment(
                user_id=user.id,
                release_id=release_id,
                score=score,
                text=comment_data.text,
                is_anonymous=comment_data.is_anonymous
            )
            self.db.add(comment)
            await self.commit(
                conflict_message="You have already commented on this release. You can only edit your existing comment.",
                conflict_code="COMMENT_EXISTS"
            )
            comment_id = comment.id

        logger.info(f"User {user.id} commented on release {release_id}")
        return await self.get_comment(comment_id, viewer=user)

    async def _get_with_text(self, comment_id: int) -> Comment:
        """A rating row only counts as a comment once it has review text."""
        comment = await self.get_or_404(Comment, comment_id)
        if comment.text is None:
            raise NotFoundException("Comment", comment_id)
        return comment

    async def _get_owned(self, comment_id: int, user: User, allow_admin: bool = False) -> Comment:
        comment = await self._get_with_text(comment_id)
        if comment.user_id != user.id and not (allow_admin and user.is_admin):
            raise ForbiddenError("You can only modify your own comments")
        return comment

    async def update_comment(self, comment_id: int, user: User, comment_data: CommentUpdate) -> Comment:
        comment = await self._get_owned(comment_id, user)
        update_data = comment_data.model_dump(exclude_unset=True)
        if update_data.get("text") is not None:
            comment.text = update_data["text"]
        if update_data.get("rating") is not None:
            comment.score = update_data["rating"]
        if update_data.get("is_anonymous") is not None:
            comment.is_anonymous = update_data["is_anonymous"]
        await self.db.commit()
        return await self.get_comment(comment_id, viewer=user)

    async def delete_comment(self, comment_id: int, user: User) -> None:
        """Owner or admin. Reactions and reports are removed by ON DELETE CASCADE."""
        comment = await self._get_owned(comment_id, user, allow_admin=True)
        await self.db.delete(comment)
        await self.db.commit()
        logger.info(f"Comment {comment_id} deleted by {user.id}")

    async def reaction_summary(self, comment_id: int, user: Optional[User]) -> dict:
        counts = reaction_counts_subquery()
        result = await self.db.execute(
            select(counts.c.like_count, counts.c.dislike_count).where(counts.c.comment_id == comment_id)
        )
        row = result.first()
        reactions = await self._user_reactions(user, [comment_id])
        return {
            "comment_id": comment_id,
            "like_count": row.like_count if row else 0,
            "dislike_count": row.dislike_count if row else 0,
            "user_reaction": reactions.get(comment_id),
        }

    async def react(self, comment_id: int, user: User, reaction_type: ReactionType) -> dict:
        """One reaction per (comment, user); reacting again switches the type."""
        await self._get_with_text(comment_id)
        stmt = self.insert(CommentReaction).values(
            comment_id=comment_id,
            user_id=user.id,
            reaction_type=reaction_type.value,
            created_at=utcnow()
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["comment_id", "user_id"],
            set_={"reaction_type": stmt.excluded.reaction_type}
        )
        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except IntegrityError:
            # The comment was deleted between the lookup and the insert
            await self.db.rollback()
            raise NotFoundException("Comment", comment_id)
        return await self.reaction_summary(comment_id, user)

    async def remove_reaction(self, comment_id: int, user: User) -> dict:
        await self._get_with_text(comment_id)
        await self.db.execute(
            delete(CommentReaction).where(CommentReaction.comment_id == comment_id, CommentReaction.user_id == user.id)
        )
        await self.db.commit()
        return await self.reaction_summary(comment_id, user)
