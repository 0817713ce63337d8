import logging
import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import selectinload

from soundscore.core.exceptions import NotFoundException
from soundscore.models.artist import Artist
from soundscore.models.comment import Comment
from soundscore.models.release import Release
from soundscore.models.track import Track
from soundscore.schemas.release import ReleaseCreate, ReleaseUpdate
from soundscore.services.base import BaseService

logger = logging.getLogger(__name__)


def rounded_average(value) -> float:
    """One decimal place, halves rounded up (7.25 -> 7.3)."""
    if value is None:
        return 0.0
    return float(Decimal(str(float(value))).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def rating_stats_subquery():
    """Per-release aggregates: every row is a rating, rows with text are comments."""
    return (
        select(
            Comment.release_id.label("release_id"),
            func.avg(Comment.score).label("average_rating"),
            func.count(Comment.id).label("rating_count"),
            func.count(Comment.text).label("comment_count"),
        )
        .group_by(Comment.release_id)
        .subquery()
    )


def attach_stats(rows: Sequence[Tuple]) -> List[Release]:
    """Copies aggregate columns onto the Release objects so the response schema can read them."""
    releases = []
    for release, average, rating_count, comment_count in rows:
        release.average_rating = rounded_average(average)
        release.rating_count = rating_count or 0
        release.comment_count = comment_count or 0
        releases.append(release)
    return releases


class ReleaseService(BaseService):

    def _base_query(self, stats=None):
        stats = stats if stats is not None else rating_stats_subquery()
        query = (
            select(Release, stats.c.average_rating, stats.c.rating_count, stats.c.comment_count)
            .outerjoin(stats, stats.c.release_id == Release.id)
            .options(selectinload(Release.artist))
        )
        return query, stats

    async def list_releases(
        self,
        artist_id: Optional[int] = None,
        year: Optional[int] = None,
        release_type: Optional[str] = None,
        include_test_data: bool = False
    ) -> List[Release]:
        query, _ = self._base_query()
        if artist_id is not None:
            query = query.where(Release.artist_id == artist_id)
        if year is not None:
            query = query.where(Release.release_date.between(date(year, 1, 1), date(year, 12, 31)))
        if release_type:
            query = query.where(Release.type == release_type)
        if not include_test_data:
            query = query.where(Release.is_test_data.is_(False))
        query = query.order_by(Release.release_date.desc().nulls_last(), Release.id.desc())
        result = await self.db.execute(query)
        return attach_stats(result.all())

    async def search(self, q: str, sort_by: str = "date_desc", limit: int = 50) -> List[Release]:
        query, stats = self._base_query()
        pattern = f"%{q}%"
        query = (
            query.join(Artist, Artist.id == Release.artist_id)
            .where(or_(Release.title.ilike(pattern), Artist.name.ilike(pattern)))
            .where(Release.is_test_data.is_(False))
        )
        average = func.coalesce(stats.c.average_rating, 0)
        if sort_by == "date_asc":
            query = query.order_by(Release.release_date.asc().nulls_last(), Release.id)
        elif sort_by == "rating_desc":
            query = query.order_by(average.desc(), Release.id.desc())
        elif sort_by == "rating_asc":
            query = query.order_by(average.asc(), Release.id)
        else:
            query = query.order_by(Release.release_date.desc().nulls_last(), Release.id.desc())
        result = await self.db.execute(query.limit(limit))
        return attach_stats(result.all())

    async def get_release(self, release_id: int, with_tracks: bool = False) -> Release:
        query, _ = self._base_query()
        query = query.where(Release.id == release_id).execution_options(populate_existing=True)
        if with_tracks:
            query = query.options(selectinload(Release.tracks))
        result = await self.db.execute(query)
        row = result.first()
        if row is None:
            raise NotFoundException("Release", release_id)
        return attach_stats([row])[0]

    async def get_tracks(self, release_id: int) -> List[Track]:
        await self.get_or_404(Release, release_id)
        result = await self.db.execute(
            select(Track).where(Track.release_id == release_id).order_by(Track.position, Track.id)
        )
        return result.scalars().all()

    async def top_rated(self, limit: int = 10) -> List[Release]:
        stats = rating_stats_subquery()
        query = (
            select(Release, stats.c.average_rating, stats.c.rating_count, stats.c.comment_count)
            .join(stats, stats.c.release_id == Release.id)
            .where(Release.is_test_data.is_(False))
            .options(selectinload(Release.artist))
            .order_by(stats.c.average_rating.desc(), stats.c.rating_count.desc(), Release.id)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return attach_stats(result.all())

    async def create_release(self, release_data: ReleaseCreate) -> Release:
        await self.get_or_404(Artist, release_data.artist_id)
        release = Release(**release_data.model_dump(mode="python"))
        release.type = release_data.type.value
        self.db.add(release)
        await self.commit(conflict_message=f"Release '{release_data.title}' already exists for this artist")
        logger.info(f"Created release {release.id}: {release.title}")
        return await self.get_release(release.id)

    async def update_release(self, release_id: int, release_data: ReleaseUpdate) -> Release:
        release = await self.get_or_404(Release, release_id)
        update_data = release_data.model_dump(exclude_unset=True)
        if update_data.get("artist_id") is not None:
            await self.get_or_404(Artist, update_data["artist_id"])
        for field, value in update_data.items():
            if value is None and field in ("title", "type", "streaming_links", "is_test_data", "artist_id"):
                continue
            if field == "type":
                value = value.value
            setattr(release, field, value)
        await self.commit(conflict_message="A release with this title already exists for this artist")
        return await self.get_release(release_id)

    async def delete_release(self, release_id: int) -> None:
        release = await self.get_or_404(Release, release_id)
        # Comments, tracks and collection entries go with it (ON DELETE CASCADE)
        await self.db.delete(release)
        await self.db.commit()
        logger.info(f"Deleted release {release_id}")

    async def list_admin(
        self,
        page: int = 1,
        limit: int = 50,
        search: Optional[str] = None,
        release_type: Optional[str] = None,
        artist: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        show_test_data: bool = True
    ) -> dict:
        query, stats = self._base_query()
        query = query.join(Artist, Artist.id == Release.artist_id)
        filters = []
        if search:
            pattern = f"%{search}%"
            filters.append(or_(Release.title.ilike(pattern), Artist.name.ilike(pattern)))
        if release_type:
            filters.append(Release.type == release_type)
        if artist:
            filters.append(Artist.name.ilike(f"%{artist}%"))
        if not show_test_data:
            filters.append(Release.is_test_data.is_(False))
        if filters:
            query = query.where(*filters)

        count_query = select(func.count(Release.id)).join(Artist, Artist.id == Release.artist_id)
        if filters:
            count_query = count_query.where(*filters)
        total = (await self.db.execute(count_query)).scalar_one()

        sort_column = {
            "created_at": Release.created_at,
            "title": Release.title,
            "artist": Artist.name,
            "release_date": Release.release_date,
            "rating": func.coalesce(stats.c.average_rating, 0),
        }.get(sort_by, Release.created_at)
        ordering = sort_column.asc() if sort_order == "asc" else sort_column.desc()
        query = query.order_by(ordering.nulls_last(), Release.id).offset((page - 1) * limit).limit(limit)

        result = await self.db.execute(query)
        return {
            "releases": attach_stats(result.all()),
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if total else 0,
        }
