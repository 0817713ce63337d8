import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from soundscore.core.exceptions import ConflictError, NotFoundException, ValidationException
from soundscore.models.collection import Collection, MIN_ACTIVE_RELEASES
from soundscore.models.collection_release import CollectionRelease
from soundscore.models.comment import Comment
from soundscore.models.release import Release
from soundscore.models.user import User
from soundscore.schemas.collection import CollectionCreate, CollectionUpdate
from soundscore.services.base import BaseService
from soundscore.services.release_service import rounded_average

logger = logging.getLogger(__name__)


def _insufficient_releases(count: int) -> ValidationException:
    return ValidationException(
        f"Collection must have at least {MIN_ACTIVE_RELEASES} releases to be activated",
        errors=[{
            "field": "is_active",
            "message": f"Collection has {count} releases, {MIN_ACTIVE_RELEASES} required",
            "code": "INSUFFICIENT_RELEASES"
        }],
        code="INSUFFICIENT_RELEASES"
    )


class CollectionService(BaseService):

    def _query(self):
        return select(Collection).options(
            selectinload(Collection.entries)
            .selectinload(CollectionRelease.release)
            .selectinload(Release.artist)
        )

    async def get_collection(self, collection_id: int, include_inactive: bool = True) -> Collection:
        result = await self.db.execute(
            self._query().where(Collection.id == collection_id).execution_options(populate_existing=True)
        )
        collection = result.scalar_one_or_none()
        if collection is None or (not collection.is_active and not include_inactive):
            raise NotFoundException("Collection", collection_id)
        return collection

    async def list_collections(self, active_only: bool = True) -> List[Collection]:
        query = self._query().order_by(Collection.sort_order, Collection.id)
        if active_only:
            query = query.where(Collection.is_active.is_(True))
        result = await self.db.execute(query)
        return result.scalars().all()

    async def _check_releases_exist(self, release_ids: List[int]) -> None:
        if len(set(release_ids)) != len(release_ids):
            raise ValidationException("release_ids contains duplicates")
        if not release_ids:
            return
        result = await self.db.execute(select(Release.id).where(Release.id.in_(release_ids)))
        found = set(result.scalars().all())
        missing = [release_id for release_id in release_ids if release_id not in found]
        if missing:
            raise NotFoundException("Release", ", ".join(str(m) for m in missing))

    async def _replace_releases(self, collection: Collection, release_ids: List[int]) -> None:
        collection.entries.clear()
        # Flush the removals first so re-adding the same release doesn't trip the unique pair
        await self.db.flush()
        for position, release_id in enumerate(release_ids):
            collection.entries.append(CollectionRelease(release_id=release_id, sort_order=position))

    async def create_collection(self, collection_data: CollectionCreate, creator: User) -> Collection:
        await self._check_releases_exist(collection_data.release_ids)
        if collection_data.is_active and len(collection_data.release_ids) < MIN_ACTIVE_RELEASES:
            raise _insufficient_releases(len(collection_data.release_ids))

        collection = Collection(
            **collection_data.model_dump(exclude={"release_ids"}),
            user_id=creator.id
        )
        collection.entries = [
            CollectionRelease(release_id=release_id, sort_order=position)
            for position, release_id in enumerate(collection_data.release_ids)
        ]
        self.db.add(collection)
        await self.commit()
        logger.info(f"Created collection {collection.id} '{collection.title}' with {len(collection_data.release_ids)} releases")
        return await self.get_collection(collection.id)

    async def update_collection(self, collection_id: int, collection_data: CollectionUpdate) -> Collection:
        collection = await self.get_collection(collection_id)
        update_data = collection_data.model_dump(exclude_unset=True)
        release_ids = update_data.pop("release_ids", None)

        if release_ids is not None:
            await self._check_releases_exist(release_ids)
            release_count = len(release_ids)
        else:
            release_count = len(collection.entries)

        will_be_active = update_data.get("is_active")
        if will_be_active is None:
            will_be_active = collection.is_active
        if will_be_active and release_count < MIN_ACTIVE_RELEASES:
            raise _insufficient_releases(release_count)

        for field, value in update_data.items():
            if value is None and field in ("title", "is_active", "is_public", "sort_order"):
                continue
            setattr(collection, field, value)
        if release_ids is not None:
            await self._replace_releases(collection, release_ids)

        await self.commit()
        return await self.get_collection(collection_id)

    async def delete_collection(self, collection_id: int) -> None:
        collection = await self.get_or_404(Collection, collection_id)
        await self.db.delete(collection)
        await self.db.commit()

    async def add_release(self, collection_id: int, release_id: int, sort_order: Optional[int] = None) -> Collection:
        collection = await self.get_collection(collection_id)
        await self.get_or_404(Release, release_id)
        if any(entry.release_id == release_id for entry in collection.entries):
            raise ConflictError("Release is already in this collection", code="DUPLICATE")
        if sort_order is None:
            sort_order = max((entry.sort_order for entry in collection.entries), default=-1) + 1
        collection.entries.append(CollectionRelease(release_id=release_id, sort_order=sort_order))
        await self.commit(conflict_message="Release is already in this collection", conflict_code="DUPLICATE")
        return await self.get_collection(collection_id)

    async def remove_release(self, collection_id: int, release_id: int) -> Collection:
        collection = await self.get_collection(collection_id)
        entry = next((e for e in collection.entries if e.release_id == release_id), None)
        if entry is None:
            raise NotFoundException("Collection release", release_id)
        if collection.is_active and len(collection.entries) - 1 < MIN_ACTIVE_RELEASES:
            raise _insufficient_releases(len(collection.entries) - 1)
        collection.entries.remove(entry)
        await self.db.commit()
        return await self.get_collection(collection_id)

    async def update_release_sort_order(self, collection_id: int, release_id: int, sort_order: int) -> Collection:
        collection = await self.get_collection(collection_id)
        entry = next((e for e in collection.entries if e.release_id == release_id), None)
        if entry is None:
            raise NotFoundException("Collection release", release_id)
        entry.sort_order = sort_order
        await self.db.commit()
        return await self.get_collection(collection_id)

    async def get_stats(self, collection_id: int, include_inactive: bool = True) -> dict:
        collection = await self.get_collection(collection_id, include_inactive=include_inactive)
        release_ids = [entry.release_id for entry in collection.entries]
        if not release_ids:
            return {"total_releases": 0, "average_rating": 0.0, "total_comments": 0}
        result = await self.db.execute(
            select(func.avg(Comment.score), func.count(Comment.text)).where(Comment.release_id.in_(release_ids))
        )
        average, total_comments = result.one()
        return {
            "total_releases": len(release_ids),
            "average_rating": rounded_average(average),
            "total_comments": total_comments,
        }
