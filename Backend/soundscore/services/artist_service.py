import logging
from typing import List

from sqlalchemy import select

from soundscore.core.exceptions import DuplicateError
from soundscore.models.artist import Artist
from soundscore.models.release import Release
from soundscore.schemas.artist import ArtistCreate, ArtistUpdate
from soundscore.services.base import BaseService

logger = logging.getLogger(__name__)


class ArtistService(BaseService):

    async def list_artists(self) -> List[Artist]:
        result = await self.db.execute(select(Artist).order_by(Artist.name))
        return result.scalars().all()

    async def get_artist(self, artist_id: int) -> Artist:
        return await self.get_or_404(Artist, artist_id)

    async def search(self, q: str, limit: int = 20) -> List[Artist]:
        """Case-insensitive name search; each hit carries its newest cover art."""
        latest_cover = (
            select(Release.cover_url)
            .where(Release.artist_id == Artist.id, Release.cover_url.is_not(None))
            .order_by(Release.release_date.desc().nulls_last(), Release.id.desc())
            .limit(1)
            .correlate(Artist)
            .scalar_subquery()
        )
        result = await self.db.execute(
            select(Artist, latest_cover.label("latest_release_cover"))
            .where(Artist.name.ilike(f"%{q}%"))
            .order_by(Artist.name)
            .limit(limit)
        )
        artists = []
        for artist, cover in result.all():
            artist.latest_release_cover = cover
            artists.append(artist)
        return artists

    async def create_artist(self, artist_data: ArtistCreate) -> Artist:
        existing = await self.db.execute(select(Artist.id).where(Artist.name == artist_data.name))
        if existing.first() is not None:
            raise DuplicateError("Artist", artist_data.name)
        artist = Artist(**artist_data.model_dump())
        self.db.add(artist)
        await self.commit(conflict_message=f"Artist '{artist_data.name}' already exists")
        await self.db.refresh(artist)
        logger.info(f"Created artist {artist.id}: {artist.name}")
        return artist

    async def update_artist(self, artist_id: int, artist_data: ArtistUpdate) -> Artist:
        artist = await self.get_or_404(Artist, artist_id)
        for field, value in artist_data.model_dump(exclude_unset=True).items():
            if field == "name" and value is None:
                continue
            setattr(artist, field, value)
        await self.commit(conflict_message="An artist with this name or Deezer id already exists")
        await self.db.refresh(artist)
        return artist
