import logging
import time
import uuid
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from soundscore.core.exceptions import ConflictError, ExternalServiceError, SoundscoreException
from soundscore.models.artist import Artist
from soundscore.models.import_log import ImportLog, ImportStatus
from soundscore.models.release import Release, ReleaseType
from soundscore.models.track import Track
from soundscore.models.user import User
from soundscore.services.base import BaseService
from soundscore.services.database import utcnow
from soundscore.services.deezer import DeezerService

logger = logging.getLogger(__name__)

DEEZER_SOURCE = "deezer"
RECENT_RELEASE_DAYS = 7

# Deezer's record_type values mapped onto ours
DEEZER_RECORD_TYPES = {
    "album": ReleaseType.ALBUM,
    "single": ReleaseType.SINGLE,
    "ep": ReleaseType.SINGLE,
    "compile": ReleaseType.COMPILATION,
    "compilation": ReleaseType.COMPILATION,
}


def parse_deezer_date(value: Optional[str]) -> Optional[date]:
    # Deezer uses "0000-00-00" for unknown dates
    if not value or value.startswith("0000"):
        return None
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        logger.debug(f"Unparseable Deezer release date: {value}")
        return None
    return parsed if parsed <= date.today() else None


class ImportService(BaseService):

    async def get_log(self, log_id: uuid.UUID) -> Optional[ImportLog]:
        """Retrieve an import log by its ID."""
        result = await self.db.execute(select(ImportLog).where(ImportLog.id == log_id))
        return result.scalar_one_or_none()

    async def list_logs(self, limit: int = 20) -> List[ImportLog]:
        result = await self.db.execute(
            select(ImportLog).order_by(ImportLog.created_at.desc()).limit(limit)
        )
        return result.scalars().all()

    async def get_latest_log(self) -> Optional[ImportLog]:
        logs = await self.list_logs(limit=1)
        return logs[0] if logs else None

    async def get_stats(self) -> dict:
        since = utcnow() - timedelta(days=RECENT_RELEASE_DAYS)
        total_artists = (await self.db.execute(select(func.count(Artist.id)))).scalar_one()
        total_releases = (await self.db.execute(select(func.count(Release.id)))).scalar_one()
        artists_with_deezer = (
            await self.db.execute(select(func.count(Artist.id)).where(Artist.deezer_id.is_not(None)))
        ).scalar_one()
        recent_releases = (
            await self.db.execute(select(func.count(Release.id)).where(Release.created_at >= since))
        ).scalar_one()
        return {
            "total_artists": total_artists,
            "total_releases": total_releases,
            "artists_with_deezer": artists_with_deezer,
            "recent_releases": recent_releases,
        }

    async def get_or_create_artist(self, artist_data: Dict[str, Any]) -> Artist:
        deezer_id = str(artist_data["id"]) if artist_data.get("id") else None

        # 1. Try to find by Deezer ID
        if deezer_id:
            result = await self.db.execute(select(Artist).where(Artist.deezer_id == deezer_id))
            db_artist = result.scalar_one_or_none()
            if db_artist:
                logger.debug(f"Found existing artist in DB by deezer_id={deezer_id}: {db_artist.name}")
                return db_artist

        # 2. Fall back to the name, backfilling the Deezer ID and picture
        result = await self.db.execute(select(Artist).where(Artist.name == artist_data.get("name")))
        db_artist = result.scalar_one_or_none()
        if db_artist:
            logger.debug(f"Found existing artist in DB by name: {db_artist.name}")
            if not db_artist.deezer_id and deezer_id:
                db_artist.deezer_id = deezer_id
            if not db_artist.image_url:
                db_artist.image_url = artist_data.get("picture_xl") or artist_data.get("picture_big")
            return db_artist

        # 3. Create it
        logger.debug(f"Creating new artist: {artist_data.get('name')} with deezer_id={deezer_id}")
        db_artist = Artist(
            name=artist_data.get("name"),
            deezer_id=deezer_id,
            image_url=artist_data.get("picture_xl") or artist_data.get("picture_big")
        )
        self.db.add(db_artist)
        await self.db.flush()  # Use flush to get the ID before the transaction commits.
        return db_artist

    async def _create_release(self, album_id: int, data: Dict[str, Any]) -> Tuple[Release, int]:
        artist_data = data.get("artist") or {}
        if not artist_data.get("name"):
            raise ExternalServiceError("Deezer", "album has no artist")
        artist = await self.get_or_create_artist(artist_data)

        existing = await self.db.execute(
            select(Release.id).where(Release.artist_id == artist.id, Release.title == data.get("title"))
        )
        if existing.first() is not None:
            raise ConflictError(f"Release '{data.get('title')}' by {artist.name} already exists", code="DUPLICATE")

        release = Release(
            title=(data.get("title") or "Unknown Title")[:255],
            type=DEEZER_RECORD_TYPES.get(data.get("record_type", "album"), ReleaseType.ALBUM).value,
            release_date=parse_deezer_date(data.get("release_date")),
            cover_url=data.get("cover_xl") or data.get("cover_big"),
            streaming_links={"deezer": data["link"]} if data.get("link") else {},
            deezer_id=str(album_id),
            artist_id=artist.id
        )
        self.db.add(release)
        await self.db.flush()  # Flush to get the release.id

        tracks = (data.get("tracks") or {}).get("data", [])
        for position, track_item in enumerate(tracks, start=1):
            self.db.add(Track(
                title=track_item.get("title") or "Untitled",
                position=track_item.get("track_position") or position,
                duration=track_item.get("duration"),
                release_id=release.id
            ))
        return release, len(tracks)

    async def import_deezer_album(self, album_id: int, user: User, deezer_service: DeezerService) -> Tuple[ImportLog, Release]:
        """
        Fetches a Deezer album and stores its artist, release and tracks.
        Every attempt leaves an ImportLog row, including failed ones.
        """
        log = ImportLog(
            source=DEEZER_SOURCE,
            parameters={"album_id": album_id},
            status=ImportStatus.RUNNING.value,
            user_id=user.id,
            started_at=utcnow()
        )
        self.db.add(log)
        await self.db.commit()
        log_id = log.id
        started = time.perf_counter()

        try:
            existing = await self.db.execute(select(Release).where(Release.deezer_id == str(album_id)))
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(f"Deezer album {album_id} has already been imported", code="DUPLICATE")

            logger.info(f"Fetching album {album_id} from Deezer API")
            data = await deezer_service.get_album(album_id)
            release, track_count = await self._create_release(album_id, data)
            await self.db.commit()
        except SoundscoreException as e:
            await self.db.rollback()
            await self._finish_log(log_id, ImportStatus.FAILED, started, error=str(e.detail))
            logger.warning(f"Deezer import of album {album_id} failed: {e.detail}")
            raise
        except IntegrityError as e:
            await self.db.rollback()
            await self._finish_log(log_id, ImportStatus.FAILED, started, error="Release or artist already exists")
            logger.warning(f"Deezer import of album {album_id} hit a constraint: {e.orig}")
            raise ConflictError("Release or artist already exists", code="DUPLICATE")

        log = await self._finish_log(
            log_id,
            ImportStatus.COMPLETED,
            started,
            result={"release_id": release.id, "artist_id": release.artist_id, "tracks": track_count}
        )
        logger.info(f"Imported Deezer album {album_id} as release {release.id} ({track_count} tracks)")
        return log, release

    async def _finish_log(
        self,
        log_id: uuid.UUID,
        status: ImportStatus,
        started: float,
        result: Optional[dict] = None,
        error: Optional[str] = None
    ) -> ImportLog:
        log = await self.get_log(log_id)
        log.status = status.value
        log.result = result
        log.error = error
        log.completed_at = utcnow()
        log.duration_s = round(time.perf_counter() - started, 3)
        await self.db.commit()
        await self.db.refresh(log)
        return log
