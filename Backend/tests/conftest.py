"""
Pytest fixtures and configuration for SoundScore tests
"""
import os

# Settings are read at import time, so the environment has to be ready first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from datetime import date
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from soundscore.core.config import settings
from soundscore.core.exceptions import ExternalServiceError, NotFoundException
from soundscore.core.rate_limit import limiter
from soundscore.core.security import CSRF_HEADER_NAME, generate_csrf_token
from soundscore.models.artist import Artist
from soundscore.models.comment import Comment
from soundscore.models.release import Release
from soundscore.models.track import Track
from soundscore.models.user import User
from soundscore.services.database import Base, enable_sqlite_foreign_keys, get_db
from soundscore.services.deezer import get_deezer_service
from soundscore.services.google_oauth import get_google_oauth_client
from soundscore.services.session_store import SessionStore


class FakeGoogleOAuthClient:
    """Stands in for Google: hands back a fixed profile for any code."""

    def __init__(self):
        self.fail = False
        self.profile = {
            "sub": "google-sub-123",
            "email": "new.listener@gmail.com",
            "given_name": "New",
            "family_name": "Listener",
            "picture": "https://lh3.googleusercontent.com/a/photo.jpg",
        }

    def authorization_url(self, state: str) -> str:
        return f"https://accounts.google.com/o/oauth2/v2/auth?state={state}"

    async def fetch_profile(self, code: str) -> dict:
        if self.fail:
            raise ExternalServiceError("Google", "invalid_grant")
        return dict(self.profile)


class FakeDeezerService:
    """Serves canned Deezer album payloads."""

    def __init__(self):
        self.albums = {
            302127: {
                "id": 302127,
                "title": "Discovery",
                "record_type": "album",
                "release_date": "2001-03-07",
                "cover_xl": "https://e-cdns-images.dzcdn.net/images/cover/discovery/1000x1000.jpg",
                "link": "https://www.deezer.com/album/302127",
                "artist": {"id": 27, "name": "Daft Punk", "picture_xl": "https://e-cdns-images.dzcdn.net/images/artist/27.jpg"},
                "tracks": {"data": [
                    {"id": 3135553, "title": "One More Time", "duration": 320},
                    {"id": 3135554, "title": "Aerodynamic", "duration": 212},
                    {"id": 3135555, "title": "Digital Love", "duration": 301},
                ]},
            }
        }

    async def get_album(self, album_id: int) -> dict:
        if album_id not in self.albums:
            raise NotFoundException("Deezer resource", f"/album/{album_id}")
        return self.albums[album_id]

    async def search_albums(self, query: str, limit: int = 25) -> dict:
        hits = [album for album in self.albums.values() if query.lower() in album["title"].lower()]
        return {"data": hits[:limit], "total": len(hits)}


@pytest.fixture
async def engine():
    """Fresh in-memory database per test"""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    enable_sqlite_foreign_keys(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_google():
    return FakeGoogleOAuthClient()


@pytest.fixture
def fake_deezer():
    return FakeDeezerService()


@pytest.fixture(autouse=True)
async def app_overrides(session_factory, fake_google, fake_deezer):
    """Point the app at the test database and the fake third-party clients"""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_google_oauth_client] = lambda: fake_google
    app.dependency_overrides[get_deezer_service] = lambda: fake_deezer
    limiter.reset()
    yield
    app.dependency_overrides.clear()


# --- data helpers -----------------------------------------------------------

async def make_user(db, nickname: Optional[str] = None, is_admin: bool = False) -> User:
    suffix = nickname or f"anon{await count_rows(db, User)}"
    user = User(
        google_id=f"google-{suffix}",
        email=f"{suffix}@soundscore.fm",
        nickname=nickname,
        is_admin=is_admin
    )
    db.add(user)
    await db.commit()
    return user


async def make_artist(db, name: str = "Radiohead", **kwargs) -> Artist:
    artist = Artist(name=name, **kwargs)
    db.add(artist)
    await db.commit()
    return artist


async def make_release(db, artist: Artist, title: str, release_date: Optional[date] = None, **kwargs) -> Release:
    release = Release(title=title, artist_id=artist.id, release_date=release_date, **kwargs)
    db.add(release)
    await db.commit()
    return release


async def make_rating(db, user: User, release: Release, score: int, text: Optional[str] = None, is_anonymous: bool = False) -> Comment:
    comment = Comment(user_id=user.id, release_id=release.id, score=score, text=text, is_anonymous=is_anonymous)
    db.add(comment)
    await db.commit()
    return comment


async def make_track(db, release: Release, title: str, position: int) -> Track:
    track = Track(release_id=release.id, title=title, position=position)
    db.add(track)
    await db.commit()
    return track


async def count_rows(db, model, *criteria) -> int:
    query = select(func.count()).select_from(model)
    if criteria:
        query = query.where(*criteria)
    return (await db.execute(query)).scalar_one()


async def client_for(db, user: Optional[User] = None, with_csrf: bool = True) -> AsyncClient:
    """AsyncClient carrying a server-side session (and its CSRF token) for ``user``."""
    user_session = await SessionStore(db).create(user_id=user.id if user else None)
    headers = {CSRF_HEADER_NAME: generate_csrf_token(user_session)} if with_csrf else {}
    return AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=headers,
        cookies={settings.SESSION_COOKIE_NAME: SessionStore.sign(user_session.sid)}
    )


# --- users and clients ------------------------------------------------------

@pytest.fixture
async def user(db):
    return await make_user(db, nickname="listener")


@pytest.fixture
async def other_user(db):
    return await make_user(db, nickname="crate_digger")


@pytest.fixture
async def admin(db):
    return await make_user(db, nickname="curator", is_admin=True)


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as anonymous:
        yield anonymous


@pytest.fixture
async def user_client(db, user):
    async with await client_for(db, user) as authed:
        yield authed


@pytest.fixture
async def other_client(db, other_user):
    async with await client_for(db, other_user) as authed:
        yield authed


@pytest.fixture
async def admin_client(db, admin):
    async with await client_for(db, admin) as authed:
        yield authed


@pytest.fixture
async def artist(db):
    return await make_artist(db, "Radiohead", deezer_id="399")


@pytest.fixture
async def release(db, artist):
    return await make_release(db, artist, "OK Computer", date(1997, 5, 21), cover_url="https://covers.test/okc.jpg")


@pytest.fixture
async def releases(db, artist):
    """Six releases, enough to activate a collection"""
    titles = ["Pablo Honey", "The Bends", "Kid A", "Amnesiac", "Hail to the Thief", "In Rainbows"]
    return [
        await make_release(db, artist, title, date(1993 + i * 2, 1, 1))
        for i, title in enumerate(titles)
    ]
