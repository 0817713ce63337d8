import sys
import os
import asyncio
from datetime import date

from dotenv import load_dotenv

backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend'))
sys.path.append(backend_dir)
load_dotenv(os.path.join(os.path.dirname(backend_dir), ".env"))

from soundscore.models.user import User
from soundscore.models.user_session import UserSession
from soundscore.models.artist import Artist
from soundscore.models.release import Release
from soundscore.models.track import Track
from soundscore.models.comment import Comment
from soundscore.models.comment_reaction import CommentReaction
from soundscore.models.report import Report
from soundscore.models.collection import Collection
from soundscore.models.collection_release import CollectionRelease
from soundscore.models.import_log import ImportLog
from soundscore.services.database import engine, SessionLocal

async def create_demo_data():
    async with SessionLocal() as session:
        # Create demo users; real accounts come from Google sign-in
        users = [
            User(
                google_id="demo-admin",
                email="admin@soundscore.fm",
                nickname="curator",
                is_admin=True
            ),
            User(
                google_id="demo-listener",
                email="listener@soundscore.fm",
                nickname="vinyl_lover"
            )
        ]
        session.add_all(users)
        await session.flush()

        # Create demo artists
        artists = [
            Artist(name="The Beatles", deezer_id="1"),
            Artist(name="Pink Floyd", deezer_id="860"),
            Artist(name="Miles Davis", deezer_id="1970")
        ]
        session.add_all(artists)
        await session.flush()

        # Create demo releases; the last two are flagged as test data
        releases = [
            Release(title="Abbey Road", type="album", release_date=date(1969, 9, 26), artist_id=artists[0].id),
            Release(title="Let It Be", type="album", release_date=date(1970, 5, 8), artist_id=artists[0].id),
            Release(title="The Dark Side of the Moon", type="album", release_date=date(1973, 3, 1), artist_id=artists[1].id),
            Release(title="Wish You Were Here", type="album", release_date=date(1975, 9, 12), artist_id=artists[1].id),
            Release(title="Kind of Blue", type="album", release_date=date(1959, 8, 17), artist_id=artists[2].id),
            Release(title="So What", type="single", release_date=date(1959, 8, 17), artist_id=artists[2].id, is_test_data=True),
            Release(title="Jazz Sampler", type="compilation", artist_id=artists[2].id, is_test_data=True),
        ]
        session.add_all(releases)
        await session.flush()

        # Create demo tracks
        session.add_all([
            Track(title="Come Together", position=1, duration=259, release_id=releases[0].id),
            Track(title="Something", position=2, duration=182, release_id=releases[0].id),
            Track(title="Money", position=6, duration=382, release_id=releases[2].id),
            Track(title="So What", position=1, duration=562, release_id=releases[4].id),
        ])

        # Ratings, one of them with a review
        session.add_all([
            Comment(user_id=users[1].id, release_id=releases[0].id, score=10, text="A perfect closing statement."),
            Comment(user_id=users[1].id, release_id=releases[2].id, score=9),
            Comment(user_id=users[0].id, release_id=releases[0].id, score=8),
        ])

        # An active collection needs at least five releases
        collection = Collection(
            title="Classic Albums",
            subtitle="Start here",
            user_id=users[0].id,
            is_active=True
        )
        collection.entries = [
            CollectionRelease(release_id=release.id, sort_order=position)
            for position, release in enumerate(releases[:5])
        ]
        session.add(collection)

        # Commit all changes
        await session.commit()
        print("✅ Demo data created successfully!")

    await engine.dispose()

if __name__ == "__main__":
    asyncio.run(create_demo_data())
