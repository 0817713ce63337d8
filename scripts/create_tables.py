import asyncio
import os
import sys
from dotenv import load_dotenv

backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend'))
sys.path.append(backend_dir)
load_dotenv(os.path.join(os.path.dirname(backend_dir), ".env"))

# Every model has to be imported for create_all to see its table.
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
from soundscore.services.database import Base, engine

async def create_tables():
    """Creates any missing SoundScore tables. Existing tables are left alone."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")
    await engine.dispose()

if __name__ == "__main__":
    asyncio.run(create_tables())
