import asyncio
import os
import sys
from dotenv import load_dotenv

backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend'))
sys.path.append(backend_dir)
load_dotenv(os.path.join(os.path.dirname(backend_dir), ".env"))

# Import all models so the relationships between them can be resolved.
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
from soundscore.services.session_store import SessionStore

async def purge_sessions():
    """Deletes expired login sessions. Safe to run from cron."""
    async with SessionLocal() as session:
        removed = await SessionStore(session).purge_expired()
    print(f"Removed {removed} expired sessions.")
    await engine.dispose()

if __name__ == "__main__":
    asyncio.run(purge_sessions())
