import argparse
import asyncio
import os
import sys
from dotenv import load_dotenv

backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend'))
sys.path.append(backend_dir)
load_dotenv(os.path.join(os.path.dirname(backend_dir), ".env"))

from sqlalchemy import or_, select

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

async def set_admin(identifier: str, revoke: bool = False) -> bool:
    """Grant (or revoke) admin rights for the user with this nickname or email."""
    try:
        async with SessionLocal() as session:
            result = await session.execute(
                select(User).where(or_(User.nickname == identifier, User.email == identifier))
            )
            user = result.scalar_one_or_none()
            if user is None:
                print(f"No user with nickname or email '{identifier}'.")
                return False
            user.is_admin = not revoke
            await session.commit()
            print(f"{'Revoked' if revoke else 'Granted'} admin for {user.nickname or user.email} ({user.id}).")
        return True
    finally:
        await engine.dispose()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Grant or revoke SoundScore admin rights.")
    parser.add_argument("identifier", help="nickname or email of the user")
    parser.add_argument("--revoke", action="store_true", help="remove admin rights instead")
    args = parser.parse_args()
    ok = asyncio.run(set_admin(args.identifier, revoke=args.revoke))
    sys.exit(0 if ok else 1)
