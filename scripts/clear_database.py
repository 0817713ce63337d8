import asyncio
import os
import sys
from sqlalchemy import text
from dotenv import load_dotenv

backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'Backend'))
sys.path.append(backend_dir)

# Load environment variables from the project's .env file
load_dotenv(os.path.join(os.path.dirname(backend_dir), ".env"))

from soundscore.services.database import engine

# Children first, although CASCADE would cope with any order
TABLES = [
    "import_logs",
    "collection_releases",
    "collections",
    "reports",
    "comment_reactions",
    "comments",
    "tracks",
    "releases",
    "artists",
    "user_sessions",
    "users",
]

async def clear_database():
    """
    Drops every SoundScore table.
    This is useful for starting over during development; run create_tables.py afterwards.
    """
    print("Connecting to database...")
    async with engine.begin() as conn:
        for table in TABLES:
            print(f"Dropping {table}...")
            await conn.execute(text(f"DROP TABLE IF EXISTS {table} CASCADE"))
    print("Tables cleared successfully.")
    await engine.dispose()

if __name__ == "__main__":
    print("This script will permanently delete all SoundScore data from your database.")
    confirm = input("Are you sure you want to continue? (y/n): ")
    if confirm.lower() == 'y':
        asyncio.run(clear_database())
    else:
        print("Operation cancelled.")
