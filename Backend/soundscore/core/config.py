import os
from typing import List
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# The .env file lives at the project root, two levels above the package.
_config_dir = os.path.dirname(os.path.abspath(__file__))
_backend_dir = os.path.dirname(os.path.dirname(_config_dir))
_project_root = os.path.dirname(_backend_dir)
_dotenv_path = os.path.join(_project_root, '.env')



class Settings(BaseSettings):
    DATABASE_URL: str
    SQL_ECHO: bool = False
    DEBUG: bool = False
    PORT: int = 8000

    # Google OAuth settings
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_CALLBACK_URL: str = "http://localhost:8000/api/callback"

    # Server-side sessions
    SESSION_SECRET: str
    SESSION_COOKIE_NAME: str = "soundscore.sid"
    SESSION_TTL_DAYS: int = 7
    SESSION_COOKIE_SECURE: bool = False

    CORS_ORIGINS: List[str] = ["http://localhost:5173"]
    RATE_LIMIT_ENABLED: bool = True

    DEEZER_API_URL: str = "https://api.deezer.com"

    model_config = SettingsConfigDict(
        env_file=_dotenv_path,
        env_file_encoding='utf-8',
        extra='ignore'
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def use_async_driver(cls, value: str) -> str:
        # Hosting providers hand out plain postgres:// URLs; we need asyncpg.
        if value.startswith("postgres://"):
            return value.replace("postgres://", "postgresql+asyncpg://", 1)
        if value.startswith("postgresql://"):
            return value.replace("postgresql://", "postgresql+asyncpg://", 1)
        return value

settings = Settings()
