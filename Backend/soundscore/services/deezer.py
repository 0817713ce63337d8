from typing import Dict, Any
import httpx
import logging
from soundscore.core.config import settings
from soundscore.core.exceptions import ExternalServiceError, NotFoundException

logger = logging.getLogger(__name__)

class DeezerService:
    def __init__(self):
        self.base_url = settings.DEEZER_API_URL
        self.headers = {"User-Agent": "SoundScore/1.0"}

    async def _get(self, path: str, params: Dict[str, Any] | None = None) -> Dict[str, Any]:
        logger.info(f"DeezerService: GET {path}")
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    f"{self.base_url}{path}",
                    headers=self.headers,
                    params=params,
                    timeout=30.0
                )
                response.raise_for_status()
                data = response.json()
        except httpx.RequestError as e:
            logger.error(f"Request error to Deezer API: {e}")
            raise ExternalServiceError("Deezer", f"failed to connect: {e}")
        except httpx.HTTPStatusError as e:
            logger.error(f"Deezer API returned status {e.response.status_code}: {e.response.text}")
            raise ExternalServiceError("Deezer", f"status {e.response.status_code}")
        except ValueError as e:
            logger.error(f"Deezer API returned a non-JSON body for {path}: {e}")
            raise ExternalServiceError("Deezer", "invalid response body")

        # Deezer reports errors with a 200 and an "error" object
        if isinstance(data, dict) and data.get("error"):
            error = data["error"]
            logger.warning(f"Deezer API error for {path}: {error}")
            if error.get("code") == 800:
                raise NotFoundException("Deezer resource", path)
            raise ExternalServiceError("Deezer", error.get("message", "unknown error"))
        return data

    async def get_album(self, album_id: int) -> Dict[str, Any]:
        """Album with its artist and the first page of tracks."""
        return await self._get(f"/album/{album_id}")

    async def search_albums(self, query: str, limit: int = 25) -> Dict[str, Any]:
        return await self._get("/search/album", params={"q": query, "limit": limit})

# Dependency
async def get_deezer_service() -> DeezerService:
    """Dependency injection for DeezerService"""
    return DeezerService()
