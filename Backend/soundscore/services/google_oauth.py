from typing import Dict, Any
from urllib.parse import urlencode
import httpx
import logging
from soundscore.core.config import settings
from soundscore.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class GoogleOAuthClient:
    def __init__(self):
        self.client_id = settings.GOOGLE_CLIENT_ID
        self.client_secret = settings.GOOGLE_CLIENT_SECRET
        self.redirect_uri = settings.GOOGLE_CALLBACK_URL

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "state": state,
            "prompt": "consent",
            "access_type": "online",
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> Dict[str, Any]:
        """
        Exchanges the authorization code for an access token and returns the
        OpenID Connect userinfo claims (sub, email, given_name, family_name, picture).
        """
        try:
            async with httpx.AsyncClient(timeout=15.0) as client:
                token_response = await client.post(
                    TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": self.redirect_uri,
                        "grant_type": "authorization_code",
                    }
                )
                token_response.raise_for_status()
                access_token = token_response.json().get("access_token")
                if not access_token:
                    raise ExternalServiceError("Google", "token response had no access_token")

                profile_response = await client.get(
                    USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"}
                )
                profile_response.raise_for_status()
                profile = profile_response.json()
        except httpx.RequestError as e:
            logger.error(f"Request error to Google OAuth: {e}")
            raise ExternalServiceError("Google", f"failed to connect: {e}")
        except httpx.HTTPStatusError as e:
            logger.error(f"Google OAuth returned status {e.response.status_code}: {e.response.text}")
            raise ExternalServiceError("Google", f"status {e.response.status_code}")

        if not profile.get("sub"):
            raise ExternalServiceError("Google", "profile is missing the subject claim")
        return profile

# Dependency
async def get_google_oauth_client() -> GoogleOAuthClient:
    """Dependency injection for GoogleOAuthClient"""
    return GoogleOAuthClient()
