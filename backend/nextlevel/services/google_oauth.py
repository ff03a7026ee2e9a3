"""
Google OAuth (external identity login)

Builds the consent URL and exchanges an authorization code for the user's
Google identity, returned as a provider profile:
{"id": ..., "emails": [{"value": ...}], "displayName": ...}
"""
import logging
from urllib.parse import urlencode

import httpx

from nextlevel.core.errors import InvalidCredentials, ValidationFailed

logger = logging.getLogger("uvicorn.error")

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

SCOPES = ["openid", "profile", "email"]


class GoogleOAuthClient:
    def __init__(self, client_id: str, client_secret: str, redirect_uri: str, timeout: float = 10.0):
        if not client_id or not client_secret:
            raise ValueError("GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are required")
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._timeout = timeout

    def authorization_url(self, state: str | None = None) -> str:
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
        }
        if state:
            params["state"] = state
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> dict:
        """
        Exchange an authorization code and read the user's Google identity.

        Raises:
            ValidationFailed: no code supplied
            InvalidCredentials: Google rejected the code or the userinfo call failed
        """
        if not code:
            raise ValidationFailed("authorization code required")

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                token_resp = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "client_id": self._client_id,
                        "client_secret": self._client_secret,
                        "code": code,
                        "grant_type": "authorization_code",
                        "redirect_uri": self._redirect_uri,
                    },
                )
                token_resp.raise_for_status()
                access_token = token_resp.json().get("access_token")
                if not access_token:
                    raise InvalidCredentials("Google did not return an access token")

                info_resp = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                info_resp.raise_for_status()
                info = info_resp.json()
            except httpx.HTTPError as e:
                logger.warning("[oauth] google exchange failed: %s", e)
                raise InvalidCredentials("Google sign-in failed") from e

        return {
            "id": info.get("id"),
            "emails": [{"value": info["email"]}] if info.get("email") else [],
            "displayName": info.get("name"),
        }
