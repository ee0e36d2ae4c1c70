"""Google OAuth authorization-code exchange."""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .config import get_settings

logger = logging.getLogger("gtd-core.sso")

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"


class SSONotConfiguredError(Exception):
    """Raised when Google OAuth credentials are not configured."""


class SSOExchangeError(Exception):
    """Raised when Google rejects the code or the profile lookup fails."""


@dataclass(frozen=True)
class SSOProfile:
    """Subset of the Google profile we keep."""

    sso_id: str
    email: str
    name: str
    avatar: Optional[str] = None


class GoogleOAuthClient:
    """Exchanges an authorization code for the caller's Google profile."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        default_redirect_uri: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        settings = get_settings()
        self.client_id = client_id or settings.google_client_id
        self.client_secret = client_secret or settings.google_client_secret
        self.default_redirect_uri = default_redirect_uri or settings.google_callback_url or ""
        self._transport = transport

    def exchange_code(self, code: str, redirect_uri: Optional[str] = None) -> SSOProfile:
        """
        Exchange an authorization code and fetch the user's profile.

        Args:
            code: Authorization code returned to the redirect URI
            redirect_uri: Redirect URI used when requesting the code

        Returns:
            SSOProfile of the Google account

        Raises:
            SSONotConfiguredError: If client id or secret is missing
            SSOExchangeError: If either Google call fails
        """
        if not self.client_id or not self.client_secret:
            raise SSONotConfiguredError("Google OAuth not configured")

        try:
            with httpx.Client(timeout=30.0, transport=self._transport) as client:
                token_response = client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": redirect_uri or self.default_redirect_uri,
                        "grant_type": "authorization_code",
                    },
                )
                if token_response.is_error:
                    logger.error(f"Google token error: {token_response.status_code} {token_response.text}")
                    raise SSOExchangeError("Failed to exchange authorization code")

                access_token = token_response.json().get("access_token")
                userinfo_response = client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                if userinfo_response.is_error:
                    logger.error(f"Google userinfo error: {userinfo_response.status_code}")
                    raise SSOExchangeError("Failed to get user info from Google")
        except httpx.HTTPError as e:
            logger.error(f"Google OAuth request failed: {e}")
            raise SSOExchangeError("Failed to reach Google") from e

        info = userinfo_response.json()
        return SSOProfile(
            sso_id=str(info["id"]),
            email=info["email"],
            name=info.get("name") or info["email"],
            avatar=info.get("picture"),
        )


def get_sso_client() -> GoogleOAuthClient:
    """Dependency returning the Google OAuth client."""
    return GoogleOAuthClient()
