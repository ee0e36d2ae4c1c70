"""Persisted authentication session.

The token and user are stored together under a single key of a JSON file so
a restarted client can resume without logging in again. The file may hold
other keys; only ``gtd-auth`` is ever touched here.
"""
import json
import logging
from pathlib import Path
from typing import Optional

from gtd_core.schemas import AuthResponse, UserResponse

from .api import ApiError, GTDApiClient
from .config import get_client_settings

logger = logging.getLogger("gtd-client.session")

SESSION_KEY = "gtd-auth"


class AuthSession:
    """Login state shared by everything that talks to the API."""

    def __init__(self, api: GTDApiClient, session_file: Optional[Path] = None):
        self.api = api
        self.session_file = Path(session_file or get_client_settings().session_file)
        self.token: Optional[str] = None
        self.user: Optional[UserResponse] = None
        self.is_loading = False
        self._load()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None

    def _read_file(self) -> dict:
        if not self.session_file.exists():
            return {}
        try:
            data = json.loads(self.session_file.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.session_file}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _load(self) -> None:
        stored = self._read_file().get(SESSION_KEY)
        if not isinstance(stored, dict) or not stored.get("token"):
            return
        try:
            user = UserResponse.model_validate(stored.get("user"))
        except ValueError as e:
            logger.warning(f"Discarding stored session with invalid user: {e}")
            return
        self.token = stored["token"]
        self.user = user
        self.api.set_token(self.token)

    def _persist(self) -> None:
        data = self._read_file()
        if self.token and self.user:
            data[SESSION_KEY] = {
                "token": self.token,
                "user": self.user.model_dump(mode="json", by_alias=True),
            }
        else:
            data.pop(SESSION_KEY, None)

        self.session_file.parent.mkdir(parents=True, exist_ok=True)
        self.session_file.write_text(json.dumps(data, indent=2))

    def _apply(self, auth: AuthResponse) -> UserResponse:
        self.token = auth.token
        self.user = auth.user
        self.api.set_token(auth.token)
        self._persist()
        logger.info(f"Signed in as {auth.user.email}")
        return auth.user

    async def login(self, email: str, password: str) -> UserResponse:
        """Sign in with email and password."""
        self.is_loading = True
        try:
            return self._apply(await self.api.login(email, password))
        finally:
            self.is_loading = False

    async def register(self, email: str, password: str, name: str) -> UserResponse:
        """Create an account and sign in."""
        self.is_loading = True
        try:
            return self._apply(await self.api.register(email, password, name))
        finally:
            self.is_loading = False

    async def google_login(self, code: str, redirect_uri: Optional[str] = None) -> UserResponse:
        """Exchange a Google authorization code and sign in."""
        self.is_loading = True
        try:
            return self._apply(await self.api.google_login(code, redirect_uri))
        finally:
            self.is_loading = False

    def logout(self) -> None:
        """Forget the token and user, in memory and on disk."""
        self.token = None
        self.user = None
        self.api.set_token(None)
        self._persist()
        logger.info("Signed out")

    async def check_auth(self) -> bool:
        """
        Confirm the stored token is still accepted by the server.

        Returns:
            True if the session is valid. A 401 clears the session; any other
            failure propagates and leaves the session untouched.
        """
        if not self.token:
            self.logout()
            return False

        self.is_loading = True
        try:
            self.user = await self.api.me()
        except ApiError as e:
            if e.status_code != 401:
                raise
            logger.info(f"Stored session rejected: {e.message}")
            self.logout()
            return False
        finally:
            self.is_loading = False

        self._persist()
        return True
