"""Client settings loaded from the environment."""
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class ClientSettings(BaseModel):
    """Where the API lives and where the session is persisted."""

    api_url: str = "http://localhost:3001"
    session_file: Path = Path.home() / ".gtd" / "session.json"
    http_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "ClientSettings":
        values: dict = {}
        if os.getenv("GTD_API_URL"):
            values["api_url"] = os.environ["GTD_API_URL"]
        if os.getenv("GTD_SESSION_FILE"):
            values["session_file"] = Path(os.environ["GTD_SESSION_FILE"]).expanduser()
        if os.getenv("GTD_HTTP_TIMEOUT"):
            values["http_timeout"] = float(os.environ["GTD_HTTP_TIMEOUT"])
        return cls(**values)


@lru_cache
def get_client_settings() -> ClientSettings:
    """Return the process-wide client settings."""
    return ClientSettings.from_env()
