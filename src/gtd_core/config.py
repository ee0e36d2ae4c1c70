"""Application settings loaded from the environment."""
import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env early so every module sees the same environment
load_dotenv()


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Server configuration."""

    database_url: str = "sqlite:///./gtd.db"
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    google_callback_url: Optional[str] = None
    review_strict_order: bool = False
    auto_create_tables: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        values: dict = {}
        if os.getenv("DATABASE_URL"):
            values["database_url"] = os.environ["DATABASE_URL"]
        if os.getenv("JWT_SECRET"):
            values["jwt_secret"] = os.environ["JWT_SECRET"]
        if os.getenv("JWT_ALGORITHM"):
            values["jwt_algorithm"] = os.environ["JWT_ALGORITHM"]
        if os.getenv("JWT_EXPIRE_DAYS"):
            values["jwt_expire_days"] = int(os.environ["JWT_EXPIRE_DAYS"])
        if os.getenv("CORS_ORIGINS"):
            values["cors_origins"] = [
                origin.strip() for origin in os.environ["CORS_ORIGINS"].split(",") if origin.strip()
            ]
        values["google_client_id"] = os.getenv("GOOGLE_CLIENT_ID")
        values["google_client_secret"] = os.getenv("GOOGLE_CLIENT_SECRET")
        values["google_callback_url"] = os.getenv("GOOGLE_CALLBACK_URL")
        values["review_strict_order"] = _as_bool(os.getenv("GTD_REVIEW_STRICT_ORDER"), False)
        values["auto_create_tables"] = _as_bool(os.getenv("GTD_AUTO_CREATE_TABLES"), True)
        return cls(**values)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings.from_env()
