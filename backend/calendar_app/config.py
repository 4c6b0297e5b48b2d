"""
Calendar app settings (pydantic-settings).
Every field can be overridden by an environment variable of the same name or a .env entry.
"""

from pydantic import Field
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Runtime settings: app metadata, calendars file, conflict rules and autosave."""

    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "calendar-app"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"  # comma-separated

    # ── Persistence ──────────────────────────────────────
    CALENDARS_FILE: str = "calendars.txt"
    SEED_DEFAULT_CALENDARS: bool = True  # sample Work/Personal calendars when nothing restores

    # ── Calendar rules ───────────────────────────────────
    DEFAULT_ALLOW_CONFLICTS: bool = False
    RECURRENCE_HORIZON_YEARS: int = Field(default=2, ge=1, le=10)  # scan cap for recurrence patterns

    # ── Autosave ─────────────────────────────────────────
    AUTOSAVE_ENABLED: bool = True
    AUTOSAVE_INTERVAL_MINUTES: int = 5

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance (singleton)."""
    return Settings()
