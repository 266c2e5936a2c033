"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./parking.db"

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 8080

    # ── Traffic provider (TomTom Flow Segment API) ────────────────────────
    TRAFFIC_API_KEY: Optional[str] = None   # Unset → synthetic traffic data only
    TRAFFIC_API_BASE_URL: str = "https://api.tomtom.com"
    TRAFFIC_API_TIMEOUT_SECONDS: float = 5.0
    TRAFFIC_CACHE_TTL_SECONDS: int = 60        # Free plan allows ~2500 requests/day

    # ── Access points ─────────────────────────────────────────────────────
    @property
    def ACCESS_POINTS(self) -> dict:
        # synthetic = (current_speed, free_flow_speed) served when the provider is unavailable
        return {
            "vegas": {"road": "Av. Las Vegas", "lat": 6.202, "lng": -75.577, "synthetic": (35.0, 50.0)},
            "cra49": {"road": "Cra 49 / Regional", "lat": 6.202, "lng": -75.581, "synthetic": (18.0, 45.0)},
        }

    # ── Crowdsourced reports ──────────────────────────────────────────────
    REPORT_RATE_LIMIT: int = 3               # Max reports per submitter...
    REPORT_RATE_WINDOW_MINUTES: int = 10     # ...within this trailing window
    REPORT_FEED_LIMIT: int = 50

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True
    LOG_DIR: Optional[str] = None            # Default: <project>/logs

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
