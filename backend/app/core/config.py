"""
NoTouch Configuration
Central configuration loaded from environment variables.
"""

from pathlib import Path
from typing import List, Tuple

from pydantic_settings import BaseSettings

from touch_model import DetectionZone, parse_zone_list


class Settings(BaseSettings):
    # App
    APP_NAME: str = "NoTouch"
    NOTOUCH_ENV: str = "development"
    DEBUG: bool = True

    # Database
    DATABASE_URL: str = "sqlite:///./notouch.db"
    STATISTICS_STORAGE_KEY: str = "notouch-statistics"

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000,http://localhost:8000"

    # Proximity detection
    TRIGGER_TIME: float = 1.0     # seconds near the face before an alert
    COOLDOWN_TIME: float = 2.0    # seconds before detection re-arms
    SENSITIVITY: float = 0.5      # 0..1, widens the detection radius
    ENABLED_ZONES: str = "fullFace"
    MIN_HAND_CONFIDENCE: float = 0.5

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]

    @property
    def enabled_zones(self) -> Tuple[DetectionZone, ...]:
        return parse_zone_list(self.ENABLED_ZONES)

    class Config:
        env_file = Path(__file__).resolve().parent.parent.parent / ".env"
        extra = "allow"


settings = Settings()
