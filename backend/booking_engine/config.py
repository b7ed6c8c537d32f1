# backend/booking_engine/config.py

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = Field(default="sqlite:///./data/booking.db")
    redis_url: str = Field(default="redis://localhost:6379/0")

    log_level: str = Field(default="INFO")

    # Continuous model step, minutes
    slot_step_minutes: int = Field(default=30)
    config_cache_ttl_seconds: int = Field(default=3600)
    events_queue: str = Field(default="events:p2p")

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
