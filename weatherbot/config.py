"""Webhook configuration loaded from environment variables and an optional .env file."""

from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # OpenWeatherMap
    openweather_api_key: Optional[str] = None
    openweather_base_url: str = "https://api.openweathermap.org"
    http_timeout: float = 8.0

    # Calendar-day arithmetic (today/tomorrow, grouping samples by day)
    timezone: str = "UTC"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v):
        try:
            ZoneInfo(v)
        except ZoneInfoNotFoundError:
            raise ValueError(f"unknown timezone: {v}")
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@lru_cache
def get_settings() -> Settings:
    return Settings()
