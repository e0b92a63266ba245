from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_",
        case_sensitive=False,
    )

    env: str = Field(default="development")
    debug: bool = Field(default=False)
    docs_enabled: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    cors_origins: list[str] = Field(default_factory=list)
    trusted_hosts: list[str] = Field(default_factory=lambda: ["localhost", "127.0.0.1"])

    timezone: str = Field(default="UTC", min_length=1, max_length=64)
    default_lat: float = Field(default=37.7749, ge=-90.0, le=90.0)
    default_lon: float = Field(default=-122.4194, ge=-180.0, le=180.0)
    default_city: str = Field(default="San Francisco", min_length=1, max_length=64)

    weather_api_key: str | None = Field(default=None)
    weather_api_url: AnyHttpUrl = Field(default="https://api.openweathermap.org/data/2.5")
    weather_timeout_seconds: float = Field(default=10.0, ge=1.0, le=30.0)

    retention_hours: int = Field(default=24 * 7, ge=1, le=24 * 90)
    collection_enabled: bool = Field(default=True)
    collection_interval_seconds: float = Field(default=3600.0, ge=0.25, le=24 * 3600.0)
    collect_on_startup: bool = Field(default=True)
    collection_min_interval_seconds: int = Field(default=60, ge=0, le=3600)

    random_seed: int | None = Field(default=None)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level '{v}'.")
        return level

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{v}'.") from e
        return v

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def load_settings() -> Settings:
    settings = Settings()
    if not settings.cors_origins:
        settings.cors_origins = ["http://localhost:3000", "http://localhost:8000"]
    return settings
