from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    PROVIDER_TIMEZONE: str = "Europe/Moscow"
    SLOT_GRANULARITY_MINUTES: int = 15

    REMOTE_CALL_TIMEOUT_SECONDS: float = 10.0
    IDEMPOTENCY_WINDOW_SECONDS: int = 900
    ENFORCE_UNIQUE_SLOTS: bool = True

    DIRECTUS_BASE_URL: str = "https://1.cycloscope.online"
    DIRECTUS_TOKEN: str | None = None

    BOOKING_API_URL: str = "https://api.prorab360.online/booking"
    NOTIFY_API_URL: str = "https://api.prorab360.online/notify"

    @field_validator("PROVIDER_TIMEZONE")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"PROVIDER_TIMEZONE {v!r} is not a known IANA timezone")
        return v


settings = Settings()
