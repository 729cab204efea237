from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    STORE_PROVIDER: str = "json"  # "json" or "memory"
    EVENT_STORE_DIR: str = "./data/events"

    BUSINESS_TIMEZONE: str = "UTC"
    DEFAULT_PROVIDER_ID: str = "user-1"

    SLOT_DURATION_MINUTES: int = 30
    # Both unset means slots are offered across the whole day.
    WORKING_HOURS_START: str | None = None  # HH:MM
    WORKING_HOURS_END: str | None = None  # HH:MM
    WORKING_DAYS: list[int] = [0, 1, 2, 3, 4, 5, 6]  # Monday=0
    TIME_FORMAT: str = "12"  # "12" or "24"

    BOOKING_LOCK_TIMEOUT_SECONDS: float = 10.0


settings = Settings()
