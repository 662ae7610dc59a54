"""
Application configuration using pydantic-settings.
All config is validated at startup - fail fast if anything is malformed.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_env: str = "development"
    log_level: str = "INFO"
    allowed_origins: str = ""  # Comma-separated CORS origins

    # Sentry
    sentry_dsn: str = ""

    # ipgeolocation.io
    ipgeolocation_api_key: str = ""
    ipgeolocation_base_url: str = "https://api.ipgeolocation.io/"

    # REST Countries
    restcountries_base_url: str = "https://restcountries.com/"
    enrich_country_names: bool = True  # Look up the display name before blocking

    # Outbound HTTP
    http_timeout_seconds: float = 30.0

    # Blocking rules
    sweep_interval_seconds: int = 300
    max_block_duration_minutes: int = 1440

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
