"""Application settings loaded from environment variables."""
from typing import List
from pathlib import Path
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).parent.parent / ".env"

_SUPPORTED_COUNTRIES = ("AU", "TR", "UK", "DE", "FR", "ES")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Listing-Import"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:4200", "http://localhost:8000"]

    # Database
    database_url: str = "sqlite+aiosqlite:///./listing_import.db"

    # Outbound fetching (JSON-LD pages, CMS REST endpoints)
    request_timeout: int = 30
    fetch_max_retries: int = 2
    fetch_backoff_factor: float = 0.5
    fetch_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    )

    # Import defaults
    default_country: str = "TR"
    wordpress_per_page: int = 100

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        if not v.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
            raise ValueError("database_url must use async driver")
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            import json
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("default_country")
    @classmethod
    def validate_default_country(cls, v: str) -> str:
        code = v.strip().upper()
        if code not in _SUPPORTED_COUNTRIES:
            raise ValueError(f"default_country must be one of {', '.join(_SUPPORTED_COUNTRIES)}")
        return code


settings = Settings()
