"""Application configuration via Pydantic Settings."""

from typing import List
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # App
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Storefront
    STOREFRONT_BASE_URL: str = "https://us.jellycat.com"
    STOREFRONT_DOMAINS: str = "jellycat.com"  # Comma-separated host suffixes

    @model_validator(mode="after")
    def strip_base_url(self) -> "Settings":
        """Joins below assume no trailing slash on the storefront base."""
        self.STOREFRONT_BASE_URL = self.STOREFRONT_BASE_URL.rstrip("/")
        return self

    # Searchspring index
    SEARCHSPRING_SITE_ID: str = "bmcyq0"

    # Persistence
    STORE_PATH: str = "db.json"

    # Polling and concurrency
    POLL_INTERVAL_SECONDS: int = 5 * 60
    FETCH_CONCURRENCY: int = 5  # Outstanding HTTP requests, all callers
    BATCH_CONCURRENCY: int = 5  # In-flight inputs per resolve batch
    POLL_CONCURRENCY: int = 5  # In-flight products per poll cycle

    # HTTP
    HTTP_TIMEOUT_SECONDS: float = 30.0
    SOURCE_RPM: int = 120  # Per-domain request budget

    # Alerts
    # Empty string means alerts are only logged.
    ALERT_WEBHOOK_URL: str = ""

    def get_storefront_domains(self) -> List[str]:
        """Parse STOREFRONT_DOMAINS into a list of lower-cased host suffixes.

        Returns:
            List of domain strings, empty if STOREFRONT_DOMAINS is not set
        """
        if not self.STOREFRONT_DOMAINS:
            return []
        return [d.strip().lower() for d in self.STOREFRONT_DOMAINS.split(",") if d.strip()]


settings = Settings()
