"""
Configuration management.
Simple .env based config for cron or VPS deployment.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Token required by the sync trigger API (empty disables it)
    sync_api_token: str = ""

    # Distributor (Cosmopolitan) API
    distributor_base_url: str = "https://api.cosmopolitanusa.com/v1"
    distributor_api_key: str = ""
    distributor_auth_scheme: str = "CosmoToken"

    # Storefront (Shopify) API
    shopify_store_url: str = ""  # e.g., "mystore.myshopify.com"
    shopify_access_token: str = ""
    shopify_api_version: str = "2024-04"
    storefront_vendor: str = "Cosmopolitan"

    # Sync rules
    excluded_suffix: str = "-A"
    excluded_categories_file: Optional[str] = None  # packaged default when unset
    draft_discontinued: bool = True

    # Rate limiting
    min_request_interval: float = 1.0  # seconds between paginated requests
    max_rate_limit_retries: int = 10
    max_run_seconds: Optional[float] = None

    # Email notifications
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    gmail_user: str = ""
    gmail_pass: str = ""
    notify_email_to: str = ""

    # Logging
    log_level: str = "INFO"


# Global settings instance
settings = Settings()
