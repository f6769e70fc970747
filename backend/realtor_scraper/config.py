"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # Sentry
    sentry_dsn: str = Field(default="", description="Sentry DSN for error tracking")

    # Browserless (remote Chrome reached over CDP)
    browserless_token: str = Field(
        default="",
        description="Browserless API token; scraping is refused without it",
    )
    browserless_endpoint: str = Field(
        default="wss://chrome.browserless.io",
        description="Browserless websocket endpoint",
    )
    browserless_stealth: bool = Field(default=True, description="Ask browserless for stealth mode")
    browserless_block_ads: bool = Field(default=True, description="Ask browserless to block ads")

    # Crawling
    concurrency: int = Field(
        default=1,
        ge=1,
        description="Listing pages scraped simultaneously",
    )
    nav_timeout: int = Field(
        default=45000,
        gt=0,
        description="Navigation timeout in milliseconds",
    )
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        description="User agent for every browser context",
    )

    # Pacing (seconds): delay = min + uniform(0, jitter)
    politeness_min_seconds: float = Field(default=2.0, ge=0)
    politeness_jitter_seconds: float = Field(default=2.0, ge=0)
    settle_min_seconds: float = Field(default=1.5, ge=0)
    settle_jitter_seconds: float = Field(default=1.5, ge=0)
    search_settle_min_seconds: float = Field(default=2.0, ge=0)
    search_settle_jitter_seconds: float = Field(default=1.0, ge=0)
    listing_settle_min_seconds: float = Field(default=3.0, ge=0)
    listing_settle_jitter_seconds: float = Field(default=0.0, ge=0)

    # Webhook delivery
    webhook_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Timeout for each outbound webhook POST",
    )

    # Direct listing map fallback
    listing_bounds: tuple[float, float, float, float] = Field(
        default=(53.4, -113.7, 53.7, -113.3),
        description="lat_min, lng_min, lat_max, lng_max of the realtor.ca map page",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def browserless_configured(self) -> bool:
        return bool(self.browserless_token)

    @property
    def browserless_ws_url(self) -> str:
        """Websocket URL with token and feature flags."""
        params = [f"token={self.browserless_token}"]
        if self.browserless_stealth:
            params.append("stealth=true")
        if self.browserless_block_ads:
            params.append("blockAds=true")
        return f"{self.browserless_endpoint}?{'&'.join(params)}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
