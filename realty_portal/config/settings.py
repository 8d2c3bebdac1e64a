"""Configuration settings for the realty portal backend."""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class DatabaseSettings(BaseSettings):
    """Database configuration."""

    host: str = Field(default="localhost")
    port: int = Field(default=5432)
    username: str = Field(default="postgres")
    password: str = Field(default="password")
    database: str = Field(default="realty_portal")

    # Full URL override, e.g. sqlite:// for tests
    url: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(env_prefix="DB_", extra="ignore")

    @property
    def database_url(self) -> str:
        """Get database URL."""
        if self.url:
            return self.url
        return f"postgresql://{self.username}:{self.password}@{self.host}:{self.port}/{self.database}"


class ScraperSettings(BaseSettings):
    """Scraper configuration."""

    # Token bucket rate limiting
    requests_per_minute: int = Field(default=30)
    burst_size: int = Field(default=5)

    request_timeout: int = Field(default=30)
    rotate_user_agents: bool = Field(default=True)

    max_listings_per_source: int = Field(default=50)
    min_listing_length: int = Field(default=100)

    # Summarize scraped descriptions through the AI gateway
    enrich_listings: bool = Field(default=False)

    model_config = SettingsConfigDict(extra="ignore")


class ETLSettings(BaseSettings):
    """ETL configuration."""

    # Export settings
    output_dir: str = Field(default="./data")
    csv_encoding: str = Field(default="utf-8")

    validate_data: bool = Field(default=True)

    model_config = SettingsConfigDict(extra="ignore")


class AISettings(BaseSettings):
    """LLM gateway configuration."""

    api_key: Optional[str] = Field(default=None)
    gateway_url: str = Field(default="https://ai.gateway.lovable.dev/v1/chat/completions")
    model: str = Field(default="google/gemini-2.5-flash")
    requests_per_minute: int = Field(default=20)
    timeout: int = Field(default=60)

    model_config = SettingsConfigDict(env_prefix="AI_", extra="ignore")


class TelegramSettings(BaseSettings):
    """Telegram bot and channel configuration."""

    bot_token: Optional[str] = Field(default=None)
    channel_id: str = Field(default="@saigon_realty_vn")
    group_chat_id: Optional[str] = Field(default=None)

    # Chats whose posts are auto-imported as listings
    monitored_chats: List[int] = Field(default_factory=list)

    webhook_url: Optional[str] = Field(default=None)
    webhook_secret: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(env_prefix="TELEGRAM_", extra="ignore")


class RedisSettings(BaseSettings):
    """Redis configuration."""

    host: str = Field(default="localhost")
    port: int = Field(default=6379)
    db: int = Field(default=0)
    password: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(env_prefix="REDIS_", extra="ignore")

    @property
    def redis_url(self) -> str:
        """Get Redis URL."""
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class APISettings(BaseSettings):
    """API configuration."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    debug: bool = Field(default=False)

    model_config = SettingsConfigDict(env_prefix="API_", extra="ignore")


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: str = Field(default="development")

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    # Component settings
    database: DatabaseSettings = DatabaseSettings()
    scraper: ScraperSettings = ScraperSettings()
    etl: ETLSettings = ETLSettings()
    ai: AISettings = AISettings()
    telegram: TelegramSettings = TelegramSettings()
    redis: RedisSettings = RedisSettings()
    api: APISettings = APISettings()

    model_config = SettingsConfigDict(extra="ignore", env_file=".env", env_file_encoding="utf-8")


# Global settings instance
settings = Settings()
