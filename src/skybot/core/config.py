"""Client configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Bot settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SKYBOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service
    service_url: str = Field(
        default="https://bsky.social",
        description="Base URL of the PDS or entryway the bot talks to",
    )
    chat_proxy: str = Field(
        default="did:web:api.bsky.chat#bsky_chat",
        description="Service DID that chat.bsky.* calls are proxied to",
    )
    request_timeout: float = Field(default=10.0, description="HTTP timeout in seconds")

    # Posting
    langs: str = Field(
        default="",
        description="Comma-separated default language tags attached to new posts",
    )

    # Rate Limiting
    rate_limit: int = Field(
        default=3000,
        description="Maximum number of requests per interval. Don't change unless you know the server limits.",
    )
    rate_limit_interval: float = Field(
        default=300.0,
        description="Seconds it takes the request budget to refill from empty",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def langs_list(self) -> list[str]:
        """Parse default languages into a list."""
        return [lang.strip() for lang in self.langs.split(",") if lang.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
