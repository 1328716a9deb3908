"""Pydantic models for configuration schema."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "http://localhost:3000"


class MattermostConfig(BaseModel):
    """Mattermost connection settings used by the adapter."""

    model_config = ConfigDict(frozen=True)

    base_url: str = ""
    bot_token: str = ""
    team_id: str = ""
    team_name: str = ""
    news_channel_name: str = ""
    news_channel_id: str | None = None
    timeout: float = 5.0

    @property
    def api_url(self) -> str:
        """Root of the REST API v4."""
        return f"{self.base_url}/api/v4"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"


class AppConfig(BaseSettings):
    """Root configuration, read from the environment once at startup.

    Field names match the environment variables case-insensitively, so
    ``MATTERMOST_BOT_TOKEN`` populates ``mattermost_bot_token``.
    """

    mattermost_url: str = ""
    mattermost_bot_token: str = ""
    mattermost_team_id: str = ""
    mattermost_team_name: str = ""
    mattermost_news_channel: str = ""
    mattermost_news_channel_id: str | None = None

    base_url: str = DEFAULT_BASE_URL
    host: str = "0.0.0.0"
    port: int = Field(3000, ge=1, le=65535)
    request_timeout: float = Field(5.0, gt=0, le=60)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @field_validator("mattermost_url", "base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize URLs so paths can be appended with a single slash."""
        return v.strip().rstrip("/")

    @field_validator("mattermost_news_channel_id")
    @classmethod
    def empty_channel_id_is_none(cls, v: str | None) -> str | None:
        """Treat an empty channel id as not configured."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: object) -> object:
        """Accept log levels in any case."""
        return v.upper() if isinstance(v, str) else v

    @property
    def mattermost(self) -> MattermostConfig:
        """Connection settings for the Mattermost adapter."""
        return MattermostConfig(
            base_url=self.mattermost_url,
            bot_token=self.mattermost_bot_token,
            team_id=self.mattermost_team_id,
            team_name=self.mattermost_team_name,
            news_channel_name=self.mattermost_news_channel,
            news_channel_id=self.mattermost_news_channel_id,
            timeout=self.request_timeout,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Logging settings."""
        return LoggingConfig(level=self.log_level, format=self.log_format)

    @property
    def feed_url(self) -> str:
        """Public URL of the RSS feed."""
        return f"{self.base_url}/rss"
