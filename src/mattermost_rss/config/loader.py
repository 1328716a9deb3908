"""Configuration loader for environment-provided settings."""

from pathlib import Path

import structlog

from .schema import AppConfig

log = structlog.get_logger()

# Settings without which no upstream call can succeed
REQUIRED_SETTINGS: tuple[tuple[str, str], ...] = (
    ("MATTERMOST_BOT_TOKEN", "mattermost_bot_token"),
    ("MATTERMOST_TEAM_ID", "mattermost_team_id"),
)


def load_config(env_file: Path | str | None = ".env") -> AppConfig:
    """
    Load configuration from the environment and an optional .env file.

    Missing credentials are not an error here; they surface as upstream
    failures on first use.

    Args:
        env_file: Path to a dotenv file, or None to read the environment only

    Returns:
        Validated AppConfig instance

    Raises:
        ValidationError: If a provided value doesn't match the schema
    """
    return AppConfig(_env_file=env_file)  # type: ignore[call-arg]


def find_missing_settings(config: AppConfig) -> list[str]:
    """
    List required settings that are empty.

    Args:
        config: Configuration to inspect

    Returns:
        Environment variable names of the missing settings
    """
    return [env_name for env_name, field in REQUIRED_SETTINGS if not getattr(config, field)]


def warn_missing_settings(config: AppConfig) -> list[str]:
    """
    Log warnings for incomplete configuration without failing startup.

    Args:
        config: Configuration to inspect

    Returns:
        Environment variable names of the missing settings
    """
    missing = find_missing_settings(config)
    if missing:
        log.warning("missing_required_settings", missing=missing)

    if not config.mattermost_news_channel_id and not config.mattermost_news_channel:
        log.warning("news_channel_not_configured")

    return missing
