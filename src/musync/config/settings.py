"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.types import VolumeFloat
from ..domain.shared.validators import validate_discord_snowflake


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    application_id: int | None = Field(
        default=None, validation_alias=AliasChoices("application_id", "client_id")
    )
    test_guild_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("test_guild_ids", "test_guilds")
    )
    sync_on_startup: bool = True

    @field_validator("test_guild_ids", mode="before")
    @classmethod
    def validate_snowflake_ids(cls, v: tuple[int, ...] | list[int]) -> tuple[int, ...]:
        """Validate Discord snowflake IDs and convert lists to tuples."""
        # Convert list to tuple if needed (from JSON array in env vars)
        if isinstance(v, list):
            v = tuple(v)
        for snowflake in v:
            validate_discord_snowflake(snowflake)
        return v

    @field_validator("application_id")
    @classmethod
    def validate_application_id(cls, v: int | None) -> int | None:
        if v is None:
            return v
        return validate_discord_snowflake(v)


class ResolverSettings(BaseModel):
    """External resolver (yt-dlp) invocation."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    executable: str = Field(
        default="yt-dlp",
        min_length=1,
        validation_alias=AliasChoices("executable", "ytdlp_path", "bin"),
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        le=600.0,
        validation_alias=AliasChoices("timeout_seconds", "timeout"),
    )
    audio_format: str = Field(
        default="bestaudio",
        min_length=1,
        validation_alias=AliasChoices("audio_format", "format"),
    )
    default_search: str = "ytsearch1:"


class AudioSettings(BaseModel):
    """Audio sink and voice transport configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    default_volume: VolumeFloat = 0.5
    ffmpeg_before_options: str = "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5"
    ffmpeg_options: str = "-vn"
    connect_timeout_seconds: float = Field(default=10.0, gt=0.0, le=120.0)


class PlaybackSettings(BaseModel):
    """Playback driver configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    idle_timeout_seconds: float = Field(
        default=60.0,
        ge=0.0,
        validation_alias=AliasChoices("idle_timeout_seconds", "idle_timeout"),
    )


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, DISCORD__APPLICATION_ID, DISCORD__SYNC_ON_STARTUP (nested)
    - RESOLVER__EXECUTABLE, RESOLVER__TIMEOUT_SECONDS, ...
    - AUDIO__DEFAULT_VOLUME, PLAYBACK__IDLE_TIMEOUT_SECONDS, ...
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels)
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
