"""
Centralized configuration management for FlashQuest.
"""
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_MAX_HP,
    DEFAULT_PLAYER_NAME,
    DEFAULT_QUEST_NAME,
    DEFAULT_QUESTION_COUNT,
)

# --- Path Configuration ---


def get_default_data_dir() -> Path:
    """Returns the default directory holding profiles and the root deck."""
    return Path.home() / ".flashquest"


class Settings(BaseSettings):
    """
    Defines application settings, loaded from environment variables or .env files.
    Every field can be overridden with a FLASHQUEST_<FIELD> variable.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLASHQUEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Core Paths ---
    data_dir: Path = Field(default_factory=get_default_data_dir)

    # --- Session Defaults ---
    player_name: str = DEFAULT_PLAYER_NAME
    max_hp: int = Field(default=DEFAULT_MAX_HP, ge=1)
    quest_name: str = DEFAULT_QUEST_NAME
    question_count: int = Field(default=DEFAULT_QUESTION_COUNT, ge=1)

    # Overwrite the legacy root player.json when a quest starts.
    persist_player_on_start: bool = True


def get_settings(**overrides) -> Settings:
    """Build settings from the environment, applying explicit overrides."""
    return Settings(**overrides)
