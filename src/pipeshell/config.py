"""Configuration management for pipeshell."""

from pathlib import Path
from typing import Any, Optional

from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

DEFAULT_PROMPT = "$ "


class Settings(BaseSettings):
    """Shell settings."""

    # History Configuration
    history_file: Optional[Path] = Field(
        None,
        description="History file loaded at start and written on exit",
        validation_alias=AliasChoices("history_file", "PIPESHELL_HISTORY_FILE", "HISTFILE"),
    )

    # Prompt Configuration
    prompt: str = Field(default=DEFAULT_PROMPT, description="Prompt shown before each line")

    # Logging Configuration
    log_level: str = Field(default="WARNING", description="Log level")

    model_config = SettingsConfigDict(
        env_prefix="PIPESHELL_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


def get_settings(**overrides: Any) -> Settings:
    """Get shell settings.

    Args:
        **overrides: Values that take precedence over the environment

    Returns:
        Settings instance
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"shell: invalid settings: {exc}") from exc
