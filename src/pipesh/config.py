"""Configuration management for pipesh."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from pipesh.errors import ConfigurationError
from pipesh.lexer import WORD_CLASSES
from pipesh.parser import MAX_ARGUMENTS


class ShellSettings(BaseSettings):
    """Shell settings, read from `PIPESH_*` variables and an optional `.env`."""

    model_config = SettingsConfigDict(
        env_prefix="PIPESH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    prompt: str = Field(default=">>> ", description="Interactive prompt")
    max_arguments: int = Field(default=MAX_ARGUMENTS, ge=1, description="Argument capacity per stage")
    word_chars: Literal["extended", "strict"] = Field(default="extended", description="Identifier character class")
    log_level: str = Field(default="WARNING", description="Log level")
    history_file: Path | None = Field(default=None, description="Prompt history file")

    @property
    def word_class(self) -> frozenset[str]:
        return WORD_CLASSES[self.word_chars]


def get_settings(**overrides: object) -> ShellSettings:
    """Build settings, turning validation failures into `ConfigurationError`."""

    try:
        return ShellSettings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
