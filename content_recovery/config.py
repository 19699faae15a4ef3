"""Configuration schema and loading using Pydantic settings.

Settings come from, in increasing precedence: defaults, an optional ``.env``
file, ``CONTENT_RECOVERY_*`` environment variables and keyword overrides.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from content_recovery.constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
    ENV_PREFIX,
    MAX_RETRY_DELAY_MS,
    MAX_TEMPERATURE,
    RESPONSE_PREVIEW_CHARS,
    RETRY_JITTER_MS,
)
from content_recovery.core.types import GenerationConfig
from content_recovery.exceptions import ConfigurationError

log = logging.getLogger(__name__)


class RecoverySettings(BaseSettings):
    """Retry, generation and logging settings.

    Every field can be set through an environment variable with the
    ``CONTENT_RECOVERY_`` prefix, e.g. ``CONTENT_RECOVERY_MAX_ATTEMPTS=5``.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=None,  # Only used when explicitly requested
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # --- Retry ---

    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS,
        description="Total generation attempts before giving up",
        ge=1,
    )
    base_delay_ms: int = Field(
        default=DEFAULT_BASE_DELAY_MS,
        description="Base backoff delay in milliseconds",
        ge=0,
    )
    max_delay_ms: int = Field(
        default=MAX_RETRY_DELAY_MS,
        description="Upper bound for a single backoff delay",
        ge=0,
    )
    jitter_ms: int = Field(
        default=RETRY_JITTER_MS,
        description="Maximum random jitter added to each delay",
        ge=0,
    )

    # --- Generation ---

    temperature: float = Field(
        default=DEFAULT_TEMPERATURE,
        ge=0.0,
        le=MAX_TEMPERATURE,
    )
    max_output_tokens: int = Field(default=DEFAULT_MAX_OUTPUT_TOKENS, ge=1)

    # --- Logging ---

    response_preview_chars: int = Field(
        default=RESPONSE_PREVIEW_CHARS,
        description="How much of a raw response is included in log messages",
        ge=0,
    )

    @model_validator(mode="after")
    def validate_delay_bounds(self) -> RecoverySettings:
        """The cap must not be lower than the base delay."""
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError(
                f"max_delay_ms ({self.max_delay_ms}) must be >= "
                f"base_delay_ms ({self.base_delay_ms})"
            )
        return self

    def generation_config(self) -> GenerationConfig:
        return GenerationConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )


def get_settings(
    env_file: str | Path | None = None, **overrides: Any
) -> RecoverySettings:
    """Resolve settings from the environment, an optional .env file and overrides.

    Raises:
        ConfigurationError: If any source holds an invalid value.
    """
    try:
        if env_file is not None:
            settings = RecoverySettings(_env_file=env_file, **overrides)
        else:
            settings = RecoverySettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid content recovery settings: {e}") from e

    log.debug("Resolved recovery settings: %s", settings.model_dump())
    return settings
