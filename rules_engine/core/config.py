"""Rules engine configuration using Pydantic Settings.

Configuration is loaded from environment variables prefixed with
``RULES_ENGINE_``. Point ``ENV_FILE`` at a local env file to load one
explicitly; no ``.env`` is read by default.
"""

import os
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """
    Engine settings with type validation.

    Example:
        RULES_ENGINE_MAX_DEPTH=32 RULES_ENGINE_LOG_LEVEL=debug python app.py
    """

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE") or None, env_prefix="RULES_ENGINE_", extra="ignore"
    )

    # Observability
    log_level: str = "INFO"
    structured_logs: bool = True
    metrics_enabled: bool = True

    # Evaluation limits
    # Condition nesting ceiling, rule references included. Keeps recursion
    # well under the interpreter's stack limit.
    max_depth: int = Field(default=64, ge=1, le=256)

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase and reject unknown levels."""
        level = str(v).strip().upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}, got: {v}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
