"""Environment configuration and validation.

This module defines strongly-typed application settings loaded from environment variables
(optionally via a local `.env` file): the MongoDB connection, the LLM endpoint used to generate shell
commands, and the HTTP listener.
"""

from __future__ import annotations

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    mongodb_uri: str = Field(alias="MONGODB_URI")
    db_name: str = Field(alias="DB_NAME")

    llm_api_key: str = Field(alias="LLM_API_KEY")
    llm_model: str = Field(default="gpt-4o-mini", alias="LLM_MODEL")
    llm_api_base: str = Field(default="https://api.openai.com/v1", alias="LLM_API_BASE")
    llm_timeout_s: float = Field(default=30.0, alias="LLM_TIMEOUT_S")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    cors_allow_origins: str = Field(default="*", alias="CORS_ALLOW_ORIGINS")

    find_limit: int = Field(default=5, alias="FIND_LIMIT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("db_name", "llm_api_key")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        """Reject empty values for settings the service cannot run without."""

        value = value.strip()
        if not value:
            raise ValueError("value must not be blank")
        return value

    @field_validator("find_limit")
    @classmethod
    def validate_find_limit(cls, value: int) -> int:
        """`find` results are capped; a cap below one would hide every document."""

        if value < 1:
            raise ValueError("FIND_LIMIT must be >= 1")
        return value

    def cors_origins(self) -> list[str]:
        """Return the configured CORS origins as a list."""

        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Raises:
        RuntimeError: If the environment configuration is missing or invalid.
    """

    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc
