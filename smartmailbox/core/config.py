"""Application configuration with validation."""

from enum import Enum
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Raised when application configuration is invalid for the environment."""
    pass


class Settings(BaseSettings):
    """
    Application settings with validation.

    Uses Pydantic for configuration validation, preventing
    common deployment mistakes like wildcard CORS or a missing model key.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production)"
    )

    # CORS Configuration
    cors_allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:9002",
        description="Allowed CORS origins (comma-separated)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./smartmailbox.db",
        description="Database connection URL"
    )

    # Object storage
    # STORAGE_DIR: root of the local object store. PUBLIC_BASE_URL is the
    # prefix under which stored objects are served back to clients.
    storage_dir: str = Field(
        default="./storage",
        description="Root directory for stored document bytes"
    )
    public_base_url: str = Field(
        default="http://localhost:8000/files",
        description="Base URL used to build resolvable download URLs"
    )

    # Generative models
    # LiteLLM model strings, e.g. "gemini/gemini-2.0-flash", "openai/gpt-4o-mini".
    vision_model: str = Field(
        default="gemini/gemini-2.0-flash",
        description="Model for structured metadata and event extraction"
    )
    text_model: str = Field(
        default="gemini/gemini-2.0-flash",
        description="Model for transcribing non-image documents"
    )
    image_model: str = Field(
        default="gemini/gemini-2.0-flash-preview-image-generation",
        description="Image-output model used to rectify photographed documents"
    )
    model_api_key: str = Field(
        default="",
        description="API key for the generative provider"
    )
    model_api_base: str = Field(
        default="",
        description="Base URL for the generative provider (optional)"
    )
    model_timeout_seconds: int = Field(
        default=60,
        description="Wall-clock timeout for a single generative call"
    )

    # Circuit breaker for generative endpoints
    circuit_failure_threshold: int = Field(
        default=3,
        description="Consecutive failures before a model endpoint is short-circuited"
    )
    circuit_cooldown_seconds: float = Field(
        default=60.0,
        description="Seconds before a half-open probe is allowed"
    )

    # Upload limits
    max_upload_pages: int = Field(
        default=10,
        description="Maximum number of page images stitched into one composite"
    )

    # Agenda
    agenda_past_limit: int = Field(
        default=5,
        description="Number of recent past events returned by the agenda"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_cors_origins(self) -> List[str]:
        """
        Get CORS origins as a list.

        Parses comma-separated string and validates no wildcards.
        """
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(',') if origin.strip()]

        if "*" in origins:
            raise ValueError(
                "Wildcard CORS (*) not allowed. "
                "Specify explicit origins in CORS_ALLOWED_ORIGINS"
            )

        return origins

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('max_upload_pages')
    @classmethod
    def validate_max_upload_pages(cls, v: int) -> int:
        if v < 1:
            raise ValueError("MAX_UPLOAD_PAGES must be at least 1")
        return v

    def validate_production_config(self) -> None:
        """Validate configuration for production environment.

        In production, fails startup if the service cannot reach a model or
        would hand out localhost URLs. In development, returns silently and
        lets main.py log warnings.

        Raises:
            ConfigurationError: If production config is unusable.
        """
        errors: list[str] = []

        if not self.model_api_key:
            errors.append(
                "MODEL_API_KEY is empty. "
                "Every analysis request would fail with MODEL_FAILURE."
            )

        if "localhost" in self.public_base_url or "127.0.0.1" in self.public_base_url:
            errors.append(
                f"PUBLIC_BASE_URL points at localhost ({self.public_base_url}). "
                "Stored documents would not be resolvable by clients."
            )

        origins = self.get_cors_origins()
        localhost_origins = [o for o in origins if "localhost" in o or "127.0.0.1" in o]
        if localhost_origins:
            errors.append(
                f"CORS allows localhost origins: {localhost_origins}. "
                "Remove localhost origins for production."
            )

        if errors:
            if self.environment == Environment.PRODUCTION:
                raise ConfigurationError(
                    "Production configuration is invalid:\n  - " + "\n  - ".join(errors)
                )
            return

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
