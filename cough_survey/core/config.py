"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Optional, Self


# Shortest participant token that keeps the address space above 10^12
# for a 36+ symbol alphabet.
MIN_TOKEN_LENGTH = 8


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Cough Survey API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    # "json" or "text"; unset picks json in production and text elsewhere
    LOG_FORMAT: Optional[Literal["json", "text"]] = None

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Public URL participants reach through their QR code
    BASE_URL: str = "http://localhost:5173"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Admin gate (X-Admin-Token header)
    ADMIN_TOKEN: str = Field(
        default="",
        description="Admin API token required for snippet, participant and stats management",
    )

    # Storage: "sql" for the SQLAlchemy database, "memory" for a single-process demo
    STORAGE_BACKEND: Literal["sql", "memory"] = "sql"
    CREATE_TABLES_ON_STARTUP: bool = True

    # Evaluation sessions
    SESSION_SNIPPET_COUNT: int = Field(
        default=5,
        ge=1,
        description="Target number of snippets assigned to each participant",
    )

    # Snippet metadata validation
    SNIPPET_MIN_DURATION_MS: int = 2000
    SNIPPET_MAX_DURATION_MS: int = 10000
    ALLOWED_AUDIO_MIME_TYPES: List[str] = [
        "audio/mpeg",
        "audio/wav",
        "audio/wave",
        "audio/x-wav",
        "audio/x-pn-wav",
        "audio/vnd.wave",
    ]
    # Deleting a snippet leaves its responses orphaned unless this is enabled
    SNIPPET_DELETE_CASCADE: bool = False

    # Participants
    PARTICIPANT_TOKEN_LENGTH: int = 8
    PARTICIPANT_TOKEN_MAX_ATTEMPTS: int = Field(default=5, ge=1)
    PARTICIPANT_BATCH_MAX: int = Field(default=100, ge=1)

    # Request limits
    MAX_REQUEST_BODY_BYTES: int = 1024 * 1024  # 1MB

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_duration_bounds(self) -> Self:
        """Validate that the snippet duration window is not empty."""
        if self.SNIPPET_MIN_DURATION_MS > self.SNIPPET_MAX_DURATION_MS:
            raise ValueError(
                "SNIPPET_MIN_DURATION_MS must not exceed SNIPPET_MAX_DURATION_MS, "
                f"got {self.SNIPPET_MIN_DURATION_MS} > {self.SNIPPET_MAX_DURATION_MS}"
            )
        return self

    @model_validator(mode="after")
    def validate_token_length(self) -> Self:
        """Validate that participant tokens stay unguessable."""
        if self.PARTICIPANT_TOKEN_LENGTH < MIN_TOKEN_LENGTH:
            raise ValueError(
                f"PARTICIPANT_TOKEN_LENGTH must be at least {MIN_TOKEN_LENGTH}, "
                f"got {self.PARTICIPANT_TOKEN_LENGTH}"
            )
        return self


settings = Settings()
