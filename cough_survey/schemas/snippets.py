"""
Pydantic schemas for snippet endpoints.
"""
from pydantic import BaseModel, Field, field_validator
from datetime import datetime

from cough_survey.core.config import settings
from cough_survey.core.entities import SnippetMeta


class SnippetCreate(BaseModel):
    """Metadata of an uploaded audio file, produced by the upload handler."""

    filename: str = Field(
        ..., min_length=1, max_length=255, description="Stored file name"
    )
    original_name: str = Field(
        ..., min_length=1, max_length=255, description="File name as uploaded"
    )
    mime_type: str = Field(..., description="Audio MIME type (MP3 or WAV)")
    duration_ms: int = Field(..., description="Audio duration in milliseconds")

    @field_validator("mime_type")
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Only MP3 and WAV audio is accepted."""
        normalized = v.strip().lower()
        if normalized not in settings.ALLOWED_AUDIO_MIME_TYPES:
            raise ValueError(
                f"Unsupported audio type {v!r}. "
                f"Allowed: {', '.join(settings.ALLOWED_AUDIO_MIME_TYPES)}"
            )
        return normalized

    @field_validator("duration_ms")
    @classmethod
    def validate_duration(cls, v: int) -> int:
        """Snippets must be between 2 and 10 seconds long."""
        low = settings.SNIPPET_MIN_DURATION_MS
        high = settings.SNIPPET_MAX_DURATION_MS
        if not low <= v <= high:
            raise ValueError(f"duration_ms must be between {low} and {high}, got {v}")
        return v

    def to_meta(self) -> SnippetMeta:
        return SnippetMeta(
            filename=self.filename,
            original_name=self.original_name,
            mime_type=self.mime_type,
            duration_ms=self.duration_ms,
        )


class SnippetResponse(BaseModel):
    """Schema for snippet response."""

    id: int = Field(..., description="Snippet ID")
    filename: str = Field(..., description="Stored file name")
    original_name: str = Field(..., description="File name as uploaded")
    mime_type: str = Field(..., description="Audio MIME type")
    duration_ms: int = Field(..., description="Audio duration in milliseconds")
    uploaded_at: datetime = Field(..., description="Upload timestamp")

    class Config:
        """Pydantic configuration."""

        from_attributes = True
