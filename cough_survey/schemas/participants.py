"""
Pydantic schemas for participant endpoints.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from cough_survey.core.entities import PARTICIPANT_LABEL_MAX_LENGTH, Participant
from cough_survey.core.participants import ParticipantRegistry


class ParticipantResponse(BaseModel):
    """Schema for participant response."""

    id: int = Field(..., description="Participant ID")
    token: str = Field(..., description="Unguessable token encoded in the QR link")
    label: Optional[str] = Field(None, description="Free-form label, e.g. a booth name")
    created_at: datetime = Field(..., description="Creation timestamp")

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ParticipantLink(ParticipantResponse):
    """Participant plus the evaluation URL to render as a QR code."""

    evaluation_url: str = Field(..., description="Evaluation URL for the QR code")

    @classmethod
    def from_participant(cls, participant: Participant) -> "ParticipantLink":
        return cls(
            id=participant.id,
            token=participant.token,
            label=participant.label,
            created_at=participant.created_at,
            evaluation_url=ParticipantRegistry.evaluation_url(participant),
        )


class ParticipantBatchRequest(BaseModel):
    """Schema for generating a batch of participants.

    The count range is enforced by the registry, which rejects (never
    clamps) values outside [1, PARTICIPANT_BATCH_MAX].
    """

    count: int = Field(..., description="Number of participants to create")
    label: Optional[str] = Field(
        None,
        max_length=PARTICIPANT_LABEL_MAX_LENGTH,
        description="Label applied to every participant",
    )


class ParticipantBatchResponse(BaseModel):
    """Schema for a generated participant batch."""

    participants: List[ParticipantLink] = Field(..., description="Created participants")
    count: int = Field(..., description="Number of participants created")
