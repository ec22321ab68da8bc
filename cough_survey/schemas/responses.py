"""
Pydantic schemas for response submission and ledger endpoints.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from cough_survey.core.entities import Selection
from cough_survey.schemas.participants import ParticipantResponse
from cough_survey.schemas.sessions import EvaluationSessionResponse
from cough_survey.schemas.snippets import SnippetResponse
from cough_survey.schemas.stats import SnippetStatsResponse


class ResponseSubmission(BaseModel):
    """Schema for classifying the participant's current snippet.

    The participant is identified by the QR token (preferred) or by id.
    ``selection`` is checked by the ledger so unknown values get the
    domain's invalid_selection error.
    """

    participant_token: Optional[str] = Field(
        None, max_length=64, description="Token from the QR link"
    )
    participant_id: Optional[int] = Field(None, description="Participant ID")
    snippet_id: int = Field(..., description="Snippet being classified")
    selection: str = Field(..., description="One of: cough, throat-clear, other")


class ResponseRecord(BaseModel):
    """Schema for a recorded response."""

    id: int = Field(..., description="Response ID")
    participant_id: int
    snippet_id: int
    selection: Selection
    created_at: datetime = Field(..., description="Server timestamp of the response")

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ResponseSubmissionResult(BaseModel):
    """Schema returned after a response is recorded."""

    response: ResponseRecord
    snippet_stats: SnippetStatsResponse = Field(
        ..., description="Updated statistics for the classified snippet"
    )
    session_completed: bool = Field(..., description="Whether this was the last snippet")
    session: EvaluationSessionResponse
    feedback_message: str = Field(..., description="Light-hearted feedback to display")


class ResponseDetail(ResponseRecord):
    """Response expanded with its snippet and participant for admin views."""

    snippet: Optional[SnippetResponse] = Field(
        None, description="Snippet, or null when it has been deleted"
    )
    participant: Optional[ParticipantResponse] = None


class DeleteResponsesResult(BaseModel):
    deleted: int = Field(..., description="Number of responses deleted")
