"""
Pydantic schemas for evaluation session endpoints.
"""
from pydantic import BaseModel, Field
from typing import List, Optional

from cough_survey.core.entities import EvaluationSession, SessionState
from cough_survey.schemas.participants import ParticipantResponse
from cough_survey.schemas.snippets import SnippetResponse


class SessionStartRequest(BaseModel):
    """Schema for starting or resuming an evaluation session."""

    participant_token: str = Field(
        ..., min_length=1, max_length=64, description="Token from the QR link"
    )


class EvaluationSessionResponse(BaseModel):
    """Schema for an evaluation session."""

    participant_id: int = Field(..., description="Participant ID")
    snippet_ids: List[int] = Field(..., description="Assigned snippets in order")
    current_position: int = Field(..., description="Index of the next snippet to answer")
    total: int = Field(..., description="Number of assigned snippets")
    completed: bool = Field(..., description="Whether every snippet has been answered")
    state: SessionState = Field(..., description="Session state (active, completed)")

    @classmethod
    def from_session(cls, session: EvaluationSession) -> "EvaluationSessionResponse":
        return cls(
            participant_id=session.participant_id,
            snippet_ids=list(session.snippet_ids),
            current_position=session.current_position,
            total=session.total,
            completed=session.completed,
            state=session.state,
        )


class SessionStatusResponse(BaseModel):
    """Schema returned when a participant opens their evaluation link."""

    participant: ParticipantResponse = Field(..., description="Participant")
    session: EvaluationSessionResponse = Field(..., description="Evaluation session")
    current_snippet: Optional[SnippetResponse] = Field(
        None, description="Snippet to answer next (null once completed)"
    )
