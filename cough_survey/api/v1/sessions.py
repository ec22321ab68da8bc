"""
Evaluation session endpoints.
"""
from fastapi import APIRouter, Depends

from cough_survey.api.v1.deps import get_participant_registry, get_session_engine
from cough_survey.core.participants import ParticipantRegistry
from cough_survey.core.sessions import SessionAssignmentEngine
from cough_survey.schemas.participants import ParticipantResponse
from cough_survey.schemas.sessions import (
    EvaluationSessionResponse,
    SessionStartRequest,
    SessionStatusResponse,
)
from cough_survey.schemas.snippets import SnippetResponse

router = APIRouter()


@router.post("", response_model=SessionStatusResponse)
def start_or_resume_session(
    payload: SessionStartRequest,
    registry: ParticipantRegistry = Depends(get_participant_registry),
    engine: SessionAssignmentEngine = Depends(get_session_engine),
):
    """
    Start or resume the participant's evaluation session.

    The first call assigns a random sample of snippets; every later call
    returns the same session with its current progress.

    Raises:
        ParticipantNotFound: Unknown token (404)
        NoContentAvailable: No snippets uploaded yet (503)
        DanglingSnippetReference: The next assigned snippet was deleted (409)
    """
    participant = registry.get_by_token(payload.participant_token)
    session = engine.get_or_create_session(participant.id)

    current = None
    if not session.completed:
        current = SnippetResponse.model_validate(engine.current_snippet(session))

    return SessionStatusResponse(
        participant=ParticipantResponse.model_validate(participant),
        session=EvaluationSessionResponse.from_session(session),
        current_snippet=current,
    )
