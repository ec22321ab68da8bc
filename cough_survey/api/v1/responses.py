"""
Response submission and ledger endpoints.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse

from cough_survey.api.v1.deps import (
    get_ledger,
    get_participant_registry,
    get_snippet_store,
    get_statistics,
    parse_date_filter,
    verify_admin_token,
)
from cough_survey.core.error_responses import ErrorMessages, raise_bad_request
from cough_survey.core.feedback import pick_feedback_message
from cough_survey.core.ledger import ResponseLedger
from cough_survey.core.participants import ParticipantRegistry
from cough_survey.core.snippets import SnippetStore
from cough_survey.core.statistics import StatisticsAggregator
from cough_survey.schemas.participants import ParticipantResponse
from cough_survey.schemas.responses import (
    DeleteResponsesResult,
    ResponseDetail,
    ResponseRecord,
    ResponseSubmission,
    ResponseSubmissionResult,
)
from cough_survey.schemas.sessions import EvaluationSessionResponse
from cough_survey.schemas.snippets import SnippetResponse
from cough_survey.schemas.stats import SnippetStatsResponse

router = APIRouter()


@router.post(
    "",
    response_model=ResponseSubmissionResult,
    status_code=status.HTTP_201_CREATED,
)
def submit_response(
    payload: ResponseSubmission,
    registry: ParticipantRegistry = Depends(get_participant_registry),
    ledger: ResponseLedger = Depends(get_ledger),
    aggregator: StatisticsAggregator = Depends(get_statistics),
):
    """
    Record the participant's classification of their current snippet.

    The participant is identified by participant_token, or by
    participant_id when no token is given. Returns the recorded response,
    the snippet's updated statistics and the session's new progress.
    """
    if payload.participant_token:
        participant_id = registry.get_by_token(payload.participant_token).id
    elif payload.participant_id is not None:
        participant_id = payload.participant_id
    else:
        raise_bad_request(ErrorMessages.PARTICIPANT_REFERENCE_REQUIRED)

    result = ledger.record(participant_id, payload.snippet_id, payload.selection)
    snippet_stats = aggregator.stats_for(result.snippet)

    return ResponseSubmissionResult(
        response=ResponseRecord.model_validate(result.response),
        snippet_stats=SnippetStatsResponse.model_validate(snippet_stats),
        session_completed=result.session.completed,
        session=EvaluationSessionResponse.from_session(result.session),
        feedback_message=pick_feedback_message(),
    )


@router.get(
    "",
    response_model=List[ResponseDetail],
    dependencies=[Depends(verify_admin_token)],
)
def list_responses(
    snippet_id: Optional[int] = Query(None, description="Only responses to this snippet"),
    selection: Optional[str] = Query(None, description="cough, throat-clear or other"),
    date: Optional[str] = Query(None, description="UTC calendar date, YYYY-MM-DD"),
    ledger: ResponseLedger = Depends(get_ledger),
    store: SnippetStore = Depends(get_snippet_store),
    registry: ParticipantRegistry = Depends(get_participant_registry),
):
    """
    List responses, oldest first, each with its snippet and participant.

    The snippet is null for responses whose snippet has been deleted.
    """
    day = parse_date_filter(date)
    responses = ledger.list_all(snippet_id=snippet_id, selection=selection, day=day)
    snippets = {s.id: s for s in store.list()}
    participants = {p.id: p for p in registry.list()}

    details = []
    for r in responses:
        snippet = snippets.get(r.snippet_id)
        participant = participants.get(r.participant_id)
        details.append(
            ResponseDetail(
                id=r.id,
                participant_id=r.participant_id,
                snippet_id=r.snippet_id,
                selection=r.selection,
                created_at=r.created_at,
                snippet=SnippetResponse.model_validate(snippet) if snippet else None,
                participant=(
                    ParticipantResponse.model_validate(participant)
                    if participant
                    else None
                ),
            )
        )
    return details


@router.get("/export.csv", dependencies=[Depends(verify_admin_token)])
def export_responses_csv(
    snippet_id: Optional[int] = Query(None),
    selection: Optional[str] = Query(None),
    date: Optional[str] = Query(None),
    ledger: ResponseLedger = Depends(get_ledger),
):
    """Download the (optionally filtered) response ledger as CSV."""
    content = ledger.export_csv(
        snippet_id=snippet_id, selection=selection, day=parse_date_filter(date)
    )
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="responses.csv"'},
    )


@router.delete(
    "",
    response_model=DeleteResponsesResult,
    dependencies=[Depends(verify_admin_token)],
)
def delete_responses(
    date: str = Query(..., description="UTC calendar date to clear, YYYY-MM-DD"),
    ledger: ResponseLedger = Depends(get_ledger),
):
    """Delete every response recorded on the given date. Irreversible."""
    day = parse_date_filter(date)
    if day is None:
        raise_bad_request(ErrorMessages.invalid_date(date))
    deleted = ledger.delete_where(day)
    return DeleteResponsesResult(deleted=deleted)
