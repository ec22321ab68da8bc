"""
Pydantic schemas for request/response validation.
"""
from .snippets import SnippetCreate, SnippetResponse
from .participants import (
    ParticipantResponse,
    ParticipantLink,
    ParticipantBatchRequest,
    ParticipantBatchResponse,
)
from .sessions import (
    SessionStartRequest,
    EvaluationSessionResponse,
    SessionStatusResponse,
)
from .stats import (
    SelectionStatsResponse,
    SnippetStatsResponse,
    StatsSummaryResponse,
)
from .responses import (
    ResponseSubmission,
    ResponseRecord,
    ResponseSubmissionResult,
    ResponseDetail,
    DeleteResponsesResult,
)

__all__ = [
    "SnippetCreate",
    "SnippetResponse",
    "ParticipantResponse",
    "ParticipantLink",
    "ParticipantBatchRequest",
    "ParticipantBatchResponse",
    "SessionStartRequest",
    "EvaluationSessionResponse",
    "SessionStatusResponse",
    "SelectionStatsResponse",
    "SnippetStatsResponse",
    "StatsSummaryResponse",
    "ResponseSubmission",
    "ResponseRecord",
    "ResponseSubmissionResult",
    "ResponseDetail",
    "DeleteResponsesResult",
]
