"""
Domain exceptions for the survey services.

Every failure the core can report is a subclass of CoughSurveyError with a
stable machine-readable ``code`` and the HTTP status the API maps it to.
Services raise these directly; the FastAPI exception handler in
cough_survey.main turns them into JSON error responses.

Client-correctable errors (validation, not found, conflicts) use 4xx codes.
Operator errors (no snippets uploaded, assigned snippet deleted) are
flagged with ``operator_error = True`` so they can be logged loudly and
surfaced to the admin rather than retried.
"""
from typing import Any, Dict, Optional


class CoughSurveyError(Exception):
    """Base class for all domain errors.

    Attributes:
        message: Human-readable description, safe to return to clients
        code: Machine-readable error kind
        status_code: HTTP status used by the API layer
        context: Identifiers relevant to the failure, for logging
    """

    code = "survey_error"
    status_code = 500
    operator_error = False

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context: Dict[str, Any] = context
        super().__init__(message)


# ==========================================================================
# Validation errors (400)
# ==========================================================================
class ValidationError(CoughSurveyError):
    """Input is well-formed but violates a domain rule."""

    code = "validation_error"
    status_code = 400


class InvalidSelection(ValidationError):
    code = "invalid_selection"

    def __init__(self, selection: Any):
        super().__init__(
            f"Invalid selection {selection!r}. "
            "Expected one of: cough, throat-clear, other.",
            selection=selection,
        )


class InvalidBatchSize(ValidationError):
    code = "invalid_batch_size"

    def __init__(self, count: int, maximum: int):
        super().__init__(
            f"Participant batch size must be between 1 and {maximum}, got {count}.",
            count=count,
        )


class SnippetNotAssigned(ValidationError):
    """The snippet is not the one the participant's session is waiting on."""

    code = "snippet_not_assigned"

    def __init__(
        self, participant_id: int, snippet_id: int, expected_id: Optional[int]
    ):
        super().__init__(
            f"Snippet {snippet_id} is not the current snippet for this session.",
            participant_id=participant_id,
            snippet_id=snippet_id,
            expected_snippet_id=expected_id,
        )


# ==========================================================================
# Not found errors (404)
# ==========================================================================
class NotFound(CoughSurveyError):
    code = "not_found"
    status_code = 404


class SnippetNotFound(NotFound):
    code = "snippet_not_found"

    def __init__(self, snippet_id: int):
        super().__init__(f"Snippet {snippet_id} not found.", snippet_id=snippet_id)


class ParticipantNotFound(NotFound):
    code = "participant_not_found"

    def __init__(self, participant_id: Optional[int] = None, token: Optional[str] = None):
        super().__init__(
            "Participant not found.", participant_id=participant_id, token=token
        )


class SessionNotFound(NotFound):
    code = "session_not_found"

    def __init__(self, participant_id: int):
        super().__init__(
            "No evaluation session exists for this participant.",
            participant_id=participant_id,
        )


# ==========================================================================
# Conflict errors (409)
# ==========================================================================
class DuplicateResponse(CoughSurveyError):
    code = "duplicate_response"
    status_code = 409

    def __init__(self, participant_id: int, snippet_id: int):
        super().__init__(
            "Participant has already responded to this snippet.",
            participant_id=participant_id,
            snippet_id=snippet_id,
        )


class SessionCompleted(CoughSurveyError):
    """The session is terminal; there is no current snippet to answer."""

    code = "session_completed"
    status_code = 409

    def __init__(self, participant_id: int):
        super().__init__(
            "Evaluation session is already completed.", participant_id=participant_id
        )


class ConcurrentModification(CoughSurveyError):
    """A concurrent request changed the same rows first; the caller may retry."""

    code = "concurrent_modification"
    status_code = 409

    def __init__(self, operation: str, **context: Any):
        super().__init__(
            f"Could not {operation} because it was modified concurrently. "
            "Please try again.",
            **context,
        )


class TokenCollision(CoughSurveyError):
    code = "token_collision"
    status_code = 409

    def __init__(self, attempts: int):
        super().__init__(
            f"Could not generate a unique participant token after {attempts} attempts.",
            attempts=attempts,
        )


# ==========================================================================
# Operator / data errors
# ==========================================================================
class NoContentAvailable(CoughSurveyError):
    code = "no_content_available"
    status_code = 503
    operator_error = True

    def __init__(self) -> None:
        super().__init__(
            "No audio snippets are available yet. Please ask an administrator "
            "to upload snippets."
        )


class DanglingSnippetReference(CoughSurveyError):
    code = "dangling_snippet_reference"
    status_code = 409
    operator_error = True

    def __init__(self, participant_id: int, snippet_id: int, position: int):
        super().__init__(
            f"Snippet {snippet_id} assigned at position {position} no longer exists.",
            participant_id=participant_id,
            snippet_id=snippet_id,
            position=position,
        )
