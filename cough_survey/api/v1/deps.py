"""
Shared dependencies for v1 endpoints.

Provides the admin-token gate and wires the survey services to the
configured storage backend for each request.
"""
import logging
import secrets
from datetime import date
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from cough_survey.core.config import settings
from cough_survey.core.error_responses import (
    ErrorMessages,
    raise_bad_request,
    raise_not_configured,
    raise_unauthorized,
)
from cough_survey.core.ledger import ResponseLedger
from cough_survey.core.participants import ParticipantRegistry
from cough_survey.core.sessions import SessionAssignmentEngine
from cough_survey.core.snippets import SnippetStore
from cough_survey.core.statistics import StatisticsAggregator
from cough_survey.models import get_db
from cough_survey.storage import InMemoryStorage, SqlStorage, Storage

logger = logging.getLogger(__name__)

# Process-wide store used when STORAGE_BACKEND is "memory"
_memory_storage: Optional[InMemoryStorage] = None


def _verify_secret_header(
    header_value: str,
    expected_secret: Optional[str],
    not_configured_detail: str,
    invalid_detail: str,
) -> bool:
    """
    Verify a secret header value against an expected secret.

    Uses constant-time comparison to prevent timing attacks.

    Raises:
        HTTPException: 500 if secret not configured, 401 if invalid
    """
    if not expected_secret:
        raise_not_configured(not_configured_detail)

    if not secrets.compare_digest(header_value, expected_secret):
        logger.warning("Rejected request with invalid admin token")
        raise_unauthorized(invalid_detail, include_www_authenticate=False)

    return True


def verify_admin_token(x_admin_token: str = Header(...)) -> bool:
    """
    Verify admin token from the X-Admin-Token request header.

    Raises:
        HTTPException: If token is invalid or not configured
    """
    return _verify_secret_header(
        header_value=x_admin_token,
        expected_secret=settings.ADMIN_TOKEN,
        not_configured_detail=ErrorMessages.ADMIN_TOKEN_NOT_CONFIGURED,
        invalid_detail=ErrorMessages.ADMIN_TOKEN_INVALID,
    )


def get_memory_storage() -> InMemoryStorage:
    global _memory_storage
    if _memory_storage is None:
        _memory_storage = InMemoryStorage()
    return _memory_storage


def get_storage(db: Session = Depends(get_db)) -> Storage:
    """Storage backend for the current request."""
    if settings.STORAGE_BACKEND == "memory":
        return get_memory_storage()
    return SqlStorage(db)


def get_snippet_store(storage: Storage = Depends(get_storage)) -> SnippetStore:
    return SnippetStore(storage)


def get_participant_registry(
    storage: Storage = Depends(get_storage),
) -> ParticipantRegistry:
    return ParticipantRegistry(storage)


def get_session_engine(
    storage: Storage = Depends(get_storage),
    snippets: SnippetStore = Depends(get_snippet_store),
) -> SessionAssignmentEngine:
    return SessionAssignmentEngine(storage, snippets=snippets)


def get_ledger(
    storage: Storage = Depends(get_storage),
    engine: SessionAssignmentEngine = Depends(get_session_engine),
) -> ResponseLedger:
    return ResponseLedger(storage, engine=engine)


def get_statistics(storage: Storage = Depends(get_storage)) -> StatisticsAggregator:
    return StatisticsAggregator(storage)


def parse_date_filter(value: Optional[str]) -> Optional[date]:
    """
    Parse a YYYY-MM-DD query parameter.

    Raises:
        HTTPException: 400 if the value is not a calendar date
    """
    if value is None or value == "":
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise_bad_request(ErrorMessages.invalid_date(value))
