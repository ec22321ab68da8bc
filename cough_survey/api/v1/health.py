"""
Liveness and readiness probes.

/ping only proves the process answers. /health also reads the storage
backend, so it fails while the database is unreachable, and reports
whether any snippets are available to hand out to participants.
"""
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from cough_survey.api.v1.deps import get_snippet_store
from cough_survey.core.config import settings
from cough_survey.core.datetime_utils import utc_now
from cough_survey.core.snippets import SnippetStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check(store: SnippetStore = Depends(get_snippet_store)):
    """
    Readiness check.

    "healthy" when storage answers and at least one snippet exists,
    "no_content" when storage answers but sessions cannot be created yet,
    and 503 "unavailable" when storage cannot be read.
    """
    report = {
        "timestamp": utc_now().isoformat(),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "storage_backend": settings.STORAGE_BACKEND,
    }
    try:
        snippet_count = store.count()
    except SQLAlchemyError:
        logger.exception("Health check could not read storage")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={**report, "status": "unavailable"},
        )

    return {
        **report,
        "status": "healthy" if snippet_count else "no_content",
        "snippet_count": snippet_count,
    }


@router.get("/ping")
def ping():
    return {"message": "pong"}
