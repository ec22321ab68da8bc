"""
Main FastAPI application.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cough_survey.api.v1.api import api_router
from cough_survey.core.config import settings
from cough_survey.core.error_responses import ErrorMessages
from cough_survey.core.exceptions import CoughSurveyError
from cough_survey.core.logging_config import setup_logging
from cough_survey.middleware import (
    RequestLoggingMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)

# Initialize logging configuration at startup
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan event handler.

    On startup, creates the database tables when the SQL backend is in use
    and CREATE_TABLES_ON_STARTUP is enabled.
    """
    if settings.STORAGE_BACKEND == "sql" and settings.CREATE_TABLES_ON_STARTUP:
        from cough_survey.models import Base, engine

        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")

    logger.info(
        f"{settings.APP_NAME} {settings.APP_VERSION} started "
        f"(env={settings.ENV}, storage={settings.STORAGE_BACKEND})"
    )

    yield

    logger.info("Application shutting down")


# OpenAPI tags metadata
tags_metadata = [
    {
        "name": "health",
        "description": "Health check endpoints for monitoring application status",
    },
    {
        "name": "sessions",
        "description": "Start or resume a participant's evaluation session",
    },
    {
        "name": "responses",
        "description": "Response submission, listing, export and bulk deletion",
    },
    {
        "name": "snippets",
        "description": "Audio snippet metadata management (admin)",
    },
    {
        "name": "participants",
        "description": "Participant lookup and QR link generation",
    },
    {
        "name": "stats",
        "description": "Per-snippet and overall classification statistics (admin)",
    },
]


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        description=(
            "**Cough Survey API** - crowd-sourced labeling of short audio clips.\n\n"
            "Participants scan a QR code, listen to a few snippets and classify "
            "each one as `cough`, `throat-clear` or `other`.\n\n"
            "## Authentication\n\n"
            "Admin endpoints require the `X-Admin-Token` header."
        ),
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        openapi_tags=tags_metadata,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Admin-Token", "X-Request-ID"],
    )

    # Add first to log all incoming requests and responses
    app.add_middleware(RequestLoggingMiddleware)

    # HSTS is enabled only in production to avoid issues with local development
    app.add_middleware(
        SecurityHeadersMiddleware,
        hsts_enabled=settings.ENV == "production",
    )

    app.add_middleware(
        RequestSizeLimitMiddleware, max_body_size=settings.MAX_REQUEST_BODY_BYTES
    )

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.exception_handler(CoughSurveyError)
    async def survey_exception_handler(request: Request, exc: CoughSurveyError):
        """
        Map domain errors to their HTTP status.

        Operator errors (missing content, deleted snippets still assigned)
        need attention from an administrator and are logged at ERROR.
        """
        extra = {
            "method": request.method,
            "path": str(request.url.path),
            "status_code": exc.status_code,
            "error_code": exc.code,
        }
        if exc.operator_error:
            logger.error(f"{exc.code}: {exc.message} {exc.context}", extra=extra)
        else:
            logger.info(f"{exc.code}: {exc.message}", extra=extra)

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """
        Handle request validation errors.
        """
        errors = [
            {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "")),
                "type": str(error.get("type", "")),
            }
            for error in exc.errors()
        ]
        logger.info(
            f"Request validation failed: {errors}",
            extra={"method": request.method, "path": str(request.url.path)},
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": errors},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """
        Handle unexpected exceptions.

        Generates a unique error_id for each exception so a participant's
        report can be matched to the logged traceback.
        """
        error_id = str(uuid.uuid4())

        logger.exception(
            f"Unhandled exception [error_id={error_id}]: {exc}",
            extra={"error_id": error_id, "path": str(request.url.path)},
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": ErrorMessages.INTERNAL_ERROR,
                "error_id": error_id,
            },
        )

    return app


app = create_application()


@app.get("/")
def root():
    """
    Root endpoint.
    """
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": f"{settings.API_V1_PREFIX}/docs",
    }


def run() -> None:
    """Serve the API with uvicorn on HOST:PORT."""
    import uvicorn

    uvicorn.run(
        "cough_survey.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG and settings.ENV == "development",
        log_config=None,
    )
