"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter
from cough_survey.api.v1 import (
    health,
    participants,
    responses,
    sessions,
    snippets,
    stats,
)

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(snippets.router, prefix="/snippets", tags=["snippets"])
api_router.include_router(
    participants.router, prefix="/participants", tags=["participants"]
)
api_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
api_router.include_router(responses.router, prefix="/responses", tags=["responses"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
