"""
Models package for the cough survey backend.
"""
from .base import Base, engine, SessionLocal, get_db
from .models import (
    Snippet,
    Participant,
    EvaluationSession,
    Response,
)

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "Snippet",
    "Participant",
    "EvaluationSession",
    "Response",
]
