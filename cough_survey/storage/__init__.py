"""
Storage backends for the survey services.
"""
from .base import (
    DuplicateKeyError,
    ParticipantRepository,
    ResponseRepository,
    SessionRepository,
    SnippetRepository,
    Storage,
)
from .memory import InMemoryStorage
from .sql import SqlStorage

__all__ = [
    "DuplicateKeyError",
    "ParticipantRepository",
    "ResponseRepository",
    "SessionRepository",
    "SnippetRepository",
    "Storage",
    "InMemoryStorage",
    "SqlStorage",
]
