"""
Domain entities shared by the storage backends and the survey services.

These are plain frozen dataclasses so the services never depend on a
particular storage technology. The SQL backend converts ORM rows into
these; the in-memory backend stores them directly.
"""
import enum
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Tuple

# Column width of participants.label
PARTICIPANT_LABEL_MAX_LENGTH = 100


class Selection(str, enum.Enum):
    """Classification a participant can give a snippet."""

    COUGH = "cough"
    THROAT_CLEAR = "throat-clear"
    OTHER = "other"


class SessionState(str, enum.Enum):
    """Lifecycle of a participant's evaluation session."""

    NONE = "none"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True)
class SnippetMeta:
    """Validated upload metadata used to create a snippet."""

    filename: str
    original_name: str
    mime_type: str
    duration_ms: int


@dataclass(frozen=True)
class Snippet:
    id: int
    filename: str
    original_name: str
    mime_type: str
    duration_ms: int
    uploaded_at: datetime


@dataclass(frozen=True)
class Participant:
    id: int
    token: str
    label: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class EvaluationSession:
    """Fixed, ordered snippet assignment plus a progress cursor."""

    participant_id: int
    snippet_ids: Tuple[int, ...]
    current_position: int = 0
    completed: bool = False
    created_at: Optional[datetime] = field(default=None, compare=False)

    @property
    def total(self) -> int:
        return len(self.snippet_ids)

    @property
    def state(self) -> SessionState:
        return SessionState.COMPLETED if self.completed else SessionState.ACTIVE

    @property
    def current_snippet_id(self) -> Optional[int]:
        """Snippet the participant should answer next, None once completed."""
        if self.current_position >= self.total:
            return None
        return self.snippet_ids[self.current_position]

    def advanced(self) -> "EvaluationSession":
        """Return a copy with the cursor moved forward by one."""
        position = self.current_position + 1
        return replace(self, current_position=position, completed=position >= self.total)


@dataclass(frozen=True)
class Response:
    id: int
    participant_id: int
    snippet_id: int
    selection: Selection
    created_at: datetime
