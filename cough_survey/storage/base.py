"""
Abstract storage interfaces for the survey services.

The services in cough_survey.core talk only to these repositories, so the
same session assignment and ledger logic runs against the in-memory backend
(tests, single-process demos) or the SQLAlchemy backend (production).
"""
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from typing import Dict, List, Optional

from cough_survey.core.entities import (
    EvaluationSession,
    Participant,
    Response,
    Selection,
    Snippet,
    SnippetMeta,
)

# Per-snippet selection counts: {snippet_id: {Selection: count}}
SelectionCounts = Dict[int, Dict[Selection, int]]


class DuplicateKeyError(Exception):
    """Raised by a repository when an insert would violate a unique key."""


class SnippetRepository(ABC):
    @abstractmethod
    def add(self, meta: SnippetMeta, uploaded_at: datetime) -> Snippet:
        """Persist a new snippet and return it with its assigned id."""

    @abstractmethod
    def get(self, snippet_id: int) -> Optional[Snippet]:
        pass

    @abstractmethod
    def list(self) -> List[Snippet]:
        """All snippets, newest upload first (ties broken by id descending)."""

    @abstractmethod
    def ids(self) -> List[int]:
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def delete(self, snippet_id: int) -> bool:
        """Delete a snippet; return False if it did not exist."""


class ParticipantRepository(ABC):
    @abstractmethod
    def add(self, token: str, label: Optional[str], created_at: datetime) -> Participant:
        """
        Persist a new participant.

        Raises:
            ConcurrentModification: If the token was taken concurrently
        """

    @abstractmethod
    def get(self, participant_id: int) -> Optional[Participant]:
        pass

    @abstractmethod
    def get_by_token(self, token: str) -> Optional[Participant]:
        pass

    @abstractmethod
    def list(self) -> List[Participant]:
        """All participants in creation order."""


class SessionRepository(ABC):
    @abstractmethod
    def get(self, participant_id: int) -> Optional[EvaluationSession]:
        pass

    @abstractmethod
    def add(self, session: EvaluationSession) -> EvaluationSession:
        """
        Persist a new session.

        Raises:
            DuplicateKeyError: If the participant already has a session
        """

    @abstractmethod
    def advance(self, session: EvaluationSession) -> EvaluationSession:
        """
        Move the stored cursor one step past ``session.current_position``.

        The update only applies if the stored position still equals
        ``session.current_position`` (compare-and-set).

        Raises:
            ConcurrentModification: If the stored position has moved on
        """


class ResponseRepository(ABC):
    @abstractmethod
    def add(
        self,
        participant_id: int,
        snippet_id: int,
        selection: Selection,
        created_at: datetime,
    ) -> Response:
        """
        Append a response.

        Raises:
            DuplicateKeyError: If the (participant, snippet) pair already exists
        """

    @abstractmethod
    def get_for_pair(self, participant_id: int, snippet_id: int) -> Optional[Response]:
        pass

    @abstractmethod
    def list(
        self,
        participant_id: Optional[int] = None,
        snippet_id: Optional[int] = None,
        selection: Optional[Selection] = None,
        day: Optional[date] = None,
    ) -> List[Response]:
        """Responses matching every given filter, oldest first."""

    @abstractmethod
    def counts_by_snippet(self) -> SelectionCounts:
        """Selection counts for every snippet id present in the ledger, read at once."""

    @abstractmethod
    def delete_on_date(self, day: date) -> int:
        """Delete every response created on the UTC date; return the count."""

    @abstractmethod
    def delete_for_snippet(self, snippet_id: int) -> int:
        pass


class Storage(ABC):
    """
    Bundle of repositories plus the transaction boundary.

    ``transaction(participant_id)`` serializes mutations for one participant
    and makes everything inside it all-or-nothing. Transactions may nest; only
    the outermost one commits or rolls back.
    """

    snippets: SnippetRepository
    participants: ParticipantRepository
    sessions: SessionRepository
    responses: ResponseRepository

    @abstractmethod
    def transaction(
        self, participant_id: Optional[int] = None
    ) -> AbstractContextManager[None]:
        pass
