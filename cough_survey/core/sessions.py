"""
Session assignment engine.

Each participant gets exactly one evaluation session: a fixed, ordered
sample of snippets plus a cursor. The sample is drawn once, uniformly at
random without replacement, and persisted; later fetches return the stored
session unchanged so progress (tracked by index) stays stable across
reloads and retries.

Lifecycle per participant:
    NONE -> ACTIVE -> COMPLETED

The cursor only moves through advance(), which the response ledger calls
inside the same transaction that records the response.
"""
import logging
import random
from typing import Optional

from cough_survey.core.config import settings
from cough_survey.core.datetime_utils import utc_now
from cough_survey.core.entities import EvaluationSession, SessionState, Snippet
from cough_survey.core.exceptions import (
    DanglingSnippetReference,
    NoContentAvailable,
    ParticipantNotFound,
    SessionCompleted,
    SessionNotFound,
)
from cough_survey.core.snippets import SnippetStore
from cough_survey.storage.base import DuplicateKeyError, Storage

logger = logging.getLogger(__name__)


class SessionAssignmentEngine:
    def __init__(
        self,
        storage: Storage,
        snippets: Optional[SnippetStore] = None,
        session_size: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            storage: Storage backend
            snippets: Snippet store used to resolve assigned snippets
            session_size: Target snippets per session (default SESSION_SNIPPET_COUNT)
            rng: Random source for sampling; pass a seeded Random for reproducibility
        """
        self.storage = storage
        self.snippets = snippets or SnippetStore(storage)
        self.session_size = (
            settings.SESSION_SNIPPET_COUNT if session_size is None else session_size
        )
        if self.session_size < 1:
            raise ValueError("session_size must be at least 1")
        self.rng = rng or random.SystemRandom()

    def get_or_create_session(self, participant_id: int) -> EvaluationSession:
        """
        Return the participant's session, creating it on first use.

        Raises:
            ParticipantNotFound: If the participant does not exist
            NoContentAvailable: If there are no snippets to assign
        """
        existing = self.storage.sessions.get(participant_id)
        if existing is not None:
            return existing

        try:
            with self.storage.transaction(participant_id):
                # Re-check under the participant lock
                existing = self.storage.sessions.get(participant_id)
                if existing is not None:
                    return existing
                session = self._create_session(participant_id)
        except DuplicateKeyError:
            # A concurrent request created the session first; use theirs
            existing = self.storage.sessions.get(participant_id)
            if existing is None:
                raise
            return existing

        logger.info(
            f"Assigned {session.total} snippets to participant {participant_id}",
            extra={"participant_id": participant_id},
        )
        return session

    def _create_session(self, participant_id: int) -> EvaluationSession:
        if self.storage.participants.get(participant_id) is None:
            raise ParticipantNotFound(participant_id=participant_id)

        available = self.snippets.ids()
        if not available:
            logger.error(
                f"Cannot create session for participant {participant_id}: "
                "no snippets uploaded"
            )
            raise NoContentAvailable()

        k = min(self.session_size, len(available))
        chosen = self.rng.sample(available, k)
        return self.storage.sessions.add(
            EvaluationSession(
                participant_id=participant_id,
                snippet_ids=tuple(chosen),
                created_at=utc_now(),
            )
        )

    def get_session(self, participant_id: int) -> EvaluationSession:
        """
        Raises:
            SessionNotFound: If the participant has no session yet
        """
        session = self.storage.sessions.get(participant_id)
        if session is None:
            raise SessionNotFound(participant_id)
        return session

    def state(self, participant_id: int) -> SessionState:
        session = self.storage.sessions.get(participant_id)
        return session.state if session is not None else SessionState.NONE

    def current_snippet(self, session: EvaluationSession) -> Snippet:
        """
        Resolve the snippet at the session's cursor.

        Raises:
            SessionCompleted: If every assigned snippet has been answered
            DanglingSnippetReference: If the assigned snippet was deleted
        """
        snippet_id = session.current_snippet_id
        if session.completed or snippet_id is None:
            raise SessionCompleted(session.participant_id)

        snippet = self.storage.snippets.get(snippet_id)
        if snippet is None:
            logger.error(
                f"Session for participant {session.participant_id} references "
                f"deleted snippet {snippet_id} at position {session.current_position}",
                extra={
                    "participant_id": session.participant_id,
                    "snippet_id": snippet_id,
                },
            )
            raise DanglingSnippetReference(
                session.participant_id, snippet_id, session.current_position
            )
        return snippet

    def advance(self, session: EvaluationSession) -> EvaluationSession:
        """
        Move the cursor forward by exactly one.

        Must run inside the transaction that recorded the response for the
        current snippet.

        Raises:
            SessionCompleted: If the session is already terminal
            ConcurrentModification: If the stored cursor moved in the meantime
        """
        if session.completed:
            raise SessionCompleted(session.participant_id)

        updated = self.storage.sessions.advance(session)
        if updated.completed:
            logger.info(
                f"Participant {session.participant_id} completed their session",
                extra={"participant_id": session.participant_id},
            )
        else:
            logger.debug(
                f"Participant {session.participant_id} advanced to "
                f"{updated.current_position}/{updated.total}"
            )
        return updated
