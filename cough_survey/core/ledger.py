"""
Response ledger: append-only record of participant classifications.

Guarantees at most one response per (participant, snippet). Recording a
response and advancing the participant's session happen in one
per-participant transaction, so a failed record() leaves neither a
response nor a moved cursor behind.
"""
import csv
import io
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Union

from cough_survey.core.datetime_utils import utc_now
from cough_survey.core.entities import EvaluationSession, Response, Selection, Snippet
from cough_survey.core.exceptions import (
    DuplicateResponse,
    InvalidSelection,
    ParticipantNotFound,
    SessionCompleted,
    SessionNotFound,
    SnippetNotAssigned,
    SnippetNotFound,
)
from cough_survey.core.sessions import SessionAssignmentEngine
from cough_survey.storage.base import DuplicateKeyError, Storage

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["id", "participant_id", "snippet_id", "selection", "created_at"]


@dataclass(frozen=True)
class RecordResult:
    response: Response
    session: EvaluationSession
    # Snippet as read inside the recording transaction
    snippet: Snippet


def parse_selection(value: Union[str, Selection]) -> Selection:
    """
    Raises:
        InvalidSelection: If value is not a known selection
    """
    if isinstance(value, Selection):
        return value
    try:
        return Selection(value)
    except ValueError:
        raise InvalidSelection(value)


class ResponseLedger:
    def __init__(self, storage: Storage, engine: Optional[SessionAssignmentEngine] = None):
        self.storage = storage
        self.engine = engine or SessionAssignmentEngine(storage)

    def record(
        self,
        participant_id: int,
        snippet_id: int,
        selection: Union[str, Selection],
    ) -> RecordResult:
        """
        Record a participant's classification of the snippet at their cursor.

        Raises:
            InvalidSelection: Unknown selection value
            SnippetNotFound: No such snippet
            ParticipantNotFound: No such participant
            DuplicateResponse: The pair already has a response
            SessionNotFound: The participant has no session
            SessionCompleted: The session is terminal
            SnippetNotAssigned: The snippet is not the session's current one
        """
        choice = parse_selection(selection)

        try:
            with self.storage.transaction(participant_id):
                result = self._record_locked(participant_id, snippet_id, choice)
        except DuplicateKeyError:
            # Unique constraint caught a race the indexed check did not
            self._log_duplicate(participant_id, snippet_id)
            raise DuplicateResponse(participant_id, snippet_id)

        logger.info(
            f"Recorded {choice.value!r} from participant {participant_id} "
            f"for snippet {snippet_id}",
            extra={"participant_id": participant_id, "snippet_id": snippet_id},
        )
        return result

    def _record_locked(
        self, participant_id: int, snippet_id: int, selection: Selection
    ) -> RecordResult:
        snippet = self.storage.snippets.get(snippet_id)
        if snippet is None:
            raise SnippetNotFound(snippet_id)
        if self.storage.participants.get(participant_id) is None:
            raise ParticipantNotFound(participant_id=participant_id)
        if self.storage.responses.get_for_pair(participant_id, snippet_id) is not None:
            self._log_duplicate(participant_id, snippet_id)
            raise DuplicateResponse(participant_id, snippet_id)

        session = self.storage.sessions.get(participant_id)
        if session is None:
            raise SessionNotFound(participant_id)
        if session.completed:
            raise SessionCompleted(participant_id)
        if session.current_snippet_id != snippet_id:
            raise SnippetNotAssigned(participant_id, snippet_id, session.current_snippet_id)

        response = self.storage.responses.add(
            participant_id, snippet_id, selection, created_at=utc_now()
        )
        session = self.engine.advance(session)
        return RecordResult(response=response, session=session, snippet=snippet)

    @staticmethod
    def _log_duplicate(participant_id: int, snippet_id: int) -> None:
        logger.info(
            f"Rejected duplicate response from participant {participant_id} "
            f"for snippet {snippet_id}",
            extra={"participant_id": participant_id, "snippet_id": snippet_id},
        )

    def list_by_participant(self, participant_id: int) -> List[Response]:
        return self.storage.responses.list(participant_id=participant_id)

    def list_by_snippet(self, snippet_id: int) -> List[Response]:
        return self.storage.responses.list(snippet_id=snippet_id)

    def list_all(
        self,
        snippet_id: Optional[int] = None,
        selection: Optional[Union[str, Selection]] = None,
        day: Optional[date] = None,
    ) -> List[Response]:
        return self.storage.responses.list(
            snippet_id=snippet_id,
            selection=parse_selection(selection) if selection is not None else None,
            day=day,
        )

    def delete_where(self, day: date) -> int:
        """
        Delete every response recorded on a UTC calendar date. Irreversible.

        Returns:
            Number of responses deleted
        """
        with self.storage.transaction():
            deleted = self.storage.responses.delete_on_date(day)
        logger.warning(f"Deleted {deleted} responses recorded on {day.isoformat()}")
        return deleted

    def export_csv(
        self,
        snippet_id: Optional[int] = None,
        selection: Optional[Union[str, Selection]] = None,
        day: Optional[date] = None,
    ) -> str:
        """CSV of the ledger filtered the same way as list_all()."""
        return self.to_csv(self.list_all(snippet_id=snippet_id, selection=selection, day=day))

    @staticmethod
    def to_csv(responses: Iterable[Response]) -> str:
        """Render responses as CSV text with a header row."""
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(CSV_COLUMNS)
        for r in responses:
            writer.writerow(
                [
                    r.id,
                    r.participant_id,
                    r.snippet_id,
                    r.selection.value,
                    r.created_at.isoformat(),
                ]
            )
        return buf.getvalue()
