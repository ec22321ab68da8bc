"""
In-memory storage backend.

Keeps every entity in dictionaries guarded by a single data lock, with an
extra re-entrant lock per participant to serialize that participant's
read-modify-write sequences. Writes made inside a transaction register undo
callbacks so a failed transaction leaves no partial state.

Note: Data is lost on process restart and is not shared between worker
processes. Use the SQL backend for anything beyond tests and demos.
"""
import itertools
import threading
from collections import defaultdict
from contextlib import contextmanager
from datetime import date, datetime
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from cough_survey.core.datetime_utils import is_on_utc_date
from cough_survey.core.entities import (
    EvaluationSession,
    Participant,
    Response,
    Selection,
    Snippet,
    SnippetMeta,
)
from cough_survey.core.exceptions import ConcurrentModification
from cough_survey.storage.base import (
    DuplicateKeyError,
    ParticipantRepository,
    ResponseRepository,
    SelectionCounts,
    SessionRepository,
    SnippetRepository,
    Storage,
)


class InMemorySnippetRepository(SnippetRepository):
    def __init__(self, storage: "InMemoryStorage"):
        self._storage = storage
        self._rows: Dict[int, Snippet] = {}
        self._ids = itertools.count(1)

    def add(self, meta: SnippetMeta, uploaded_at: datetime) -> Snippet:
        with self._storage.lock:
            snippet = Snippet(
                id=next(self._ids),
                filename=meta.filename,
                original_name=meta.original_name,
                mime_type=meta.mime_type,
                duration_ms=meta.duration_ms,
                uploaded_at=uploaded_at,
            )
            self._rows[snippet.id] = snippet
            self._storage.on_rollback(lambda: self._rows.pop(snippet.id, None))
            return snippet

    def get(self, snippet_id: int) -> Optional[Snippet]:
        with self._storage.lock:
            return self._rows.get(snippet_id)

    def list(self) -> List[Snippet]:
        with self._storage.lock:
            rows = list(self._rows.values())
        return sorted(rows, key=lambda s: (s.uploaded_at, s.id), reverse=True)

    def ids(self) -> List[int]:
        with self._storage.lock:
            return sorted(self._rows)

    def count(self) -> int:
        with self._storage.lock:
            return len(self._rows)

    def delete(self, snippet_id: int) -> bool:
        with self._storage.lock:
            snippet = self._rows.pop(snippet_id, None)
            if snippet is None:
                return False
            self._storage.on_rollback(lambda: self._rows.__setitem__(snippet_id, snippet))
            return True


class InMemoryParticipantRepository(ParticipantRepository):
    def __init__(self, storage: "InMemoryStorage"):
        self._storage = storage
        self._rows: Dict[int, Participant] = {}
        self._by_token: Dict[str, int] = {}
        self._ids = itertools.count(1)

    def add(self, token: str, label: Optional[str], created_at: datetime) -> Participant:
        with self._storage.lock:
            if token in self._by_token:
                raise ConcurrentModification("create participant", token=token)
            participant = Participant(
                id=next(self._ids), token=token, label=label, created_at=created_at
            )
            self._rows[participant.id] = participant
            self._by_token[token] = participant.id

            def undo() -> None:
                self._rows.pop(participant.id, None)
                self._by_token.pop(token, None)

            self._storage.on_rollback(undo)
            return participant

    def get(self, participant_id: int) -> Optional[Participant]:
        with self._storage.lock:
            return self._rows.get(participant_id)

    def get_by_token(self, token: str) -> Optional[Participant]:
        with self._storage.lock:
            participant_id = self._by_token.get(token)
            return self._rows.get(participant_id) if participant_id is not None else None

    def list(self) -> List[Participant]:
        with self._storage.lock:
            return [self._rows[pid] for pid in sorted(self._rows)]


class InMemorySessionRepository(SessionRepository):
    def __init__(self, storage: "InMemoryStorage"):
        self._storage = storage
        self._rows: Dict[int, EvaluationSession] = {}

    def get(self, participant_id: int) -> Optional[EvaluationSession]:
        with self._storage.lock:
            return self._rows.get(participant_id)

    def add(self, session: EvaluationSession) -> EvaluationSession:
        with self._storage.lock:
            if session.participant_id in self._rows:
                raise DuplicateKeyError(f"session for participant {session.participant_id}")
            self._rows[session.participant_id] = session
            self._storage.on_rollback(
                lambda: self._rows.pop(session.participant_id, None)
            )
            return session

    def advance(self, session: EvaluationSession) -> EvaluationSession:
        with self._storage.lock:
            stored = self._rows.get(session.participant_id)
            if stored is None or stored.current_position != session.current_position:
                raise ConcurrentModification(
                    "advance session", participant_id=session.participant_id
                )
            updated = stored.advanced()
            self._rows[session.participant_id] = updated
            self._storage.on_rollback(
                lambda: self._rows.__setitem__(session.participant_id, stored)
            )
            return updated


class InMemoryResponseRepository(ResponseRepository):
    def __init__(self, storage: "InMemoryStorage"):
        self._storage = storage
        self._rows: Dict[int, Response] = {}
        # Composite index on (participant_id, snippet_id) -> response id
        self._by_pair: Dict[Tuple[int, int], int] = {}
        self._ids = itertools.count(1)

    def add(
        self,
        participant_id: int,
        snippet_id: int,
        selection: Selection,
        created_at: datetime,
    ) -> Response:
        key = (participant_id, snippet_id)
        with self._storage.lock:
            if key in self._by_pair:
                raise DuplicateKeyError(f"response for pair {key}")
            response = Response(
                id=next(self._ids),
                participant_id=participant_id,
                snippet_id=snippet_id,
                selection=selection,
                created_at=created_at,
            )
            self._rows[response.id] = response
            self._by_pair[key] = response.id

            def undo() -> None:
                self._rows.pop(response.id, None)
                self._by_pair.pop(key, None)

            self._storage.on_rollback(undo)
            return response

    def get_for_pair(self, participant_id: int, snippet_id: int) -> Optional[Response]:
        with self._storage.lock:
            response_id = self._by_pair.get((participant_id, snippet_id))
            return self._rows.get(response_id) if response_id is not None else None

    def list(
        self,
        participant_id: Optional[int] = None,
        snippet_id: Optional[int] = None,
        selection: Optional[Selection] = None,
        day: Optional[date] = None,
    ) -> List[Response]:
        with self._storage.lock:
            rows = [self._rows[rid] for rid in sorted(self._rows)]
        if participant_id is not None:
            rows = [r for r in rows if r.participant_id == participant_id]
        if snippet_id is not None:
            rows = [r for r in rows if r.snippet_id == snippet_id]
        if selection is not None:
            rows = [r for r in rows if r.selection == selection]
        if day is not None:
            rows = [r for r in rows if is_on_utc_date(r.created_at, day)]
        return rows

    def counts_by_snippet(self) -> SelectionCounts:
        counts: SelectionCounts = defaultdict(lambda: defaultdict(int))
        with self._storage.lock:
            for response in self._rows.values():
                counts[response.snippet_id][response.selection] += 1
        return {sid: dict(per) for sid, per in counts.items()}

    def delete_on_date(self, day: date) -> int:
        return self._delete_where(lambda r: is_on_utc_date(r.created_at, day))

    def delete_for_snippet(self, snippet_id: int) -> int:
        return self._delete_where(lambda r: r.snippet_id == snippet_id)

    def _delete_where(self, predicate: Callable[[Response], bool]) -> int:
        # Single lock acquisition: readers never observe a partial delete
        with self._storage.lock:
            doomed = [r for r in self._rows.values() if predicate(r)]
            for response in doomed:
                del self._rows[response.id]
                del self._by_pair[(response.participant_id, response.snippet_id)]

            def undo() -> None:
                for response in doomed:
                    self._rows[response.id] = response
                    self._by_pair[(response.participant_id, response.snippet_id)] = (
                        response.id
                    )

            self._storage.on_rollback(undo)
            return len(doomed)


class InMemoryStorage(Storage):
    """
    Dictionary-backed storage.

    Thread-safe: a data lock guards the dictionaries and one re-entrant lock
    per participant serializes that participant's transactions.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._participant_locks: Dict[int, threading.RLock] = {}
        self._local = threading.local()
        self.snippets = InMemorySnippetRepository(self)
        self.participants = InMemoryParticipantRepository(self)
        self.sessions = InMemorySessionRepository(self)
        self.responses = InMemoryResponseRepository(self)

    @contextmanager
    def transaction(self, participant_id: Optional[int] = None) -> Iterator[None]:
        # Unknown ids get no lock; the caller fails its existence check
        participant_lock = (
            self._lock_for(participant_id) if participant_id is not None else None
        )
        if participant_lock is not None:
            participant_lock.acquire()
        journal: Optional[List[Callable[[], None]]] = getattr(
            self._local, "journal", None
        )
        outermost = journal is None
        if outermost:
            self._local.journal = []
        try:
            yield
        except BaseException:
            if outermost:
                self._rollback(self._local.journal)
            raise
        finally:
            if outermost:
                self._local.journal = None
            if participant_lock is not None:
                participant_lock.release()

    def on_rollback(self, undo: Callable[[], None]) -> None:
        """Register an undo callback for the current thread's transaction, if any."""
        journal = getattr(self._local, "journal", None)
        if journal is not None:
            journal.append(undo)

    def _rollback(self, journal: List[Callable[[], None]]) -> None:
        with self.lock:
            for undo in reversed(journal):
                undo()

    def _lock_for(self, participant_id: int) -> Optional[threading.RLock]:
        """Per-participant lock, or None for an id that was never registered."""
        with self.lock:
            lock = self._participant_locks.get(participant_id)
            if lock is None:
                if self.participants.get(participant_id) is None:
                    return None
                lock = self._participant_locks[participant_id] = threading.RLock()
            return lock
