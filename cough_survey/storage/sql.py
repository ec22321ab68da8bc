"""
SQLAlchemy storage backend.

Wraps one request-scoped Session. Repositories flush eagerly so unique
constraint violations surface where they happen and can be translated
into domain errors; SqlStorage.transaction() owns commit and rollback.

Per-participant serialization:
- the participant row is locked with SELECT ... FOR UPDATE (a no-op on
  SQLite, where writers are serialized by the database lock instead)
- the (participant_id, snippet_id) unique constraint backs the duplicate check
- session advances are compare-and-set on the expected cursor position
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterator, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cough_survey.core.datetime_utils import ensure_timezone_aware, utc_day_bounds, utc_now
from cough_survey.core.entities import (
    EvaluationSession,
    Participant,
    Response,
    Selection,
    Snippet,
    SnippetMeta,
)
from cough_survey.core.exceptions import ConcurrentModification
from cough_survey.models import models
from cough_survey.storage.base import (
    DuplicateKeyError,
    ParticipantRepository,
    ResponseRepository,
    SelectionCounts,
    SessionRepository,
    SnippetRepository,
    Storage,
)

logger = logging.getLogger(__name__)


def _to_snippet(row: models.Snippet) -> Snippet:
    return Snippet(
        id=row.id,
        filename=row.filename,
        original_name=row.original_name,
        mime_type=row.mime_type,
        duration_ms=row.duration_ms,
        uploaded_at=ensure_timezone_aware(row.uploaded_at),
    )


def _to_participant(row: models.Participant) -> Participant:
    return Participant(
        id=row.id,
        token=row.token,
        label=row.label,
        created_at=ensure_timezone_aware(row.created_at),
    )


def _to_session(row: models.EvaluationSession) -> EvaluationSession:
    return EvaluationSession(
        participant_id=row.participant_id,
        snippet_ids=tuple(row.snippet_ids),
        current_position=row.current_position,
        completed=row.completed,
        created_at=ensure_timezone_aware(row.created_at),
    )


def _to_response(row: models.Response) -> Response:
    return Response(
        id=row.id,
        participant_id=row.participant_id,
        snippet_id=row.snippet_id,
        selection=Selection(row.selection),
        created_at=ensure_timezone_aware(row.created_at),
    )


class SqlSnippetRepository(SnippetRepository):
    def __init__(self, db: Session):
        self.db = db

    def add(self, meta: SnippetMeta, uploaded_at: datetime) -> Snippet:
        row = models.Snippet(
            filename=meta.filename,
            original_name=meta.original_name,
            mime_type=meta.mime_type,
            duration_ms=meta.duration_ms,
            uploaded_at=uploaded_at,
        )
        self.db.add(row)
        self.db.flush()
        return _to_snippet(row)

    def get(self, snippet_id: int) -> Optional[Snippet]:
        row = self.db.get(models.Snippet, snippet_id)
        return _to_snippet(row) if row is not None else None

    def list(self) -> List[Snippet]:
        rows = self.db.execute(
            select(models.Snippet).order_by(
                models.Snippet.uploaded_at.desc(), models.Snippet.id.desc()
            )
        ).scalars()
        return [_to_snippet(row) for row in rows]

    def ids(self) -> List[int]:
        return list(
            self.db.execute(select(models.Snippet.id).order_by(models.Snippet.id))
            .scalars()
            .all()
        )

    def count(self) -> int:
        return self.db.execute(select(func.count(models.Snippet.id))).scalar_one()

    def delete(self, snippet_id: int) -> bool:
        row = self.db.get(models.Snippet, snippet_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True


class SqlParticipantRepository(ParticipantRepository):
    def __init__(self, db: Session):
        self.db = db

    def add(self, token: str, label: Optional[str], created_at: datetime) -> Participant:
        row = models.Participant(token=token, label=label, created_at=created_at)
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError:
            # Token inserted by a concurrent request after our existence check
            raise ConcurrentModification("create participant", token=token)
        return _to_participant(row)

    def get(self, participant_id: int) -> Optional[Participant]:
        row = self.db.get(models.Participant, participant_id)
        return _to_participant(row) if row is not None else None

    def get_by_token(self, token: str) -> Optional[Participant]:
        row = self.db.execute(
            select(models.Participant).where(models.Participant.token == token)
        ).scalar_one_or_none()
        return _to_participant(row) if row is not None else None

    def list(self) -> List[Participant]:
        rows = self.db.execute(
            select(models.Participant).order_by(models.Participant.id)
        ).scalars()
        return [_to_participant(row) for row in rows]


class SqlSessionRepository(SessionRepository):
    def __init__(self, db: Session):
        self.db = db

    def get(self, participant_id: int) -> Optional[EvaluationSession]:
        row = self.db.get(models.EvaluationSession, participant_id, populate_existing=True)
        return _to_session(row) if row is not None else None

    def add(self, session: EvaluationSession) -> EvaluationSession:
        row = models.EvaluationSession(
            participant_id=session.participant_id,
            snippet_ids=list(session.snippet_ids),
            current_position=session.current_position,
            completed=session.completed,
            created_at=session.created_at or utc_now(),
        )
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise DuplicateKeyError(
                f"session for participant {session.participant_id}"
            ) from exc
        return _to_session(row)

    def advance(self, session: EvaluationSession) -> EvaluationSession:
        updated = session.advanced()
        result = self.db.execute(
            update(models.EvaluationSession)
            .where(
                models.EvaluationSession.participant_id == session.participant_id,
                models.EvaluationSession.current_position == session.current_position,
            )
            .values(
                current_position=updated.current_position,
                completed=updated.completed,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConcurrentModification(
                "advance session", participant_id=session.participant_id
            )
        return updated


class SqlResponseRepository(ResponseRepository):
    def __init__(self, db: Session):
        self.db = db

    def add(
        self,
        participant_id: int,
        snippet_id: int,
        selection: Selection,
        created_at: datetime,
    ) -> Response:
        row = models.Response(
            participant_id=participant_id,
            snippet_id=snippet_id,
            selection=selection,
            created_at=created_at,
        )
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise DuplicateKeyError(
                f"response for pair ({participant_id}, {snippet_id})"
            ) from exc
        return _to_response(row)

    def get_for_pair(self, participant_id: int, snippet_id: int) -> Optional[Response]:
        row = self.db.execute(
            select(models.Response).where(
                models.Response.participant_id == participant_id,
                models.Response.snippet_id == snippet_id,
            )
        ).scalar_one_or_none()
        return _to_response(row) if row is not None else None

    def list(
        self,
        participant_id: Optional[int] = None,
        snippet_id: Optional[int] = None,
        selection: Optional[Selection] = None,
        day: Optional[date] = None,
    ) -> List[Response]:
        query = select(models.Response)
        if participant_id is not None:
            query = query.where(models.Response.participant_id == participant_id)
        if snippet_id is not None:
            query = query.where(models.Response.snippet_id == snippet_id)
        if selection is not None:
            query = query.where(models.Response.selection == selection)
        if day is not None:
            start, end = utc_day_bounds(day)
            query = query.where(
                models.Response.created_at >= start, models.Response.created_at < end
            )
        rows = self.db.execute(query.order_by(models.Response.id)).scalars()
        return [_to_response(row) for row in rows]

    def counts_by_snippet(self) -> SelectionCounts:
        # One aggregate statement so every count comes from the same snapshot
        rows = self.db.execute(
            select(
                models.Response.snippet_id,
                models.Response.selection,
                func.count(models.Response.id),
            ).group_by(models.Response.snippet_id, models.Response.selection)
        ).all()
        counts: SelectionCounts = {}
        for snippet_id, selection, count in rows:
            counts.setdefault(snippet_id, {})[Selection(selection)] = count
        return counts

    def delete_on_date(self, day: date) -> int:
        start, end = utc_day_bounds(day)
        result = self.db.execute(
            delete(models.Response)
            .where(models.Response.created_at >= start, models.Response.created_at < end)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_for_snippet(self, snippet_id: int) -> int:
        result = self.db.execute(
            delete(models.Response)
            .where(models.Response.snippet_id == snippet_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class SqlStorage(Storage):
    """Storage bound to one SQLAlchemy Session."""

    def __init__(self, db: Session):
        self.db = db
        self._depth = 0
        self.snippets = SqlSnippetRepository(db)
        self.participants = SqlParticipantRepository(db)
        self.sessions = SqlSessionRepository(db)
        self.responses = SqlResponseRepository(db)

    @contextmanager
    def transaction(self, participant_id: Optional[int] = None) -> Iterator[None]:
        outermost = self._depth == 0
        self._depth += 1
        try:
            if participant_id is not None:
                self._lock_participant(participant_id)
            yield
            if outermost:
                self.db.commit()
        except Exception:
            if outermost:
                self.db.rollback()
            raise
        finally:
            self._depth -= 1

    def _lock_participant(self, participant_id: int) -> None:
        self.db.execute(
            select(models.Participant.id)
            .where(models.Participant.id == participant_id)
            .with_for_update()
        )
