"""
Snippet store: metadata for uploaded audio snippets.

The upload handler validates files before they get here; the store trusts
its input and only logs a warning when a duration falls outside the
accepted window.
"""
import logging
from typing import List, Optional

from cough_survey.core.config import settings
from cough_survey.core.datetime_utils import utc_now
from cough_survey.core.entities import Snippet, SnippetMeta
from cough_survey.core.exceptions import SnippetNotFound
from cough_survey.storage.base import Storage

logger = logging.getLogger(__name__)


class SnippetStore:
    def __init__(
        self,
        storage: Storage,
        cascade_delete: Optional[bool] = None,
    ):
        """
        Args:
            storage: Storage backend
            cascade_delete: Delete a snippet's responses along with it.
                Defaults to settings.SNIPPET_DELETE_CASCADE.
        """
        self.storage = storage
        self.cascade_delete = (
            settings.SNIPPET_DELETE_CASCADE if cascade_delete is None else cascade_delete
        )

    def create(self, meta: SnippetMeta) -> Snippet:
        if not (
            settings.SNIPPET_MIN_DURATION_MS
            <= meta.duration_ms
            <= settings.SNIPPET_MAX_DURATION_MS
        ):
            logger.warning(
                f"Snippet {meta.original_name!r} has duration {meta.duration_ms}ms "
                f"outside [{settings.SNIPPET_MIN_DURATION_MS}, "
                f"{settings.SNIPPET_MAX_DURATION_MS}]"
            )
        with self.storage.transaction():
            snippet = self.storage.snippets.add(meta, uploaded_at=utc_now())
        logger.info(f"Created snippet {snippet.id} ({snippet.original_name})")
        return snippet

    def get_by_id(self, snippet_id: int) -> Snippet:
        """
        Raises:
            SnippetNotFound: If no snippet has this id
        """
        snippet = self.storage.snippets.get(snippet_id)
        if snippet is None:
            raise SnippetNotFound(snippet_id)
        return snippet

    def list(self) -> List[Snippet]:
        """All snippets, most recently uploaded first."""
        return self.storage.snippets.list()

    def count(self) -> int:
        return self.storage.snippets.count()

    def ids(self) -> List[int]:
        return self.storage.snippets.ids()

    def delete(self, snippet_id: int) -> None:
        """
        Delete a snippet.

        Responses referencing the snippet are kept (orphaned) unless cascade
        deletion is enabled. Sessions that were assigned the snippet keep the
        reference and report it as dangling when they reach it.

        Raises:
            SnippetNotFound: If no snippet has this id
        """
        with self.storage.transaction():
            if not self.storage.snippets.delete(snippet_id):
                raise SnippetNotFound(snippet_id)
            removed = (
                self.storage.responses.delete_for_snippet(snippet_id)
                if self.cascade_delete
                else 0
            )
        logger.info(
            f"Deleted snippet {snippet_id}"
            + (f" and {removed} responses" if self.cascade_delete else "")
        )
