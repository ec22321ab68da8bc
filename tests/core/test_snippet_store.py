"""
Tests for the snippet store.
"""
import pytest

from cough_survey.core.entities import Selection, SnippetMeta
from cough_survey.core.exceptions import SnippetNotFound
from cough_survey.core.snippets import SnippetStore


class TestSnippetCreate:
    """Tests for SnippetStore.create."""

    def test_create_assigns_id_and_timestamp(self, snippet_store):
        meta = SnippetMeta("a.wav", "A.wav", "audio/wav", 3000)
        snippet = snippet_store.create(meta)

        assert snippet.id is not None
        assert snippet.filename == "a.wav"
        assert snippet.original_name == "A.wav"
        assert snippet.duration_ms == 3000
        assert snippet.uploaded_at.tzinfo is not None

    def test_out_of_range_duration_is_still_stored(self, snippet_store):
        """The upload handler validates; the store only warns."""
        snippet = snippet_store.create(SnippetMeta("long.mp3", "long.mp3", "audio/mpeg", 15000))
        assert snippet_store.get_by_id(snippet.id).duration_ms == 15000


class TestSnippetQueries:
    """Tests for lookup and listing."""

    def test_get_missing_snippet(self, snippet_store):
        with pytest.raises(SnippetNotFound) as exc_info:
            snippet_store.get_by_id(999)
        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "snippet_not_found"

    def test_list_newest_first(self, snippet_store, make_snippets):
        created = make_snippets(3)
        listed = snippet_store.list()
        assert [s.id for s in listed] == [s.id for s in reversed(created)]

    def test_count_and_ids(self, snippet_store, make_snippets):
        created = make_snippets(4)
        assert snippet_store.count() == 4
        assert sorted(snippet_store.ids()) == sorted(s.id for s in created)

    def test_empty_store(self, snippet_store):
        assert snippet_store.list() == []
        assert snippet_store.count() == 0


class TestSnippetDelete:
    """Tests for deletion and the orphan policy."""

    def test_delete_removes_snippet(self, snippet_store, make_snippets):
        snippet = make_snippets(1)[0]
        snippet_store.delete(snippet.id)
        with pytest.raises(SnippetNotFound):
            snippet_store.get_by_id(snippet.id)

    def test_delete_missing_snippet(self, snippet_store):
        with pytest.raises(SnippetNotFound):
            snippet_store.delete(42)

    def test_delete_keeps_responses_by_default(
        self, storage, snippet_store, registry, session_engine, ledger, make_snippets
    ):
        snippet = make_snippets(1)[0]
        participant = registry.create()
        session_engine.get_or_create_session(participant.id)
        ledger.record(participant.id, snippet.id, "cough")

        snippet_store.delete(snippet.id)

        orphans = ledger.list_by_snippet(snippet.id)
        assert len(orphans) == 1
        assert orphans[0].selection == Selection.COUGH

    def test_cascade_delete_removes_responses(
        self, storage, registry, session_engine, ledger, make_snippets
    ):
        snippet = make_snippets(1)[0]
        participant = registry.create()
        session_engine.get_or_create_session(participant.id)
        ledger.record(participant.id, snippet.id, "other")

        SnippetStore(storage, cascade_delete=True).delete(snippet.id)

        assert ledger.list_by_snippet(snippet.id) == []
