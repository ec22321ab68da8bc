"""
Tests for the statistics aggregator.
"""
import pytest

from cough_survey.core.entities import Selection
from cough_survey.core.exceptions import SnippetNotFound
from cough_survey.core.statistics import SelectionStats, percentage


class TestPercentage:
    """Tests for round-half-up percentages."""

    @pytest.mark.parametrize(
        "count,total,expected",
        [
            (0, 0, 0),
            (3, 4, 75),
            (1, 4, 25),
            (1, 8, 13),  # 12.5 rounds up
            (1, 3, 33),
            (2, 3, 67),
            (1, 200, 1),  # 0.5 rounds up
            (5, 5, 100),
        ],
    )
    def test_values(self, count, total, expected):
        assert percentage(count, total) == expected

    def test_from_counts_zero(self):
        stats = SelectionStats.from_counts({})
        assert stats.total == 0
        assert (stats.cough_pct, stats.throat_clear_pct, stats.other_pct) == (0, 0, 0)

    def test_from_counts(self):
        stats = SelectionStats.from_counts({Selection.COUGH: 3, Selection.OTHER: 1})
        assert stats.total == 4
        assert (stats.cough_count, stats.throat_clear_count, stats.other_count) == (3, 0, 1)
        assert (stats.cough_pct, stats.throat_clear_pct, stats.other_pct) == (75, 0, 25)


@pytest.fixture
def answer(registry, session_engine, ledger):
    """Have a fresh participant classify a single-snippet session."""

    def _answer(selection: str):
        participant = registry.create()
        session = session_engine.get_or_create_session(participant.id)
        return ledger.record(participant.id, session.snippet_ids[0], selection)

    return _answer


class TestSnippetStats:
    """Tests for per-snippet statistics."""

    def test_snippet_without_responses(self, aggregator, make_snippets):
        snippet = make_snippets(1)[0]

        stats = aggregator.stats_for_snippet(snippet.id)

        assert stats.snippet_id == snippet.id
        assert stats.filename == snippet.filename
        assert stats.original_name == snippet.original_name
        assert stats.total == 0
        assert (stats.cough_pct, stats.throat_clear_pct, stats.other_pct) == (0, 0, 0)

    def test_three_cough_one_other(self, aggregator, make_snippets, answer):
        snippet = make_snippets(1)[0]
        for selection in ["cough", "cough", "cough", "other"]:
            answer(selection)

        stats = aggregator.stats_for_snippet(snippet.id)

        assert stats.total == 4
        assert (stats.cough_pct, stats.throat_clear_pct, stats.other_pct) == (75, 0, 25)

    def test_stats_for_recorded_snippet_after_deletion(
        self, aggregator, snippet_store, make_snippets, answer
    ):
        snippet = make_snippets(1)[0]
        result = answer("cough")
        snippet_store.delete(snippet.id)

        stats = aggregator.stats_for(result.snippet)

        assert result.snippet == snippet
        assert stats.snippet_id == snippet.id
        assert stats.total == 1
        assert stats.cough_pct == 100

    def test_missing_snippet(self, aggregator):
        with pytest.raises(SnippetNotFound):
            aggregator.stats_for_snippet(404)


class TestAggregateStats:
    """Tests for all-snippet and overall statistics."""

    def test_one_entry_per_snippet(self, aggregator, make_snippets):
        snippets = make_snippets(3)
        all_stats = aggregator.stats_for_all_snippets()
        assert sorted(s.snippet_id for s in all_stats) == sorted(s.id for s in snippets)

    def test_overall_empty(self, aggregator):
        overall = aggregator.overall_stats()
        assert overall.total == 0
        assert overall.cough_pct == 0

    def test_orphaned_responses(self, aggregator, snippet_store, make_snippets, answer):
        """Orphans count overall but have no per-snippet entry."""
        snippet = make_snippets(1)[0]
        answer("throat-clear")
        answer("cough")
        snippet_store.delete(snippet.id)

        assert aggregator.stats_for_all_snippets() == []
        overall = aggregator.overall_stats()
        assert overall.total == 2
        assert (overall.cough_pct, overall.throat_clear_pct, overall.other_pct) == (50, 50, 0)

    def test_summary_matches_individual_calls(self, aggregator, make_snippets, answer):
        make_snippets(1)
        answer("cough")
        answer("other")

        summary = aggregator.summary()

        assert summary.snippets == aggregator.stats_for_all_snippets()
        assert summary.overall == aggregator.overall_stats()
