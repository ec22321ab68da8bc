"""
Statistics aggregator: selection percentages per snippet and overall.

Everything is recomputed from the ledger on each call. Each computation
reads the ledger once (a single aggregate query or lock acquisition), so
a concurrent record() is either fully counted or not counted at all.

Percentages use round-half-up on count / total * 100 and are all zero when
there are no responses.
"""
from dataclasses import asdict, dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Mapping, Optional

from cough_survey.core.entities import Selection, Snippet
from cough_survey.core.exceptions import SnippetNotFound
from cough_survey.storage.base import Storage


def percentage(count: int, total: int) -> int:
    """round(count / total * 100) with halves rounded up; 0 when total is 0."""
    if total == 0:
        return 0
    exact = Decimal(count * 100) / Decimal(total)
    return int(exact.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class SelectionStats:
    total: int
    cough_count: int
    throat_clear_count: int
    other_count: int
    cough_pct: int
    throat_clear_pct: int
    other_pct: int

    @classmethod
    def from_counts(cls, counts: Mapping[Selection, int]) -> "SelectionStats":
        cough = counts.get(Selection.COUGH, 0)
        throat_clear = counts.get(Selection.THROAT_CLEAR, 0)
        other = counts.get(Selection.OTHER, 0)
        total = cough + throat_clear + other
        return cls(
            total=total,
            cough_count=cough,
            throat_clear_count=throat_clear,
            other_count=other,
            cough_pct=percentage(cough, total),
            throat_clear_pct=percentage(throat_clear, total),
            other_pct=percentage(other, total),
        )


@dataclass(frozen=True)
class SnippetStats(SelectionStats):
    snippet_id: int = 0
    filename: str = ""
    original_name: str = ""

    @classmethod
    def for_snippet(
        cls, snippet: Snippet, counts: Optional[Mapping[Selection, int]]
    ) -> "SnippetStats":
        base = SelectionStats.from_counts(counts or {})
        return cls(
            snippet_id=snippet.id,
            filename=snippet.filename,
            original_name=snippet.original_name,
            **asdict(base),
        )


class StatisticsAggregator:
    def __init__(self, storage: Storage):
        self.storage = storage

    def stats_for_snippet(self, snippet_id: int) -> SnippetStats:
        """
        Raises:
            SnippetNotFound: If no snippet has this id
        """
        snippet = self.storage.snippets.get(snippet_id)
        if snippet is None:
            raise SnippetNotFound(snippet_id)
        return self.stats_for(snippet)

    def stats_for(self, snippet: Snippet) -> SnippetStats:
        """Statistics for a snippet already in hand, even if it was deleted since."""
        counts = self.storage.responses.counts_by_snippet()
        return SnippetStats.for_snippet(snippet, counts.get(snippet.id))

    def stats_for_all_snippets(self) -> List[SnippetStats]:
        """One entry per existing snippet; responses to deleted snippets are skipped."""
        counts = self.storage.responses.counts_by_snippet()
        return [
            SnippetStats.for_snippet(snippet, counts.get(snippet.id))
            for snippet in self.storage.snippets.list()
        ]

    def overall_stats(self) -> SelectionStats:
        """Totals across the entire ledger, including orphaned responses."""
        return self._overall_from(self.storage.responses.counts_by_snippet())

    @staticmethod
    def _overall_from(counts: Mapping[int, Mapping[Selection, int]]) -> SelectionStats:
        totals: Dict[Selection, int] = {selection: 0 for selection in Selection}
        for per_snippet in counts.values():
            for selection, count in per_snippet.items():
                totals[selection] += count
        return SelectionStats.from_counts(totals)

    def summary(self) -> "StatsSummary":
        """Per-snippet and overall statistics computed from one ledger read."""
        counts = self.storage.responses.counts_by_snippet()
        return StatsSummary(
            snippets=[
                SnippetStats.for_snippet(snippet, counts.get(snippet.id))
                for snippet in self.storage.snippets.list()
            ],
            overall=self._overall_from(counts),
        )


@dataclass(frozen=True)
class StatsSummary:
    snippets: List[SnippetStats]
    overall: SelectionStats
