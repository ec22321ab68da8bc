"""
Response statistics endpoints (admin only).
"""
from fastapi import APIRouter, Depends

from cough_survey.api.v1.deps import get_statistics, verify_admin_token
from cough_survey.core.statistics import StatisticsAggregator
from cough_survey.schemas.stats import (
    SelectionStatsResponse,
    SnippetStatsResponse,
    StatsSummaryResponse,
)

router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.get("", response_model=StatsSummaryResponse)
def get_stats(aggregator: StatisticsAggregator = Depends(get_statistics)):
    """Statistics for every snippet plus totals across all responses."""
    summary = aggregator.summary()
    return StatsSummaryResponse(
        snippets=[SnippetStatsResponse.model_validate(s) for s in summary.snippets],
        overall=SelectionStatsResponse.model_validate(summary.overall),
    )


@router.get("/snippets/{snippet_id}", response_model=SnippetStatsResponse)
def get_snippet_stats(
    snippet_id: int,
    aggregator: StatisticsAggregator = Depends(get_statistics),
):
    return SnippetStatsResponse.model_validate(aggregator.stats_for_snippet(snippet_id))
