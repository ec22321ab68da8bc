"""
Pydantic schemas for statistics endpoints.
"""
from pydantic import BaseModel, Field
from typing import List


class SelectionStatsResponse(BaseModel):
    """Counts and rounded percentages per selection."""

    total: int = Field(..., description="Total number of responses")
    cough_count: int
    throat_clear_count: int
    other_count: int
    cough_pct: int = Field(..., description="Cough percentage, rounded half up")
    throat_clear_pct: int = Field(..., description="Throat-clear percentage, rounded half up")
    other_pct: int = Field(..., description="Other percentage, rounded half up")

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class SnippetStatsResponse(SelectionStatsResponse):
    """Statistics for a single snippet."""

    snippet_id: int = Field(..., description="Snippet ID")
    filename: str
    original_name: str


class StatsSummaryResponse(BaseModel):
    """Per-snippet and overall statistics."""

    snippets: List[SnippetStatsResponse] = Field(..., description="One entry per snippet")
    overall: SelectionStatsResponse = Field(
        ..., description="Totals across all responses, including deleted snippets"
    )

    class Config:
        """Pydantic configuration."""

        from_attributes = True
