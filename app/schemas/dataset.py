"""
app/schemas/dataset.py

Response schemas for dataset stats and row browsing.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class AggregateStatsResponse(BaseModel):
    """
    Dashboard totals; ``global_ctr`` is a percentage.
    """

    row_count: int = Field(..., ge=0)
    total_impressions: float
    total_clicks: float
    total_conversions: float
    total_spend: float
    total_revenue: float
    global_ctr: float
    global_cpa: float


class DatasetRowsResponse(BaseModel):
    total: int = Field(..., ge=0)
    offset: int = Field(..., ge=0)
    rows: list[dict[str, Any]] = Field(default_factory=list)


class ChartSeriesResponse(BaseModel):
    spend_revenue: list[dict[str, Any]] = Field(default_factory=list)
    cpa_trend: list[dict[str, Any]] = Field(default_factory=list)
