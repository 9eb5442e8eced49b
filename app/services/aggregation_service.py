"""
app/services/aggregation_service.py

Whole-dataset aggregation for the dashboard.

Reduces the current campaign rows into totals and global ratios. Nothing is
cached: callers pass the current snapshot and get a fresh result, so the
stats always reflect the latest uploads and removals.

Formulas
--------
Global CTR (%) = total_clicks / total_impressions * 100
Global CPA     = total_spend / max(total_conversions, 1)

An empty dataset yields exactly zero for every total and ratio. A non-empty
dataset whose impressions sum to zero reports a global CTR of 0.0. A total
or ratio that overflows to a non-finite value is reported as 0.0.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from app.domain.marketing import MarketingRow

CHART_SPEND_REVENUE_ROWS = 15
CHART_CPA_TREND_ROWS = 20
PREVIEW_ROWS = 10


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


@dataclass(frozen=True)
class AggregateStats:
    """
    Derived snapshot of the dataset; never persisted.
    """

    row_count: int = 0
    total_impressions: float = 0.0
    total_clicks: float = 0.0
    total_conversions: float = 0.0
    total_spend: float = 0.0
    total_revenue: float = 0.0
    global_ctr: float = 0.0
    """Click-through rate in percent."""
    global_cpa: float = 0.0


class AggregationService:
    """
    Stateless reducer from campaign rows to dashboard figures.
    """

    def aggregate(self, rows: Sequence[MarketingRow]) -> AggregateStats:
        if not rows:
            return AggregateStats()

        impressions = clicks = conversions = spend = revenue = 0.0
        for row in rows:
            impressions += row.impressions or 0.0
            clicks += row.clicks or 0.0
            conversions += row.conversions or 0.0
            spend += row.spend or 0.0
            revenue += row.revenue or 0.0

        impressions, clicks, conversions, spend, revenue = (
            _finite(total) for total in (impressions, clicks, conversions, spend, revenue)
        )
        global_ctr = (clicks / impressions) * 100 if impressions else 0.0
        global_cpa = spend / max(conversions, 1.0)

        return AggregateStats(
            row_count=len(rows),
            total_impressions=impressions,
            total_clicks=clicks,
            total_conversions=conversions,
            total_spend=spend,
            total_revenue=revenue,
            global_ctr=_finite(global_ctr),
            global_cpa=_finite(global_cpa),
        )

    def spend_revenue_series(
        self,
        rows: Sequence[MarketingRow],
        limit: int = CHART_SPEND_REVENUE_ROWS,
    ) -> list[dict[str, Any]]:
        """Spend and revenue per row for the leading rows, in dataset order."""
        return [
            {
                "campaign_name": row.campaign_name or "N/A",
                "spend": row.spend,
                "revenue": row.revenue,
            }
            for row in rows[:limit]
        ]

    def cpa_trend_series(
        self,
        rows: Sequence[MarketingRow],
        limit: int = CHART_CPA_TREND_ROWS,
    ) -> list[dict[str, Any]]:
        return [
            {"campaign_name": row.campaign_name or "N/A", "cpa": row.cpa}
            for row in rows[:limit]
        ]
