"""
kpi/campaign.py

Per-row campaign efficiency formula.

Expected inputs
---------------
impressions : float
clicks : float
conversions : float
spend : float
revenue : float (only used by :func:`return_on_spend`)

Missing keys count as zero.

Formulas
--------
CTR = clicks / max(impressions, 1)
CPA = spend  / max(conversions, 1)
CPC = spend  / max(clicks, 1)
ROI = revenue / max(spend, 1)

Denominators are floored at 1 rather than producing an undefined value,
so every output is finite. The ratio is understated in magnitude for rows
whose true denominator is zero.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from app.domain.marketing import MarketingRow
from kpi.base import BaseKPIFormula


def _floored(value: float) -> float:
    return max(value, 1.0)


class CampaignEfficiencyFormula(BaseKPIFormula):
    """
    Deterministic CTR / CPA / CPC calculation with a denominator floor of one.
    """

    def calculate(self, inputs: dict[str, Any]) -> dict[str, float]:
        impressions = float(inputs.get("impressions") or 0.0)
        clicks = float(inputs.get("clicks") or 0.0)
        conversions = float(inputs.get("conversions") or 0.0)
        spend = float(inputs.get("spend") or 0.0)

        return {
            "ctr": clicks / _floored(impressions),
            "cpa": spend / _floored(conversions),
            "cpc": spend / _floored(clicks),
        }


_FORMULA = CampaignEfficiencyFormula()


def derive_row_metrics(row: MarketingRow) -> MarketingRow:
    """
    Return a copy of *row* with ``ctr``, ``cpa`` and ``cpc`` filled in.
    """

    derived = _FORMULA.calculate(
        {
            "impressions": row.impressions,
            "clicks": row.clicks,
            "conversions": row.conversions,
            "spend": row.spend,
        }
    )
    return replace(row, **derived)


def return_on_spend(row: MarketingRow) -> float:
    """Revenue per unit of spend, floored the same way as the other ratios."""
    return row.revenue / _floored(row.spend)
