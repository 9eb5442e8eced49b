from __future__ import annotations

import math
from dataclasses import astuple

import pytest

from app.domain.marketing import MarketingRow
from app.services.aggregation_service import AggregateStats, AggregationService


@pytest.fixture()
def svc() -> AggregationService:
    return AggregationService()


class TestAggregate:
    def test_empty_dataset_is_all_zero(self, svc: AggregationService) -> None:
        assert svc.aggregate([]) == AggregateStats()

    def test_totals_and_global_ratios(self, svc: AggregationService) -> None:
        rows = [
            MarketingRow(impressions=1000, clicks=50, conversions=2, spend=200, revenue=600),
            MarketingRow(impressions=3000, clicks=30, conversions=3, spend=300, revenue=100),
        ]

        stats = svc.aggregate(rows)

        assert stats.row_count == 2
        assert stats.total_impressions == 4000
        assert stats.total_clicks == 80
        assert stats.total_spend == 500
        assert stats.total_revenue == 700
        assert stats.global_ctr == pytest.approx(2.0)
        assert stats.global_cpa == pytest.approx(100.0)

    def test_zero_impressions_gives_zero_ctr(self, svc: AggregationService) -> None:
        stats = svc.aggregate([MarketingRow(clicks=5, spend=10)])

        assert stats.global_ctr == 0.0
        assert stats.global_cpa == pytest.approx(10.0)

    def test_global_ctr_is_not_mean_of_row_ctrs(self, svc: AggregationService) -> None:
        rows = [
            MarketingRow(impressions=100, clicks=50),
            MarketingRow(impressions=900, clicks=0),
        ]

        assert svc.aggregate(rows).global_ctr == pytest.approx(5.0)

    def test_overflowing_totals_stay_finite(self, svc: AggregationService) -> None:
        rows = [
            MarketingRow(impressions=1e308, clicks=1e308, spend=1e308),
            MarketingRow(impressions=1e308, clicks=1e308, spend=1e308),
        ]

        stats = svc.aggregate(rows)

        assert all(math.isfinite(value) for value in astuple(stats))
        assert stats.row_count == 2
        assert stats.total_impressions == 0.0
        assert stats.global_ctr == 0.0
        assert stats.global_cpa == 0.0

    def test_overflowing_ratio_stays_finite(self, svc: AggregationService) -> None:
        stats = svc.aggregate([MarketingRow(impressions=1e-300, clicks=1e300)])

        assert stats.total_clicks == 1e300
        assert stats.global_ctr == 0.0


class TestChartSeries:
    def test_spend_revenue_series_takes_leading_rows(self, svc: AggregationService) -> None:
        rows = [MarketingRow(campaign_name=f"c{i}", spend=i, revenue=2 * i) for i in range(20)]

        series = svc.spend_revenue_series(rows)

        assert len(series) == 15
        assert series[0] == {"campaign_name": "c0", "spend": 0, "revenue": 0}
        assert series[-1]["campaign_name"] == "c14"

    def test_cpa_trend_labels_missing_names(self, svc: AggregationService) -> None:
        series = svc.cpa_trend_series([MarketingRow(cpa=12.5)])

        assert series == [{"campaign_name": "N/A", "cpa": 12.5}]
