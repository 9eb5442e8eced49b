"""
app/api/routers/dataset.py

Read-only dataset endpoints: aggregate stats, chart series, and row paging.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_aggregation_service
from app.schemas.dataset import AggregateStatsResponse, ChartSeriesResponse, DatasetRowsResponse
from app.services.aggregation_service import AggregationService
from app.services.dataset_ingestion_service import (
    DatasetIngestionService,
    get_dataset_ingestion_service,
)

router = APIRouter(prefix="/dataset", tags=["dataset"])


@router.get("/stats", response_model=AggregateStatsResponse)
def get_stats(
    ingestion_service: DatasetIngestionService = Depends(get_dataset_ingestion_service),
    aggregation_service: AggregationService = Depends(get_aggregation_service),
) -> AggregateStatsResponse:
    """
    Recompute totals and global ratios over the current dataset.
    """

    stats = aggregation_service.aggregate(ingestion_service.rows())
    return AggregateStatsResponse(
        row_count=stats.row_count,
        total_impressions=stats.total_impressions,
        total_clicks=stats.total_clicks,
        total_conversions=stats.total_conversions,
        total_spend=stats.total_spend,
        total_revenue=stats.total_revenue,
        global_ctr=stats.global_ctr,
        global_cpa=stats.global_cpa,
    )


@router.get("/charts", response_model=ChartSeriesResponse)
def get_chart_series(
    ingestion_service: DatasetIngestionService = Depends(get_dataset_ingestion_service),
    aggregation_service: AggregationService = Depends(get_aggregation_service),
) -> ChartSeriesResponse:
    rows = ingestion_service.rows()
    return ChartSeriesResponse(
        spend_revenue=aggregation_service.spend_revenue_series(rows),
        cpa_trend=aggregation_service.cpa_trend_series(rows),
    )


@router.get("/rows", response_model=DatasetRowsResponse)
def list_rows(
    limit: int = Query(default=10, ge=1, le=1000, description="Max rows returned"),
    offset: int = Query(default=0, ge=0, description="Rows skipped from the start"),
    ingestion_service: DatasetIngestionService = Depends(get_dataset_ingestion_service),
) -> DatasetRowsResponse:
    rows = ingestion_service.rows()
    return DatasetRowsResponse(
        total=len(rows),
        offset=offset,
        rows=[row.to_payload() for row in rows[offset : offset + limit]],
    )
