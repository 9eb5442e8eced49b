"""
app/schemas package marker.
"""

from app.schemas.dataset import AggregateStatsResponse, ChartSeriesResponse, DatasetRowsResponse
from app.schemas.files import FileRecordListResponse, FileRecordResponse
from app.schemas.insights import (
    InsightJobAcceptedResponse,
    InsightJobListResponse,
    InsightJobStatusResponse,
    PredictionTargetRequest,
    SearchRequest,
)

__all__ = [
    "AggregateStatsResponse",
    "ChartSeriesResponse",
    "DatasetRowsResponse",
    "FileRecordListResponse",
    "FileRecordResponse",
    "InsightJobAcceptedResponse",
    "InsightJobListResponse",
    "InsightJobStatusResponse",
    "PredictionTargetRequest",
    "SearchRequest",
]
