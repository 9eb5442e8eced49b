"""
app/services package marker.
"""

from app.services.aggregation_service import AggregateStats, AggregationService
from app.services.dataset_ingestion_service import (
    DatasetIngestionService,
    FileNotRegisteredError,
    IngestionError,
    UploadTooLargeError,
    get_dataset_ingestion_service,
)
from app.services.insight_service import (
    InsightService,
    InsightUnavailableError,
    PredictionTarget,
    SearchHit,
    get_insight_service,
)

__all__ = [
    "AggregateStats",
    "AggregationService",
    "DatasetIngestionService",
    "FileNotRegisteredError",
    "IngestionError",
    "UploadTooLargeError",
    "get_dataset_ingestion_service",
    "InsightService",
    "InsightUnavailableError",
    "PredictionTarget",
    "SearchHit",
    "get_insight_service",
]
