"""
app/domain package marker.
"""

from app.domain.insight_job import InsightJob, InsightJobStatus
from app.domain.marketing import (
    DERIVED_FIELDS,
    NUMERIC_FIELDS,
    TEXT_FIELDS,
    FileRecord,
    FileStatus,
    MarketingRow,
    UploadMetadata,
)

__all__ = [
    "InsightJob",
    "InsightJobStatus",
    "DERIVED_FIELDS",
    "NUMERIC_FIELDS",
    "TEXT_FIELDS",
    "FileRecord",
    "FileStatus",
    "MarketingRow",
    "UploadMetadata",
]
