"""
app/repositories package marker.
"""

from app.repositories.dataset_store import DatasetStore
from app.repositories.insight_job_store import InsightJobStore

__all__ = [
    "DatasetStore",
    "InsightJobStore",
]
