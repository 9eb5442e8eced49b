"""
app/api/routers package marker.
"""

from app.api.routers.dataset import router as dataset_router
from app.api.routers.files import router as files_router
from app.api.routers.insights import router as insights_router

__all__ = [
    "dataset_router",
    "files_router",
    "insights_router",
]
