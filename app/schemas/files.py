"""
app/schemas/files.py

Response schemas for upload registry endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class FileRecordResponse(BaseModel):
    """
    API response model for one registered upload.
    """

    id: str
    name: str
    size: int = Field(..., ge=0)
    content_type: str
    uploaded_at: datetime
    row_count: int = Field(..., ge=0)
    status: str
    error_message: str | None = None


class FileRecordListResponse(BaseModel):
    files: list[FileRecordResponse] = Field(default_factory=list)
