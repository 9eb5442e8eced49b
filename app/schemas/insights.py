"""
app/schemas/insights.py

Request and job-status schemas for delegated insight operations.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)


class PredictionTargetRequest(BaseModel):
    """
    Campaign attributes to predict revenue for; defaults mirror the dashboard form.
    """

    date: str = Field(default_factory=lambda: date.today().isoformat())
    campaign_name: str = ""
    category: str = "search"
    impressions: float = Field(default=100000, ge=0)
    spend: float = Field(default=5000, ge=0)
    clicks: float = Field(default=2500, ge=0)
    leads: float = Field(default=120, ge=0)
    orders: float = Field(default=45, ge=0)


class InsightJobAcceptedResponse(BaseModel):
    job_id: UUID
    task: str
    status: str
    created_at: datetime


class InsightJobStatusResponse(BaseModel):
    job_id: UUID
    task: str
    status: str
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    request_payload: dict[str, Any] | None = None
    result_payload: dict[str, Any] | None = None
    error_message: str | None = None


class InsightJobListResponse(BaseModel):
    jobs: list[InsightJobStatusResponse] = Field(default_factory=list)
