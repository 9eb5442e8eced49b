"""
app/domain/marketing.py

Domain models for uploaded campaign data and its source registry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

NUMERIC_FIELDS: tuple[str, ...] = (
    "impressions",
    "clicks",
    "conversions",
    "spend",
    "revenue",
    "leads",
    "orders",
)
"""Header names coerced to float; every other header is kept as text."""

TEXT_FIELDS: tuple[str, ...] = ("campaign_name", "ad_copy")
"""Text headers promoted to typed attributes on MarketingRow."""

DERIVED_FIELDS: tuple[str, ...] = ("ctr", "cpa", "cpc")
"""Per-row ratios filled in by the campaign efficiency formula."""


class FileStatus(str, Enum):
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class MarketingRow:
    """
    One parsed campaign row.

    Text attributes are ``None`` when the header was absent and ``""`` when
    the header was present but the line had no value for it. Unrecognised
    headers land in ``extra_fields``. ``source_file_id`` tags the upload the
    row came from and never leaves the process.
    """

    campaign_name: str | None = None
    ad_copy: str | None = None
    impressions: float = 0.0
    clicks: float = 0.0
    conversions: float = 0.0
    spend: float = 0.0
    revenue: float = 0.0
    leads: float = 0.0
    orders: float = 0.0
    ctr: float = 0.0
    cpa: float = 0.0
    cpc: float = 0.0
    extra_fields: dict[str, str] = field(default_factory=dict)
    source_file_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """
        Flatten into the open-ended field mapping shown to users and the model.
        """

        payload: dict[str, Any] = {}
        for name in TEXT_FIELDS:
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        payload.update(self.extra_fields)
        for name in NUMERIC_FIELDS + DERIVED_FIELDS:
            payload[name] = getattr(self, name)
        return payload


@dataclass(frozen=True)
class UploadMetadata:
    """
    Client-declared attributes of one uploaded file.
    """

    name: str
    size: int
    content_type: str


@dataclass(frozen=True)
class FileRecord:
    """
    Registry entry for one uploaded source.
    """

    id: str
    name: str
    size: int
    content_type: str
    uploaded_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))
    row_count: int = 0
    status: FileStatus = FileStatus.PROCESSING
    error_message: str | None = None
