"""
app/services/dataset_ingestion_service.py

Service layer for campaign CSV ingestion and the upload registry.

An upload goes through two steps:

    1. register_upload() creates a FileRecord in ``processing`` status
       before any content has been read.
    2. ingest_text() / ingest_bytes() parses every line, derives per-row
       ratios, appends the rows to the shared dataset and marks the record
       ``ready`` (or ``error``).

Parsing runs outside the store lock so concurrent uploads only serialize on
the final append. Removing a file drops its registry entry only; removing
the last registered file resets the whole dataset. Rows from a removed file
stay in the dataset while any other file is still registered.
"""

from __future__ import annotations

import logging
import secrets
import string
from functools import lru_cache

from app.config import get_csv_ingestion_settings
from app.domain.marketing import FileRecord, MarketingRow, UploadMetadata
from app.logging_utils import log_event
from app.parsers.csv_row_parser import CSVRowParser
from app.repositories.dataset_store import DatasetStore

logger = logging.getLogger(__name__)

_FILE_ID_ALPHABET = string.digits + string.ascii_lowercase
_FILE_ID_LENGTH = 9


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class IngestionError(RuntimeError):
    """
    Base class for ingestion failures surfaced to callers.
    """


class UploadTooLargeError(IngestionError):
    """
    Raised when an upload exceeds the configured byte limit.
    """


class FileNotRegisteredError(IngestionError):
    """
    Raised when a file id does not match any registered upload.
    """


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class DatasetIngestionService:
    """
    Coordinates parsing, derivation, and registry bookkeeping for uploads.
    """

    def __init__(
        self,
        *,
        store: DatasetStore | None = None,
        parser: CSVRowParser | None = None,
        max_upload_bytes: int | None = None,
        log_ingestion_events: bool = True,
    ) -> None:
        self._store = store or DatasetStore()
        self._parser = parser or CSVRowParser()
        self._max_upload_bytes = max_upload_bytes
        self._log_ingestion_events = log_ingestion_events

    @property
    def store(self) -> DatasetStore:
        return self._store

    def register_upload(self, metadata: UploadMetadata) -> FileRecord:
        """
        Create a ``processing`` record and put it at the front of the registry.

        Raises UploadTooLargeError when a byte limit is configured and the
        declared size exceeds it.
        """

        if self._max_upload_bytes is not None and metadata.size > self._max_upload_bytes:
            raise UploadTooLargeError(
                f"Upload '{metadata.name}' is {metadata.size} bytes; "
                f"the limit is {self._max_upload_bytes} bytes."
            )

        record = FileRecord(
            id=self._new_file_id(),
            name=metadata.name,
            size=metadata.size,
            content_type=metadata.content_type,
        )
        self._store.add_file(record)
        self._log("upload_registered", file_id=record.id, name=record.name, size=record.size)
        return record

    def ingest_text(self, file_id: str, raw_text: str) -> FileRecord | None:
        """
        Parse *raw_text* and append its rows after every previously ingested row.

        Returns the updated record, or ``None`` if *file_id* was removed
        while parsing; the rows are appended either way.
        """

        rows = self._parser.parse_text(raw_text, source_file_id=file_id)
        record = self._store.commit_rows(file_id=file_id, rows=rows)
        if record is None:
            logger.warning(
                "Rows appended for unregistered upload file_id=%s rows=%d",
                file_id,
                len(rows),
            )
        self._log("upload_ingested", file_id=file_id, row_count=len(rows), registered=record is not None)
        return record

    def ingest_bytes(self, file_id: str, raw_bytes: bytes) -> FileRecord | None:
        """
        Decode an upload body as UTF-8 and ingest it.

        A body that is not valid UTF-8 marks the record ``error`` and leaves
        the dataset untouched.
        """

        try:
            raw_text = raw_bytes.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            return self.mark_failed(file_id, f"CSV must be UTF-8 encoded: {exc.reason}")
        return self.ingest_text(file_id, raw_text)

    def mark_failed(self, file_id: str, error_message: str) -> FileRecord | None:
        logger.warning("Upload failed file_id=%s error=%s", file_id, error_message)
        record = self._store.mark_failed(file_id=file_id, error_message=error_message)
        self._log("upload_failed", file_id=file_id, error=error_message)
        return record

    def remove_file(self, file_id: str) -> FileRecord:
        """
        Remove one upload from the registry.

        Raises FileNotRegisteredError when *file_id* is unknown.
        """

        record = self._store.remove_file(file_id)
        if record is None:
            raise FileNotRegisteredError(f"Upload not found: {file_id}")
        remaining = len(self._store.list_files())
        self._log(
            "upload_removed",
            file_id=file_id,
            remaining_files=remaining,
            dataset_reset=remaining == 0,
        )
        return record

    def get_file(self, file_id: str) -> FileRecord | None:
        return self._store.get_file(file_id)

    def list_files(self) -> list[FileRecord]:
        return self._store.list_files()

    def rows(self) -> tuple[MarketingRow, ...]:
        return self._store.rows()

    def reset(self) -> None:
        self._store.reset()
        self._log("dataset_reset")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _new_file_id(self) -> str:
        while True:
            candidate = "".join(secrets.choice(_FILE_ID_ALPHABET) for _ in range(_FILE_ID_LENGTH))
            if self._store.get_file(candidate) is None:
                return candidate

    def _log(self, event: str, **fields: object) -> None:
        if self._log_ingestion_events:
            log_event(logger, logging.INFO, event, **fields)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_dataset_ingestion_service() -> DatasetIngestionService:
    """
    Build and cache the process-wide ingestion service with env-driven settings.
    """
    settings = get_csv_ingestion_settings()
    return DatasetIngestionService(
        max_upload_bytes=settings.max_upload_bytes,
        log_ingestion_events=settings.log_ingestion_events,
    )
