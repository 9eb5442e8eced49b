"""
app/repositories/dataset_store.py

In-memory owner of the shared campaign dataset and the upload registry.

Every mutation runs under one lock, so an ingestion task's row append and
its status update land together and never interleave with another task's.
Readers receive tuples/lists copied under the lock.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Iterable

from app.domain.marketing import FileRecord, FileStatus, MarketingRow


class DatasetStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: list[MarketingRow] = []
        self._files: list[FileRecord] = []

    def add_file(self, record: FileRecord) -> FileRecord:
        with self._lock:
            self._files.insert(0, record)
        return record

    def get_file(self, file_id: str) -> FileRecord | None:
        with self._lock:
            return self._find(file_id)

    def list_files(self) -> list[FileRecord]:
        with self._lock:
            return list(self._files)

    def commit_rows(
        self,
        *,
        file_id: str,
        rows: Iterable[MarketingRow],
    ) -> FileRecord | None:
        """
        Append *rows* and mark the owning record ready in one critical section.

        Rows are appended even when the record is no longer registered;
        ``None`` is returned in that case.
        """

        batch = list(rows)
        with self._lock:
            self._rows.extend(batch)
            return self._update(
                file_id,
                status=FileStatus.READY,
                row_count=len(batch),
                error_message=None,
            )

    def mark_failed(self, *, file_id: str, error_message: str) -> FileRecord | None:
        with self._lock:
            return self._update(
                file_id,
                status=FileStatus.ERROR,
                error_message=error_message,
            )

    def remove_file(self, file_id: str) -> FileRecord | None:
        """
        Drop one registry entry. Emptying the registry clears every row.
        """

        with self._lock:
            record = self._find(file_id)
            if record is None:
                return None
            self._files = [item for item in self._files if item.id != file_id]
            if not self._files:
                self._rows.clear()
            return record

    def rows(self) -> tuple[MarketingRow, ...]:
        with self._lock:
            return tuple(self._rows)

    def row_count(self) -> int:
        with self._lock:
            return len(self._rows)

    def reset(self) -> None:
        with self._lock:
            self._rows.clear()
            self._files.clear()

    def _find(self, file_id: str) -> FileRecord | None:
        for record in self._files:
            if record.id == file_id:
                return record
        return None

    def _update(self, file_id: str, **changes: object) -> FileRecord | None:
        for index, record in enumerate(self._files):
            if record.id == file_id:
                updated = replace(record, **changes)
                self._files[index] = updated
                return updated
        return None
