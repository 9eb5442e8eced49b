"""
app/services/dashboard_state.py

Per-session bookkeeping for the Streamlit dashboard.

``UploadLedger`` remembers which uploaded file contents have already been
ingested, so reruns of the script never register the same upload twice.
Removing a file forgets its content and bumps ``uploader_epoch``; the
dashboard keys its uploader widget on the epoch, which drops the widget's
retained files instead of ingesting them again.

``OperationState`` tracks one delegated operation as idle, running,
completed or failed.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any


def content_digest(name: str, data: bytes) -> str:
    return hashlib.sha256(name.encode("utf-8") + b"\x00" + data).hexdigest()


class UploadLedger:
    def __init__(self) -> None:
        self._file_ids: dict[str, str] = {}
        self.uploader_epoch = 0

    @property
    def uploader_key(self) -> str:
        return f"uploader-{self.uploader_epoch}"

    def is_ingested(self, digest: str) -> bool:
        return digest in self._file_ids

    def record(self, digest: str, file_id: str) -> None:
        self._file_ids[digest] = file_id

    def forget(self, file_id: str) -> None:
        """
        Drop the content registered under *file_id* and reset the uploader.
        """

        self._file_ids = {
            digest: known_id for digest, known_id in self._file_ids.items() if known_id != file_id
        }
        self.uploader_epoch += 1


@dataclass
class OperationState:
    status: str = "idle"
    result: Any = None
    error: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def is_failed(self) -> bool:
        return self.status == "failed"

    def start(self) -> None:
        self.status = "running"
        self.error = None

    def succeed(self, result: Any) -> None:
        self.status = "completed"
        self.result = result
        self.error = None

    def fail(self, error: str) -> None:
        self.status = "failed"
        self.result = None
        self.error = error
