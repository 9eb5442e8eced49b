"""
tests/test_dataset_ingestion_service.py

Pytest tests for DatasetIngestionService and the in-memory DatasetStore.

Coverage
--------
- Registration order and processing status
- Ready status and row counts after ingestion
- Concurrent ingestion of several files
- Removal semantics (last file resets, partial removal keeps rows)
- Ingestion for a file removed mid-parse
- Encoding failures and size limits
"""

from __future__ import annotations

import threading

import pytest

from app.domain.marketing import FileStatus, UploadMetadata
from app.services.aggregation_service import AggregationService
from app.services.dataset_ingestion_service import (
    DatasetIngestionService,
    FileNotRegisteredError,
    UploadTooLargeError,
)

HEADER = "campaign_name,impressions,clicks,conversions,spend,revenue"


def _csv(prefix: str, count: int, impressions: int = 100) -> str:
    lines = [HEADER]
    lines.extend(f"{prefix}-{i},{impressions},10,1,50,120" for i in range(count))
    return "\n".join(lines)


def _register(service: DatasetIngestionService, name: str, size: int = 10):
    return service.register_upload(UploadMetadata(name=name, size=size, content_type="text/csv"))


@pytest.fixture()
def service() -> DatasetIngestionService:
    return DatasetIngestionService(log_ingestion_events=False)


class TestRegistration:
    def test_new_record_is_processing(self, service: DatasetIngestionService) -> None:
        record = _register(service, "a.csv")

        assert record.status is FileStatus.PROCESSING
        assert record.row_count == 0
        assert len(record.id) == 9
        assert record.id.isalnum()

    def test_most_recent_upload_listed_first(self, service: DatasetIngestionService) -> None:
        first = _register(service, "first.csv")
        second = _register(service, "second.csv")

        assert [record.id for record in service.list_files()] == [second.id, first.id]

    def test_oversized_upload_rejected(self) -> None:
        service = DatasetIngestionService(max_upload_bytes=5, log_ingestion_events=False)

        with pytest.raises(UploadTooLargeError):
            _register(service, "big.csv", size=6)
        assert service.list_files() == []


class TestIngestion:
    def test_ingest_marks_ready_with_row_count(self, service: DatasetIngestionService) -> None:
        record = _register(service, "a.csv")

        updated = service.ingest_text(record.id, _csv("a", 3))

        assert updated is not None
        assert updated.status is FileStatus.READY
        assert updated.row_count == 3
        assert len(service.rows()) == 3

    def test_header_only_upload_is_ready_with_zero_rows(self, service: DatasetIngestionService) -> None:
        record = _register(service, "empty.csv")

        updated = service.ingest_text(record.id, HEADER)

        assert updated.status is FileStatus.READY
        assert updated.row_count == 0
        assert service.rows() == ()

    def test_rows_append_in_completion_order(self, service: DatasetIngestionService) -> None:
        first = _register(service, "a.csv")
        second = _register(service, "b.csv")

        service.ingest_text(second.id, _csv("b", 2))
        service.ingest_text(first.id, _csv("a", 1))

        assert [row.campaign_name for row in service.rows()] == ["b-0", "b-1", "a-0"]

    def test_concurrent_ingestion_keeps_every_row(self, service: DatasetIngestionService) -> None:
        first = _register(service, "ten.csv")
        second = _register(service, "fifteen.csv")
        barrier = threading.Barrier(2)

        def ingest(file_id: str, text: str) -> None:
            barrier.wait()
            service.ingest_text(file_id, text)

        threads = [
            threading.Thread(target=ingest, args=(first.id, _csv("a", 10, impressions=100))),
            threading.Thread(target=ingest, args=(second.id, _csv("b", 15, impressions=200))),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        rows = service.rows()
        assert len(rows) == 25
        assert AggregationService().aggregate(rows).total_impressions == 10 * 100 + 15 * 200
        assert {record.row_count for record in service.list_files()} == {10, 15}

    def test_invalid_utf8_marks_error(self, service: DatasetIngestionService) -> None:
        record = _register(service, "latin1.csv")

        updated = service.ingest_bytes(record.id, b"campaign_name\n\xff\xfe")

        assert updated.status is FileStatus.ERROR
        assert "UTF-8" in updated.error_message
        assert service.rows() == ()

    def test_utf8_bom_is_ignored(self, service: DatasetIngestionService) -> None:
        record = _register(service, "bom.csv")

        service.ingest_bytes(record.id, ("\ufeff" + _csv("x", 1)).encode("utf-8"))

        assert service.rows()[0].campaign_name == "x-0"

    def test_removed_file_still_appends_rows(self, service: DatasetIngestionService) -> None:
        keep = _register(service, "keep.csv")
        gone = _register(service, "gone.csv")
        service.remove_file(gone.id)

        result = service.ingest_text(gone.id, _csv("late", 2))

        assert result is None
        assert len(service.rows()) == 2
        assert [record.id for record in service.list_files()] == [keep.id]


class TestRemoval:
    def test_removing_last_file_resets_dataset(self, service: DatasetIngestionService) -> None:
        record = _register(service, "a.csv")
        service.ingest_text(record.id, _csv("a", 4))

        service.remove_file(record.id)

        assert service.list_files() == []
        assert service.rows() == ()
        assert AggregationService().aggregate(service.rows()).row_count == 0

    def test_removing_one_of_several_keeps_rows(self, service: DatasetIngestionService) -> None:
        first = _register(service, "a.csv")
        second = _register(service, "b.csv")
        service.ingest_text(first.id, _csv("a", 2))
        service.ingest_text(second.id, _csv("b", 3))

        service.remove_file(first.id)

        assert [record.id for record in service.list_files()] == [second.id]
        assert len(service.rows()) == 5

    def test_unknown_file_raises(self, service: DatasetIngestionService) -> None:
        with pytest.raises(FileNotRegisteredError):
            service.remove_file("missing00")
