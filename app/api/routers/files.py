"""
app/api/routers/files.py

Upload registry endpoints.

Uploads are registered synchronously in ``processing`` status and parsed in
a background task; poll ``GET /files/{file_id}`` for ``ready`` or ``error``.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response, UploadFile, status

from app.api.dependencies import get_csv_upload
from app.domain.marketing import FileRecord, UploadMetadata
from app.schemas.files import FileRecordListResponse, FileRecordResponse
from app.services.dataset_ingestion_service import (
    DatasetIngestionService,
    FileNotRegisteredError,
    UploadTooLargeError,
    get_dataset_ingestion_service,
)
from app.services.task_executor import FastAPIBackgroundTaskExecutor

router = APIRouter(tags=["files"])


@router.post(
    "/files",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=FileRecordResponse,
)
def upload_file(
    background_tasks: BackgroundTasks,
    file: UploadFile = Depends(get_csv_upload),
    ingestion_service: DatasetIngestionService = Depends(get_dataset_ingestion_service),
) -> FileRecordResponse:
    """
    Register one CSV upload and parse it in the background.
    """

    try:
        raw_bytes = file.file.read()
    finally:
        file.file.close()

    metadata = UploadMetadata(
        name=file.filename or "upload.csv",
        size=len(raw_bytes),
        content_type=file.content_type or "",
    )
    try:
        record = ingestion_service.register_upload(metadata)
    except UploadTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(exc),
        ) from exc

    FastAPIBackgroundTaskExecutor(background_tasks).submit(
        ingestion_service.ingest_bytes,
        record.id,
        raw_bytes,
    )
    return _to_response(record)


@router.get("/files", response_model=FileRecordListResponse)
def list_files(
    ingestion_service: DatasetIngestionService = Depends(get_dataset_ingestion_service),
) -> FileRecordListResponse:
    """
    List registered uploads, most recent first.
    """

    return FileRecordListResponse(files=[_to_response(record) for record in ingestion_service.list_files()])


@router.get("/files/{file_id}", response_model=FileRecordResponse)
def get_file(
    file_id: str,
    ingestion_service: DatasetIngestionService = Depends(get_dataset_ingestion_service),
) -> FileRecordResponse:
    record = ingestion_service.get_file(file_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Upload not found: {file_id}",
        )
    return _to_response(record)


@router.delete("/files/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_file(
    file_id: str,
    ingestion_service: DatasetIngestionService = Depends(get_dataset_ingestion_service),
) -> Response:
    """
    Remove an upload. Removing the last upload clears every parsed row;
    removing one of several leaves the dataset as it is.
    """

    try:
        ingestion_service.remove_file(file_id)
    except FileNotRegisteredError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _to_response(record: FileRecord) -> FileRecordResponse:
    return FileRecordResponse(
        id=record.id,
        name=record.name,
        size=record.size,
        content_type=record.content_type,
        uploaded_at=record.uploaded_at,
        row_count=record.row_count,
        status=record.status.value,
        error_message=record.error_message,
    )
