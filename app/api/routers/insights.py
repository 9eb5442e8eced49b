"""
app/api/routers/insights.py

Delegated insight endpoints.

Each POST registers a background job and returns 202 immediately; poll
``GET /insights/jobs/{job_id}`` for ``running``, ``completed`` or ``failed``.
Operations are refused with 409 while no campaign data has been uploaded.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from app.domain.insight_job import InsightJob
from app.schemas.insights import (
    InsightJobAcceptedResponse,
    InsightJobListResponse,
    InsightJobStatusResponse,
    PredictionTargetRequest,
    SearchRequest,
)
from app.services.insight_service import (
    InsightService,
    InsightUnavailableError,
    PredictionTarget,
    get_insight_service,
)
from app.services.task_executor import FastAPIBackgroundTaskExecutor

router = APIRouter(prefix="/insights", tags=["insights"])


@router.post(
    "/audit",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=InsightJobAcceptedResponse,
)
def trigger_audit(
    background_tasks: BackgroundTasks,
    insight_service: InsightService = Depends(get_insight_service),
) -> InsightJobAcceptedResponse:
    try:
        job = insight_service.trigger_audit(executor=FastAPIBackgroundTaskExecutor(background_tasks))
    except InsightUnavailableError as exc:
        raise _unavailable(exc) from exc
    return _to_accepted_response(job)


@router.post(
    "/search",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=InsightJobAcceptedResponse,
)
def trigger_search(
    body: SearchRequest,
    background_tasks: BackgroundTasks,
    insight_service: InsightService = Depends(get_insight_service),
) -> InsightJobAcceptedResponse:
    if not body.query.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Search query must not be empty.",
        )
    try:
        job = insight_service.trigger_search(
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
            query=body.query,
        )
    except InsightUnavailableError as exc:
        raise _unavailable(exc) from exc
    return _to_accepted_response(job)


@router.post(
    "/predict",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=InsightJobAcceptedResponse,
)
def trigger_prediction(
    background_tasks: BackgroundTasks,
    body: PredictionTargetRequest | None = None,
    insight_service: InsightService = Depends(get_insight_service),
) -> InsightJobAcceptedResponse:
    target_request = body or PredictionTargetRequest()
    try:
        job = insight_service.trigger_prediction(
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
            target=PredictionTarget(**target_request.model_dump()),
        )
    except InsightUnavailableError as exc:
        raise _unavailable(exc) from exc
    return _to_accepted_response(job)


@router.get("/jobs", response_model=InsightJobListResponse)
def list_jobs(
    task: str | None = Query(default=None, description="Optional task filter"),
    status_filter: str | None = Query(default=None, alias="status", description="Optional status filter"),
    limit: int = Query(default=100, ge=1, le=500, description="Max jobs returned"),
    insight_service: InsightService = Depends(get_insight_service),
) -> InsightJobListResponse:
    jobs = insight_service.list_jobs(limit=limit, task=task, status=status_filter)
    return InsightJobListResponse(jobs=[_to_status_response(job) for job in jobs])


@router.get("/jobs/{job_id}", response_model=InsightJobStatusResponse)
def get_job(
    job_id: UUID,
    insight_service: InsightService = Depends(get_insight_service),
) -> InsightJobStatusResponse:
    job = insight_service.get_job(job_id)
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Insight job not found: {job_id}",
        )
    return _to_status_response(job)


def _unavailable(exc: InsightUnavailableError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


def _to_accepted_response(job: InsightJob) -> InsightJobAcceptedResponse:
    return InsightJobAcceptedResponse(
        job_id=job.id,
        task=job.task,
        status=job.status.value,
        created_at=job.created_at,
    )


def _to_status_response(job: InsightJob) -> InsightJobStatusResponse:
    return InsightJobStatusResponse(
        job_id=job.id,
        task=job.task,
        status=job.status.value,
        created_at=job.created_at,
        updated_at=job.updated_at,
        started_at=job.started_at,
        completed_at=job.completed_at,
        request_payload=job.request_payload,
        result_payload=job.result_payload,
        error_message=job.error_message,
    )
