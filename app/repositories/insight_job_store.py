"""
app/repositories/insight_job_store.py

In-memory lifecycle tracking for background insight jobs.

Only the most recent ``max_jobs`` jobs are kept; creating a job beyond the
limit evicts the oldest one.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from app.domain.insight_job import InsightJob, InsightJobStatus

DEFAULT_MAX_JOBS = 200


class InsightJobStore:
    def __init__(self, *, max_jobs: int = DEFAULT_MAX_JOBS) -> None:
        self._lock = threading.Lock()
        self._max_jobs = max(1, max_jobs)
        # Insertion order is creation order.
        self._jobs: dict[uuid.UUID, InsightJob] = {}

    def create_job(
        self,
        *,
        task: str,
        request_payload: dict[str, Any] | None = None,
    ) -> InsightJob:
        job = InsightJob(task=task, request_payload=request_payload)
        with self._lock:
            self._jobs[job.id] = job
            while len(self._jobs) > self._max_jobs:
                del self._jobs[next(iter(self._jobs))]
        return job

    def get_job(self, job_id: uuid.UUID) -> InsightJob | None:
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(
        self,
        *,
        limit: int = 100,
        task: str | None = None,
        status: str | None = None,
    ) -> list[InsightJob]:
        with self._lock:
            jobs = list(self._jobs.values())

        if task:
            jobs = [job for job in jobs if job.task == task]
        if status:
            jobs = [job for job in jobs if job.status.value == status]

        jobs.sort(key=lambda job: job.created_at, reverse=True)
        return jobs[: max(1, limit)]

    def mark_running(self, *, job_id: uuid.UUID) -> InsightJob | None:
        now = datetime.now(timezone.utc)
        return self._transition(
            job_id,
            status=InsightJobStatus.RUNNING,
            started_at=now,
            completed_at=None,
            error_message=None,
            updated_at=now,
        )

    def mark_completed(
        self,
        *,
        job_id: uuid.UUID,
        result_payload: dict[str, Any] | None = None,
    ) -> InsightJob | None:
        now = datetime.now(timezone.utc)
        return self._transition(
            job_id,
            status=InsightJobStatus.COMPLETED,
            completed_at=now,
            result_payload=result_payload,
            error_message=None,
            updated_at=now,
        )

    def mark_failed(self, *, job_id: uuid.UUID, error_message: str) -> InsightJob | None:
        now = datetime.now(timezone.utc)
        return self._transition(
            job_id,
            status=InsightJobStatus.FAILED,
            completed_at=now,
            error_message=error_message,
            updated_at=now,
        )

    def _transition(self, job_id: uuid.UUID, **changes: Any) -> InsightJob | None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            updated = replace(job, **changes)
            self._jobs[job_id] = updated
            return updated
