from __future__ import annotations

from app.domain.insight_job import InsightJobStatus
from app.repositories.insight_job_store import InsightJobStore


class TestInsightJobStore:
    def test_lifecycle_transitions(self) -> None:
        store = InsightJobStore()
        job = store.create_job(task="audit")

        store.mark_running(job_id=job.id)
        completed = store.mark_completed(job_id=job.id, result_payload={"summary": "ok"})

        assert completed.status is InsightJobStatus.COMPLETED
        assert completed.started_at is not None
        assert completed.result_payload == {"summary": "ok"}

    def test_oldest_jobs_evicted_beyond_limit(self) -> None:
        store = InsightJobStore(max_jobs=3)
        jobs = [store.create_job(task="search") for _ in range(5)]

        assert store.get_job(jobs[0].id) is None
        assert store.get_job(jobs[1].id) is None
        assert {job.id for job in store.list_jobs()} == {job.id for job in jobs[2:]}

    def test_transition_on_evicted_job_is_ignored(self) -> None:
        store = InsightJobStore(max_jobs=1)
        first = store.create_job(task="audit")
        store.create_job(task="predict")

        assert store.mark_running(job_id=first.id) is None
