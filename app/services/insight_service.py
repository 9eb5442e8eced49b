"""
app/services/insight_service.py

Delegates audit, semantic search, and revenue prediction to the insight
gateway and tracks each request as a background job.

Only a leading sample of the dataset is sent with each request:

    audit:   first 20 rows as JSON
    search:  first 30 rows as ``"<i>: <campaign_name> - <ad_copy>"`` lines
    predict: first 15 rows as JSON plus the prediction target

Sample sizes come from ``InsightSamplingSettings``. Every operation refuses
to run while the dataset is empty. Gateway failures mark the job ``failed``
and never touch the dataset.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass
from datetime import date
from functools import lru_cache
from typing import Any

from app.config import InsightSamplingSettings, get_insight_sampling_settings, get_llm_settings
from app.domain.insight_job import InsightJob
from app.domain.marketing import MarketingRow
from app.repositories.insight_job_store import InsightJobStore
from app.services.dataset_ingestion_service import (
    DatasetIngestionService,
    get_dataset_ingestion_service,
)
from app.services.task_executor import TaskExecutor
from kpi.campaign import return_on_spend
from llm_synthesis.gateway import InsightGateway, InsightTask, LLMInsightGateway, build_adapter
from llm_synthesis.prompt_builder import InsightPromptBuilder
from llm_synthesis.schema import AuditOutput

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class InsightUnavailableError(ValueError):
    """
    Raised when an operation's preconditions are not met (no data, no query).
    """


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PredictionTarget:
    """
    Attributes of the hypothetical campaign whose revenue is predicted.
    """

    date: str
    campaign_name: str = ""
    category: str = "search"
    impressions: float = 100000
    spend: float = 5000
    clicks: float = 2500
    leads: float = 120
    orders: float = 45

    @classmethod
    def with_defaults(cls) -> "PredictionTarget":
        return cls(date=date.today().isoformat())


@dataclass(frozen=True)
class SearchHit:
    index: int
    row: MarketingRow
    roi: float


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class InsightService:
    """
    Builds gateway payloads from the current dataset and runs insight jobs.
    """

    def __init__(
        self,
        *,
        ingestion_service: DatasetIngestionService,
        gateway: InsightGateway,
        job_store: InsightJobStore | None = None,
        sampling: InsightSamplingSettings | None = None,
    ) -> None:
        self._ingestion_service = ingestion_service
        self._gateway = gateway
        self._job_store = job_store or InsightJobStore()
        self._sampling = sampling or InsightSamplingSettings()

    # ------------------------------------------------------------------
    # Synchronous operations
    # ------------------------------------------------------------------

    def run_audit(self) -> AuditOutput:
        rows = self._require_rows()
        sample = [row.to_payload() for row in rows[: self._sampling.audit_sample_size]]
        return self._gateway.submit(InsightTask.AUDIT, {"rows": sample})

    def run_search(self, query: str) -> list[SearchHit]:
        """
        Rank the leading sample against *query*.

        Indices outside the sample are dropped silently; the model's order
        is kept otherwise.
        """

        query = self._require_query(query)
        rows = self._require_rows()
        sample = rows[: self._sampling.search_sample_size]
        indexed = "\n".join(
            f"{index}: {row.campaign_name or ''} - {row.ad_copy or ''}"
            for index, row in enumerate(sample)
        )
        ranking = self._gateway.submit(InsightTask.SEARCH, {"query": query, "sample": indexed})

        hits: list[SearchHit] = []
        for index in ranking.root:
            if 0 <= index < len(sample):
                row = sample[index]
                hits.append(SearchHit(index=index, row=row, roi=return_on_spend(row)))
        return hits

    def run_prediction(self, target: PredictionTarget) -> float:
        rows = self._require_rows()
        history = [row.to_payload() for row in rows[: self._sampling.predict_sample_size]]
        prediction = self._gateway.submit(
            InsightTask.PREDICT,
            {"target": asdict(target), "rows": history},
        )
        return prediction.revenue

    # ------------------------------------------------------------------
    # Background jobs
    # ------------------------------------------------------------------

    def trigger_audit(self, *, executor: TaskExecutor) -> InsightJob:
        self._require_rows()
        return self._submit_job(
            executor=executor,
            task=InsightTask.AUDIT,
            request_payload={},
            operation=lambda: self.run_audit().model_dump(),
        )

    def trigger_search(self, *, executor: TaskExecutor, query: str) -> InsightJob:
        query = self._require_query(query)
        self._require_rows()
        return self._submit_job(
            executor=executor,
            task=InsightTask.SEARCH,
            request_payload={"query": query},
            operation=lambda: {
                "query": query,
                "results": [_hit_payload(hit) for hit in self.run_search(query)],
            },
        )

    def trigger_prediction(self, *, executor: TaskExecutor, target: PredictionTarget) -> InsightJob:
        self._require_rows()
        return self._submit_job(
            executor=executor,
            task=InsightTask.PREDICT,
            request_payload={"target": asdict(target)},
            operation=lambda: {"revenue": self.run_prediction(target)},
        )

    def get_job(self, job_id: uuid.UUID) -> InsightJob | None:
        return self._job_store.get_job(job_id)

    def list_jobs(
        self,
        *,
        limit: int = 100,
        task: str | None = None,
        status: str | None = None,
    ) -> list[InsightJob]:
        return self._job_store.list_jobs(limit=limit, task=task, status=status)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _submit_job(
        self,
        *,
        executor: TaskExecutor,
        task: InsightTask,
        request_payload: dict[str, Any],
        operation: Callable[[], dict[str, Any]],
    ) -> InsightJob:
        job = self._job_store.create_job(task=task.value, request_payload=request_payload)
        try:
            executor.submit(self._run_job, job.id, operation)
        except Exception:
            self._job_store.mark_failed(
                job_id=job.id,
                error_message=f"Failed to schedule {task.value} job.",
            )
            raise
        return job

    def _run_job(self, job_id: uuid.UUID, operation: Callable[[], dict[str, Any]]) -> None:
        if self._job_store.mark_running(job_id=job_id) is None:
            logger.error("Insight job not found id=%s", job_id)
            return
        try:
            result_payload = operation()
        except Exception as exc:  # noqa: BLE001
            error_message = f"{type(exc).__name__}: {exc}"
            logger.warning("Insight job failed id=%s error=%s", job_id, error_message)
            self._job_store.mark_failed(job_id=job_id, error_message=error_message[:2000])
            return
        self._job_store.mark_completed(job_id=job_id, result_payload=result_payload)
        logger.info("Insight job completed id=%s", job_id)

    def _require_rows(self) -> Sequence[MarketingRow]:
        rows = self._ingestion_service.rows()
        if not rows:
            raise InsightUnavailableError("No campaign data has been uploaded yet.")
        return rows

    def _require_query(self, query: str) -> str:
        stripped = (query or "").strip()
        if not stripped:
            raise InsightUnavailableError("Search query must not be empty.")
        return stripped


def _hit_payload(hit: SearchHit) -> dict[str, Any]:
    return {"index": hit.index, "row": hit.row.to_payload(), "roi": hit.roi}


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_insight_service() -> InsightService:
    """
    Build and cache the insight service with env-driven adapter settings.
    """
    settings = get_llm_settings()
    adapter = build_adapter(
        settings.adapter,
        model=settings.model,
        max_tokens=settings.max_tokens,
        api_key=settings.api_key,
        base_url=settings.base_url,
        timeout_seconds=settings.timeout_seconds,
    )
    gateway = LLMInsightGateway(
        adapter,
        prompt_builder=InsightPromptBuilder(response_language=settings.response_language),
        max_retries=settings.max_retries,
    )
    return InsightService(
        ingestion_service=get_dataset_ingestion_service(),
        gateway=gateway,
        sampling=get_insight_sampling_settings(),
    )
