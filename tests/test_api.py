"""
tests/test_api.py

End-to-end HTTP tests through FastAPI's TestClient with the mock model
adapter. Service singletons are replaced per test via dependency overrides.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.config import get_llm_settings
from app.main import create_app
from app.services.dataset_ingestion_service import (
    DatasetIngestionService,
    get_dataset_ingestion_service,
)
from app.services.insight_service import InsightService, get_insight_service
from llm_synthesis.adapter import MockLLMAdapter
from llm_synthesis.gateway import LLMInsightGateway

CSV_BODY = (
    "campaign_name,ad_copy,impressions,clicks,spend,revenue\n"
    "Summer,Big summer sale,1000,50,200,600\n"
    "Winter,Cozy deals,3000,30,300,100\n"
)


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("LLM_ADAPTER", "mock")
    get_llm_settings.cache_clear()

    ingestion = DatasetIngestionService(log_ingestion_events=False)
    insights = InsightService(
        ingestion_service=ingestion,
        gateway=LLMInsightGateway(MockLLMAdapter()),
    )

    application = create_app()
    application.dependency_overrides[get_dataset_ingestion_service] = lambda: ingestion
    application.dependency_overrides[get_insight_service] = lambda: insights
    yield TestClient(application)
    get_llm_settings.cache_clear()


def _upload(client: TestClient, name: str = "campaigns.csv", body: str = CSV_BODY):
    return client.post("/files", files={"file": (name, body.encode("utf-8"), "text/csv")})


class TestFiles:
    def test_upload_is_accepted_and_parsed(self, client: TestClient) -> None:
        response = _upload(client)

        assert response.status_code == 202
        file_id = response.json()["id"]

        record = client.get(f"/files/{file_id}").json()
        assert record["status"] == "ready"
        assert record["row_count"] == 2

    def test_non_csv_upload_rejected(self, client: TestClient) -> None:
        response = client.post("/files", files={"file": ("notes.txt", b"hello", "text/plain")})

        assert response.status_code == 400

    def test_list_is_most_recent_first(self, client: TestClient) -> None:
        first = _upload(client, "first.csv").json()["id"]
        second = _upload(client, "second.csv").json()["id"]

        ids = [item["id"] for item in client.get("/files").json()["files"]]
        assert ids == [second, first]

    def test_delete_last_file_resets_dataset(self, client: TestClient) -> None:
        file_id = _upload(client).json()["id"]

        assert client.delete(f"/files/{file_id}").status_code == 204
        assert client.get("/dataset/stats").json()["row_count"] == 0

    def test_delete_unknown_file(self, client: TestClient) -> None:
        assert client.delete("/files/unknown00").status_code == 404
        assert client.get("/files/unknown00").status_code == 404


class TestDataset:
    def test_stats_reflect_uploads(self, client: TestClient) -> None:
        _upload(client)

        stats = client.get("/dataset/stats").json()

        assert stats["row_count"] == 2
        assert stats["total_impressions"] == 4000
        assert stats["total_revenue"] == 700
        assert stats["global_ctr"] == pytest.approx(2.0)

    def test_empty_stats_are_zero(self, client: TestClient) -> None:
        stats = client.get("/dataset/stats").json()

        assert stats["row_count"] == 0
        assert stats["global_ctr"] == 0.0
        assert stats["global_cpa"] == 0.0

    def test_stats_never_serialise_null(self, client: TestClient) -> None:
        _upload(client, body="impressions,clicks,spend\n1e308,1e308,1e308\n1e308,1e308,1e308\n")

        stats = client.get("/dataset/stats").json()

        assert None not in stats.values()
        assert stats["global_ctr"] == 0.0

    def test_rows_page(self, client: TestClient) -> None:
        _upload(client)

        page = client.get("/dataset/rows", params={"limit": 1, "offset": 1}).json()

        assert page["total"] == 2
        assert page["rows"][0]["campaign_name"] == "Winter"
        assert "source_file_id" not in page["rows"][0]

    def test_chart_series(self, client: TestClient) -> None:
        _upload(client)

        charts = client.get("/dataset/charts").json()

        assert charts["spend_revenue"][0] == {"campaign_name": "Summer", "spend": 200.0, "revenue": 600.0}
        assert charts["cpa_trend"][1]["cpa"] == pytest.approx(300.0)


class TestInsights:
    def test_operations_refused_without_data(self, client: TestClient) -> None:
        assert client.post("/insights/audit").status_code == 409
        assert client.post("/insights/search", json={"query": "sale"}).status_code == 409
        assert client.post("/insights/predict").status_code == 409

    def test_blank_query_rejected(self, client: TestClient) -> None:
        _upload(client)

        assert client.post("/insights/search", json={"query": "   "}).status_code == 422

    def test_audit_job_completes(self, client: TestClient) -> None:
        _upload(client)

        accepted = client.post("/insights/audit")
        assert accepted.status_code == 202

        job = client.get(f"/insights/jobs/{accepted.json()['job_id']}").json()
        assert job["status"] == "completed"
        assert set(job["result_payload"]) >= {"summary", "strengths", "weaknesses", "recommendations"}

    def test_search_job_returns_rows(self, client: TestClient) -> None:
        _upload(client)

        job_id = client.post("/insights/search", json={"query": "summer"}).json()["job_id"]

        result = client.get(f"/insights/jobs/{job_id}").json()["result_payload"]
        assert result["results"][0]["row"]["campaign_name"] == "Summer"
        assert result["results"][0]["roi"] == pytest.approx(3.0)

    def test_prediction_job_with_custom_target(self, client: TestClient) -> None:
        _upload(client)

        job_id = client.post(
            "/insights/predict",
            json={"date": "2026-05-01", "campaign_name": "Spring", "spend": 1000},
        ).json()["job_id"]

        job = client.get(f"/insights/jobs/{job_id}").json()
        assert job["result_payload"] == {"revenue": 12500.0}
        assert job["request_payload"]["target"]["campaign_name"] == "Spring"

    def test_unknown_job(self, client: TestClient) -> None:
        response = client.get("/insights/jobs/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404


def test_health_reports_adapter(client: TestClient) -> None:
    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["llm_adapter"] == "mock"
