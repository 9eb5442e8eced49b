import json

import pytest
from pydantic import ValidationError

from llm_synthesis.schema import AuditOutput, RevenuePrediction, SearchRanking


def _payload() -> dict:
    return {
        "summary": "Search drives most revenue.",
        "strengths": ["Brand CTR above average"],
        "weaknesses": ["Display CPA is high"],
        "strategy": "Move budget from display to search.",
        "insights": ["Long ad copy correlates with CTR"],
        "recommendations": ["Cap display spend"],
    }


def test_audit_output_contract() -> None:
    output = AuditOutput(**_payload())

    required = {
        "summary",
        "strengths",
        "weaknesses",
        "strategy",
        "insights",
        "recommendations",
    }
    assert set(output.model_dump().keys()) == required

    parsed = json.loads(output.model_dump_json())
    assert parsed["summary"] == "Search drives most revenue."
    assert parsed["recommendations"] == ["Cap display spend"]


def test_audit_output_rejects_extra_fields() -> None:
    data = _payload()
    data["extra_field"] = "not allowed"
    with pytest.raises(ValidationError):
        AuditOutput(**data)


def test_audit_output_rejects_blank_summary() -> None:
    data = _payload()
    data["summary"] = "   "
    with pytest.raises(ValidationError):
        AuditOutput(**data)


def test_revenue_prediction_rejects_non_finite() -> None:
    with pytest.raises(ValidationError):
        RevenuePrediction(revenue=float("inf"))


def test_search_ranking_requires_integers() -> None:
    assert SearchRanking.model_validate([2, 0]).root == [2, 0]
    with pytest.raises(ValidationError):
        SearchRanking.model_validate(["2"])
