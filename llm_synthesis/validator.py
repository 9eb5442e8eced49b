"""Validation layer for raw insight-task output.

Parses JSON strings returned by the model and validates them against the
contract of the task that produced them.
"""

import json
import re
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ValidationError

from llm_synthesis.schema import AuditOutput, RevenuePrediction, SearchRanking

_AUDIT_KEYS = tuple(AuditOutput.model_fields.keys())
_PREDICTION_KEYS = tuple(RevenuePrediction.model_fields.keys())

ValidatedOutput = Union[AuditOutput, RevenuePrediction, SearchRanking]


class LLMOutputValidationError(Exception):
    """Raised when model output fails parsing or schema validation.

    Attributes:
        stage: Which validation step failed ("json_parse" or "schema").
        errors: List of human-readable error descriptions.
        raw_response: The original string that failed validation.
    """

    def __init__(
        self,
        stage: str,
        errors: List[str],
        raw_response: str,
    ) -> None:
        self.stage = stage
        self.errors = errors
        self.raw_response = raw_response
        message = (
            f"LLM output validation failed at stage '{stage}': "
            + "; ".join(errors)
        )
        super().__init__(message)


def _strip_markdown_fences(text: str) -> str:
    """Remove optional markdown code fences wrapping JSON.

    Args:
        text: Raw model response string.

    Returns:
        The text with leading/trailing code fences removed, if present.
    """
    stripped = text.strip()
    match = re.match(
        r"^```(?:json)?\s*\n?(.*?)\n?\s*```$",
        stripped,
        re.DOTALL,
    )
    if match:
        return match.group(1).strip()
    return stripped


def _parse_json(raw_response: str) -> Any:
    cleaned = _strip_markdown_fences(raw_response or "")
    try:
        return json.loads(cleaned)
    except (json.JSONDecodeError, TypeError) as exc:
        raise LLMOutputValidationError(
            stage="json_parse",
            errors=[str(exc)],
            raw_response=raw_response,
        ) from exc


def _require_object(data: Any, raw_response: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise LLMOutputValidationError(
            stage="schema",
            errors=["top-level JSON must be an object"],
            raw_response=raw_response,
        )
    return data


def _validate_model(model: type, payload: Any, raw_response: str) -> BaseModel:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}"
            for e in exc.errors()
        ]
        raise LLMOutputValidationError(
            stage="schema",
            errors=errors,
            raw_response=raw_response,
        ) from exc


def validate_audit_output(raw_response: str) -> AuditOutput:
    """Validate a strategic-audit response.

    Unknown keys are dropped before validation; every contract key is
    required.

    Raises:
        LLMOutputValidationError: If JSON parsing or schema validation fails.
    """
    data = _require_object(_parse_json(raw_response), raw_response)
    missing = [key for key in _AUDIT_KEYS if key not in data]
    if missing:
        raise LLMOutputValidationError(
            stage="schema",
            errors=[f"{key}: Field required" for key in missing],
            raw_response=raw_response,
        )
    projected = {key: data[key] for key in _AUDIT_KEYS}
    return _validate_model(AuditOutput, projected, raw_response)


def validate_prediction_output(raw_response: str) -> RevenuePrediction:
    """Validate a revenue-prediction response (an object with ``revenue``)."""
    data = _require_object(_parse_json(raw_response), raw_response)
    projected = {key: data.get(key) for key in _PREDICTION_KEYS}
    return _validate_model(RevenuePrediction, projected, raw_response)


def validate_search_output(raw_response: str) -> SearchRanking:
    """Validate a semantic-search response.

    Accepts a bare JSON array of integers, or an object wrapping that array
    under ``indices`` (JSON-object response modes cannot return arrays).
    """
    data = _parse_json(raw_response)
    if isinstance(data, dict) and "indices" in data:
        data = data["indices"]
    if not isinstance(data, list):
        raise LLMOutputValidationError(
            stage="schema",
            errors=["top-level JSON must be an array of integers"],
            raw_response=raw_response,
        )
    return _validate_model(SearchRanking, data, raw_response)
