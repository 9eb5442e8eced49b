"""Insight gateway: the single capability the application calls for model work.

``submit(task, payload)`` hides which provider runs the task and how the
request is phrased. Every failure (transport, malformed JSON, missing keys)
comes back as :class:`InsightGatewayError`; nothing is retried beyond the
formatting retries in :mod:`llm_synthesis.retry`.

Payload shapes
--------------
audit   : {"rows": [<row>, ...]}
search  : {"query": str, "sample": str}
predict : {"target": {...}, "rows": [<row>, ...]}
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional, Union

from llm_synthesis.adapter import BaseLLMAdapter, MockLLMAdapter, OpenAILLMAdapter
from llm_synthesis.prompt_builder import InsightPromptBuilder
from llm_synthesis.retry import LLMRetryExhaustedError, generate_with_retry
from llm_synthesis.schema import AuditOutput, RevenuePrediction, SearchRanking
from llm_synthesis.validator import (
    LLMOutputValidationError,
    validate_audit_output,
    validate_prediction_output,
    validate_search_output,
)

logger = logging.getLogger(__name__)

GatewayResult = Union[AuditOutput, RevenuePrediction, SearchRanking]


class InsightTask(str, Enum):
    AUDIT = "audit"
    SEARCH = "search"
    PREDICT = "predict"


class InsightGatewayError(RuntimeError):
    """Raised when a delegated task cannot produce a valid result.

    Attributes:
        task: The task that failed.
    """

    def __init__(self, task: InsightTask, message: str) -> None:
        self.task = task
        super().__init__(f"{task.value} failed: {message}")


class InsightGateway(ABC):
    """Abstract capability for delegated insight tasks."""

    @abstractmethod
    def submit(self, task: InsightTask, payload: Dict[str, Any]) -> GatewayResult:
        """Run *task* on *payload* and return its validated result.

        Raises:
            InsightGatewayError: On any failure.
        """


class LLMInsightGateway(InsightGateway):
    """Gateway backed by a text-generation adapter."""

    def __init__(
        self,
        adapter: BaseLLMAdapter,
        prompt_builder: Optional[InsightPromptBuilder] = None,
        max_retries: int = 2,
    ) -> None:
        self._adapter = adapter
        self._prompt_builder = prompt_builder or InsightPromptBuilder()
        self._max_retries = max_retries

    def submit(self, task: InsightTask, payload: Dict[str, Any]) -> GatewayResult:
        if task is InsightTask.AUDIT:
            prompt = self._prompt_builder.build_audit_prompt(payload["rows"])
            validate = validate_audit_output
        elif task is InsightTask.SEARCH:
            prompt = self._prompt_builder.build_search_prompt(payload["query"], payload["sample"])
            validate = validate_search_output
        elif task is InsightTask.PREDICT:
            prompt = self._prompt_builder.build_prediction_prompt(payload["target"], payload["rows"])
            validate = validate_prediction_output
        else:
            raise InsightGatewayError(task, "unsupported task")

        try:
            return generate_with_retry(
                self._adapter,
                prompt,
                validate,
                max_retries=self._max_retries,
                task=task.value,
            )
        except (LLMOutputValidationError, LLMRetryExhaustedError) as exc:
            logger.warning("Insight task %s returned invalid output: %s", task.value, exc)
            raise InsightGatewayError(task, str(exc)) from exc
        except Exception as exc:  # noqa: BLE001
            logger.warning("Insight task %s transport failure: %s", task.value, exc)
            raise InsightGatewayError(task, f"{type(exc).__name__}: {exc}") from exc


def build_adapter(
    adapter_name: str,
    *,
    model: str = "gpt-4o-mini",
    max_tokens: int = 2048,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout_seconds: float = 60.0,
) -> BaseLLMAdapter:
    """Instantiate the adapter selected by name.

    ``mock``   -> MockLLMAdapter  (testing, no API key required)
    ``openai`` -> OpenAILLMAdapter (default)
    """
    if adapter_name == "mock":
        return MockLLMAdapter()

    return OpenAILLMAdapter(
        model=model,
        max_tokens=max_tokens,
        api_key=api_key,
        base_url=base_url,
        timeout_seconds=timeout_seconds,
    )
