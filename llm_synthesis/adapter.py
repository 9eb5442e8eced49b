"""LLM adapters for the insight gateway.

Provides a base interface and concrete adapters for OpenAI-compatible
APIs and a deterministic mock for testing.
"""

import json
import os
from abc import ABC, abstractmethod
from typing import Optional

from llm_synthesis.prompt_builder import TASK_MARKER


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: The fully formatted prompt string.

        Returns:
            Raw string response from the model (expected to be JSON).
        """


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    Configured for deterministic, non-streaming output with
    low temperature suitable for structured JSON generation.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 2048,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            model: Model identifier.
            max_tokens: Maximum tokens in the completion.
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY env var.
            base_url: Optional base URL for OpenAI-compatible endpoints.
            timeout_seconds: Per-request HTTP timeout.
        """
        from openai import OpenAI

        resolved_key = api_key or os.environ.get("OPENAI_API_KEY", "")
        client_kwargs: dict = {"api_key": resolved_key, "timeout": timeout_seconds}
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens

    def generate(self, prompt: str) -> str:
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0,
            top_p=1,
            max_tokens=self._max_tokens,
            stream=False,
            seed=42,
        )
        return response.choices[0].message.content or ""


# ---------------------------------------------------------------------------
# Fixed mock responses used for local testing, keyed by task id.
# ---------------------------------------------------------------------------
_MOCK_RESPONSES = {
    "audit": {
        "summary": "Mock audit for testing purposes.",
        "strengths": ["Finding A identified in test data"],
        "weaknesses": ["Finding B identified in test data"],
        "strategy": "No real strategy - this is a test fixture.",
        "insights": ["Verify integration with the dashboard."],
        "recommendations": ["Replace the mock adapter before production use."],
    },
    "search": [0],
    "predict": {"revenue": 12500.0},
}


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter that returns a fixed valid JSON response per task.

    Used for local testing and CI pipelines where no LLM API is available.
    The task is read from the ``# TASK ID:`` line every prompt starts with.
    """

    def generate(self, prompt: str) -> str:
        first_line = prompt.lstrip().splitlines()[0] if prompt.strip() else ""
        task = first_line.replace(TASK_MARKER, "", 1).strip() if first_line.startswith(TASK_MARKER) else ""
        return json.dumps(_MOCK_RESPONSES.get(task, _MOCK_RESPONSES["audit"]), indent=2)
