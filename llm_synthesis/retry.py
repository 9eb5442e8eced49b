"""Formatting retries for delegated insight tasks.

A response that fails JSON parsing or its task contract is requested again,
with the validation errors appended to the prompt so the model can repair
its output. Adapter transport errors propagate unchanged and are never
retried here.
"""

import logging
from typing import Callable, List, TypeVar

from llm_synthesis.adapter import BaseLLMAdapter
from llm_synthesis.validator import LLMOutputValidationError

logger = logging.getLogger(__name__)

_REPAIR_TEMPLATE = """\

# PREVIOUS RESPONSE REJECTED

Your previous response failed validation ({stage}):
{errors}

Respond again with corrected JSON only.
"""

T = TypeVar("T")


class LLMRetryExhaustedError(Exception):
    """Raised when every attempt for a task returned unusable output.

    Attributes:
        task: Label of the task that was attempted.
        attempts: Number of model calls made.
        history: Validation errors, one per attempt, oldest first.
    """

    def __init__(
        self,
        task: str,
        attempts: int,
        history: List[LLMOutputValidationError],
    ) -> None:
        self.task = task
        self.attempts = attempts
        self.history = history
        super().__init__(
            f"{task}: no valid response after {attempts} attempt(s). "
            f"Last error: {self.last_error}"
        )

    @property
    def last_error(self) -> LLMOutputValidationError:
        return self.history[-1]


def _repair_prompt(prompt: str, error: LLMOutputValidationError) -> str:
    bullet_list = "\n".join(f"- {message}" for message in error.errors)
    return prompt + _REPAIR_TEMPLATE.format(stage=error.stage, errors=bullet_list)


def generate_with_retry(
    adapter: BaseLLMAdapter,
    prompt: str,
    validate: Callable[[str], T],
    max_retries: int = 2,
    task: str = "insight",
) -> T:
    """Call the adapter until ``validate`` accepts a response.

    Args:
        adapter: Any adapter implementing ``generate(prompt) -> str``.
        prompt: The task prompt for the first attempt.
        validate: Turns raw text into the task's result model or raises
            ``LLMOutputValidationError``.
        max_retries: Extra attempts after the first; negative counts as 0.
        task: Label used in logs and in the exhaustion error.

    Raises:
        LLMRetryExhaustedError: When every attempt failed validation.
    """
    history: List[LLMOutputValidationError] = []
    attempts = 1 + max(0, max_retries)
    current_prompt = prompt

    for attempt in range(1, attempts + 1):
        raw = adapter.generate(current_prompt)
        try:
            result = validate(raw)
        except LLMOutputValidationError as exc:
            history.append(exc)
            logger.warning(
                "%s response rejected (attempt %d/%d, stage=%s): %s",
                task,
                attempt,
                attempts,
                exc.stage,
                "; ".join(exc.errors),
            )
            current_prompt = _repair_prompt(prompt, exc)
            continue

        if attempt > 1:
            logger.info("%s response accepted on attempt %d/%d", task, attempt, attempts)
        return result

    raise LLMRetryExhaustedError(task=task, attempts=attempts, history=history)
