"""Structured prompt builders for the delegated insight tasks."""

import json
from typing import Any, Dict, List, Sequence

from llm_synthesis.schema import AuditOutput, RevenuePrediction, SearchRanking

TASK_MARKER = "# TASK ID:"

_AUDIT_SCHEMA_JSON = json.dumps(AuditOutput.model_json_schema(), indent=2)
_PREDICTION_SCHEMA_JSON = json.dumps(RevenuePrediction.model_json_schema(), indent=2)
_SEARCH_SCHEMA_JSON = json.dumps(SearchRanking.model_json_schema(), indent=2)

_AUDIT_EXAMPLE = json.dumps(
    {
        "summary": "Search campaigns carry most revenue while display spend converts poorly.",
        "strengths": [
            "Brand search CTR is well above the dataset average",
            "CPA on retargeting stays below 20",
        ],
        "weaknesses": [
            "Display campaigns spend heavily with few conversions",
        ],
        "strategy": "Shift budget from broad display toward brand and retargeting search.",
        "insights": [
            "Rows with longer ad copy show higher CTR",
        ],
        "recommendations": [
            "Cap display spend until CPA falls under the search average",
            "Test new copy variants on the top three search campaigns",
        ],
    },
    indent=2,
)

_SYSTEM_INSTRUCTIONS = """\
You are a senior performance-marketing analyst.

STRICT RULES:
- Use ONLY the data provided below. Do not invent campaigns or figures.
- Return strictly valid JSON matching the schema defined below.
- Do NOT include any text outside the JSON.
- Do NOT wrap the JSON in markdown code fences.
"""

_SECTION_TEMPLATE = """\
## {title}
```json
{data}
```
"""


class InsightPromptBuilder:
    """Builds deterministic prompts for audit, search, and prediction tasks.

    Every prompt starts with a ``# TASK ID: <task>`` line so adapters and
    logs can tell the tasks apart without parsing the body.
    """

    def __init__(self, response_language: str = "English") -> None:
        self._response_language = response_language

    def build_audit_prompt(self, rows: Sequence[Dict[str, Any]]) -> str:
        """Build the strategic-audit prompt for a row sample.

        Args:
            rows: Flattened campaign rows (already truncated by the caller).

        Returns:
            A fully formatted prompt string.
        """
        sections = self._format_data_sections(campaign_rows=list(rows))
        return (
            f"{TASK_MARKER} audit\n\n"
            f"{_SYSTEM_INSTRUCTIONS}\n"
            f"# PROVIDED DATA\n\n{sections}\n"
            f"# OUTPUT SCHEMA\n\n"
            f"Your response MUST conform to this JSON schema:\n\n"
            f"```json\n{_AUDIT_SCHEMA_JSON}\n```\n\n"
            f"# EXAMPLE OUTPUT\n\n"
            f"```json\n{_AUDIT_EXAMPLE}\n```\n\n"
            f"# TASK\n\n"
            f"Audit this real marketing dataset and return a strategic breakdown "
            f"as a single JSON object. Write every text value in {self._response_language}."
        )

    def build_search_prompt(self, query: str, indexed_sample: str) -> str:
        """Build the semantic-search prompt.

        Args:
            query: Free-text user query.
            indexed_sample: One ``"<index>: <campaign> - <ad copy>"`` line per row.
        """
        return (
            f"{TASK_MARKER} search\n\n"
            f"{_SYSTEM_INSTRUCTIONS}\n"
            f"# QUERY\n\n{json.dumps(query)}\n\n"
            f"# INDEXED ROWS\n\n{indexed_sample}\n\n"
            f"# OUTPUT SCHEMA\n\n"
            f"```json\n{_SEARCH_SCHEMA_JSON}\n```\n\n"
            f"# TASK\n\n"
            f"Identify the indices of the rows most semantically relevant to the "
            f"query, most relevant first. Return a JSON array of integers."
        )

    def build_prediction_prompt(
        self,
        target: Dict[str, Any],
        history: List[Dict[str, Any]],
    ) -> str:
        """Build the revenue-prediction prompt.

        Args:
            target: Campaign attributes to predict revenue for.
            history: Recent historical rows used as context.
        """
        sections = self._format_data_sections(
            historical_context=history,
            prediction_target=target,
        )
        return (
            f"{TASK_MARKER} predict\n\n"
            f"{_SYSTEM_INSTRUCTIONS}\n"
            f"# PROVIDED DATA\n\n{sections}\n"
            f"# OUTPUT SCHEMA\n\n"
            f"```json\n{_PREDICTION_SCHEMA_JSON}\n```\n\n"
            f"# TASK\n\n"
            f"Act as a regression model fitted on the historical context. Estimate "
            f"the revenue of the prediction target from the patterns in historical "
            f"CPA and ROI. Respond ONLY with a JSON object containing the predicted "
            f"'revenue' as a number."
        )

    def _format_data_sections(self, **data: Any) -> str:
        parts = []
        for key, value in data.items():
            title = key.replace("_", " ").title()
            body = json.dumps(value, indent=2, default=str)
            parts.append(_SECTION_TEMPLATE.format(title=title, data=body))
        return "\n".join(parts)
