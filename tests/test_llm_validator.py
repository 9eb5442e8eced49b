from __future__ import annotations

import json
import unittest

from llm_synthesis.validator import (
    LLMOutputValidationError,
    validate_audit_output,
    validate_prediction_output,
    validate_search_output,
)

_AUDIT = {
    "summary": "Summary.",
    "strengths": ["s"],
    "weaknesses": ["w"],
    "strategy": "Strategy.",
    "insights": ["i"],
    "recommendations": ["r"],
}


class TestAuditValidation(unittest.TestCase):
    def test_accepts_fenced_json(self) -> None:
        raw = "```json\n" + json.dumps(_AUDIT) + "\n```"

        output = validate_audit_output(raw)

        self.assertEqual(output.strategy, "Strategy.")

    def test_drops_unknown_keys(self) -> None:
        raw = json.dumps({**_AUDIT, "confidence": 0.9})

        output = validate_audit_output(raw)

        self.assertNotIn("confidence", output.model_dump())

    def test_missing_keys_reported_by_name(self) -> None:
        payload = dict(_AUDIT)
        del payload["strategy"]
        del payload["insights"]

        with self.assertRaises(LLMOutputValidationError) as ctx:
            validate_audit_output(json.dumps(payload))

        self.assertEqual(ctx.exception.stage, "schema")
        self.assertIn("strategy: Field required", ctx.exception.errors)
        self.assertIn("insights: Field required", ctx.exception.errors)

    def test_non_json_is_parse_failure(self) -> None:
        with self.assertRaises(LLMOutputValidationError) as ctx:
            validate_audit_output("Here is your audit!")

        self.assertEqual(ctx.exception.stage, "json_parse")
        self.assertEqual(ctx.exception.raw_response, "Here is your audit!")

    def test_array_is_schema_failure(self) -> None:
        with self.assertRaises(LLMOutputValidationError) as ctx:
            validate_audit_output("[]")

        self.assertEqual(ctx.exception.stage, "schema")


class TestPredictionValidation(unittest.TestCase):
    def test_accepts_numeric_revenue(self) -> None:
        self.assertEqual(validate_prediction_output('{"revenue": 1234.5}').revenue, 1234.5)

    def test_missing_revenue_fails(self) -> None:
        with self.assertRaises(LLMOutputValidationError) as ctx:
            validate_prediction_output('{"estimate": 10}')

        self.assertEqual(ctx.exception.stage, "schema")


class TestSearchValidation(unittest.TestCase):
    def test_accepts_bare_array(self) -> None:
        self.assertEqual(validate_search_output("[3, 1, 0]").root, [3, 1, 0])

    def test_accepts_wrapped_indices(self) -> None:
        self.assertEqual(validate_search_output('{"indices": [2]}').root, [2])

    def test_rejects_object_without_indices(self) -> None:
        with self.assertRaises(LLMOutputValidationError):
            validate_search_output('{"results": [1]}')

    def test_rejects_non_integer_entries(self) -> None:
        with self.assertRaises(LLMOutputValidationError):
            validate_search_output('["a", 1]')


if __name__ == "__main__":
    unittest.main()
