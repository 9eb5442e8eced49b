"""
app/parsers/csv_row_parser.py

Line-level parsing and type coercion for uploaded campaign CSV text.

The accepted format is deliberately loose: plain comma splitting with no
quoting support, header names matched case-insensitively, and malformed
numeric values defaulted to zero instead of rejected. Callers never get
an error back from this module; bad input degrades to empty or zero values.
"""

from __future__ import annotations

import math
import re
from typing import Sequence

from app.domain.marketing import DERIVED_FIELDS, NUMERIC_FIELDS, TEXT_FIELDS, MarketingRow
from kpi.campaign import derive_row_metrics

DELIMITER = ","

# Leading decimal number, optionally signed, optionally with an exponent.
# Anything after the match is ignored ("12abc" -> 12.0).
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_NUMERIC_FIELD_SET = frozenset(NUMERIC_FIELDS)
_TEXT_FIELD_SET = frozenset(TEXT_FIELDS)
_DERIVED_FIELD_SET = frozenset(DERIVED_FIELDS)


def parse_numeric(value: str | None) -> float:
    """
    Coerce a raw cell to float, returning 0.0 for anything unparseable.

    Non-finite results (``inf``, ``nan``, exponent overflow) also collapse
    to 0.0 so downstream ratios stay finite.
    """

    if value is None:
        return 0.0
    match = _LEADING_NUMBER.match(value.strip())
    if match is None:
        return 0.0
    parsed = float(match.group(0))
    if not math.isfinite(parsed):
        return 0.0
    return parsed


class CSVRowParser:
    """
    Turns comma-separated campaign text into derived MarketingRow records.
    """

    def __init__(self, *, delimiter: str = DELIMITER) -> None:
        self._delimiter = delimiter

    def parse_header(self, line: str) -> list[str]:
        """
        Split a header line into trimmed, lower-cased field names.
        """

        return [name.strip().lower() for name in line.split(self._delimiter)]

    def parse_line(
        self,
        *,
        headers: Sequence[str],
        line: str,
        source_file_id: str | None = None,
    ) -> MarketingRow:
        """
        Parse one data line against *headers* and derive its ratios.

        Positions past the end of the line yield ``""`` for text headers and
        ``0.0`` for numeric ones. Cells past the end of the header are dropped.
        A repeated header keeps the value of its last occurrence.
        """

        values = [value.strip() for value in line.split(self._delimiter)]
        numeric: dict[str, float] = {}
        text: dict[str, str] = {}
        extra: dict[str, str] = {}

        for position, header in enumerate(headers):
            raw = values[position] if position < len(values) else None
            if header in _NUMERIC_FIELD_SET:
                numeric[header] = parse_numeric(raw)
            elif header in _TEXT_FIELD_SET:
                text[header] = raw or ""
            elif header in _DERIVED_FIELD_SET:
                # Always overwritten by the derived ratio.
                continue
            else:
                extra[header] = raw or ""

        row = MarketingRow(
            **text,
            **numeric,
            extra_fields=extra,
            source_file_id=source_file_id,
        )
        return derive_row_metrics(row)

    def parse_text(self, text: str, *, source_file_id: str | None = None) -> list[MarketingRow]:
        """
        Parse a whole upload body.

        Blank lines are skipped everywhere, including before the header.
        Fewer than two non-empty lines yields an empty list.
        """

        lines = [line for line in text.split("\n") if line.strip()]
        if len(lines) < 2:
            return []

        headers = self.parse_header(lines[0])
        return [
            self.parse_line(headers=headers, line=line, source_file_id=source_file_id)
            for line in lines[1:]
        ]
