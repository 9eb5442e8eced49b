"""
app/parsers package marker.
"""

from app.parsers.csv_row_parser import CSVRowParser, parse_numeric

__all__ = [
    "CSVRowParser",
    "parse_numeric",
]
