"""Output helpers: JSON rows on stdout, one-per-line listings."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from osquery_tool.core.models import QueryResult


def _serialize_value(val: Any) -> Any:
    if isinstance(val, (int, float, str, bool, type(None))):
        return val
    return str(val)


def format_json(result: QueryResult, compact: bool = False) -> str:
    """Rows as a JSON array, keys in the result's column order."""
    rows = [
        {
            name: _serialize_value(row[name])
            for name in result.column_names
            if name in row
        }
        for row in result.rows
    ]
    if compact:
        return json.dumps(rows, default=str)
    return json.dumps(rows, indent=2, default=str)


def write_json(result: QueryResult, compact: bool = False) -> None:
    sys.stdout.write(format_json(result, compact=compact) + "\n")


def write_lines(lines: Iterable[str]) -> None:
    for line in lines:
        sys.stdout.write(line + "\n")
