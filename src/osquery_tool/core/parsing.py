"""Parsers for osqueryi output.

Row decoding for --json output (which may carry warning noise) plus
the `.tables` and `.schema` text formats.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from typing import Any

from osquery_tool.core.exceptions import ParseError

_TABLE_BULLET = re.compile(r"^\s*=>\s*([A-Za-z_][A-Za-z0-9_]*)\s*$")

_CREATE_TABLE = re.compile(
    r"^CREATE (?:VIRTUAL )?TABLE ([A-Za-z_][A-Za-z0-9_]*)", re.IGNORECASE
)


def _is_row_array(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, dict) for item in value)


def parse_json_rows(stdout: str) -> list[dict[str, Any]]:
    """Decode osqueryi --json output into row dicts, in emission order.

    Empty output is an empty result. Output with warnings before or
    after the array is recovered by slicing from the first '[' to the
    last ']'. When that slice is not an array of objects (truncated
    output, brackets inside string values) ParseError is raised with a
    bounded preview; no other substring is accepted as the result.
    """
    text = stdout.strip()
    if not text:
        return []

    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        detail = str(e)
    else:
        if _is_row_array(value):
            return value
        raise ParseError("Expected JSON array of objects", stdout)

    if "[" in text:
        start, end = text.find("["), text.rfind("]")
        if end > start:
            try:
                value = json.loads(text[start : end + 1])
            except json.JSONDecodeError:
                pass
            else:
                if _is_row_array(value):
                    return value

    raise ParseError(detail, stdout)


def parse_table_list(output: str) -> list[str]:
    """Extract table names from `.tables` output ("  => name" lines)."""
    tables: list[str] = []
    for line in output.splitlines():
        match = _TABLE_BULLET.match(line)
        if match:
            tables.append(match.group(1))
    return tables


def extract_table_name(line: str) -> str | None:
    """Table name from a CREATE [VIRTUAL] TABLE line, else None."""
    match = _CREATE_TABLE.match(line.strip())
    return match.group(1) if match else None


def filter_schema_dump(output: str, tables: Iterable[str]) -> list[str]:
    """Keep only the CREATE statements for the requested tables.

    A statement starts at a CREATE TABLE boundary line and runs until the
    next boundary or end of output. Statements are returned in dump order.
    """
    wanted = set(tables)
    blocks: list[str] = []
    current: list[str] = []

    for line in output.splitlines():
        name = extract_table_name(line)
        if name is not None:
            if current:
                blocks.append("\n".join(current).rstrip())
            current = [line] if name in wanted else []
        elif current:
            current.append(line)

    if current:
        blocks.append("\n".join(current).rstrip())
    return blocks
