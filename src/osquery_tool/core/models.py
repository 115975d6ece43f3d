"""Data models for osquery-tool.

Pydantic models for subprocess invocations and their outcomes, query
results, and table schemas returned by OsqueryService.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Closed vocabulary used for display; osqueryi emits a handful of synonyms.
_TYPE_SYNONYMS: dict[str, str] = {
    "TEXT": "text",
    "VARCHAR": "text",
    "CHAR": "text",
    "STRING": "text",
    "INTEGER": "integer",
    "INT": "integer",
    "BIGINT": "integer",
    "SMALLINT": "integer",
    "UNSIGNED_BIGINT": "unsigned-integer",
    "UNSIGNED BIGINT": "unsigned-integer",
    "UNSIGNED": "unsigned-integer",
    "REAL": "real",
    "DOUBLE": "real",
    "FLOAT": "real",
    "NUMERIC": "real",
    "BLOB": "blob",
    "DATETIME": "datetime",
    "TIMESTAMP": "datetime",
}

_CREATE_HEAD = re.compile(
    r"^\s*CREATE\s+(?:VIRTUAL\s+)?TABLE\s+([A-Za-z_][A-Za-z0-9_]*)",
    re.IGNORECASE,
)

# Column options that follow the type in osqueryi schema output.
_COLUMN_OPTIONS = re.compile(
    r"\s+(?:HIDDEN|PRIMARY\s+KEY|NOT\s+NULL|REQUIRED|INDEX|ADDITIONAL|OPTIMIZED)\b.*$",
    re.IGNORECASE,
)


def normalize_type(declared: str | None) -> str:
    """Map a raw declared column type onto the display vocabulary.

    Unknown or missing types display as text, which is how osquery
    returns every value over --json anyway.
    """
    if not declared:
        return "text"
    key = " ".join(declared.upper().split())
    key = re.sub(r"\(.*\)$", "", key).strip()
    return _TYPE_SYNONYMS.get(key, "text")


class ProcessInvocation(BaseModel):
    """One external program launch: executable, argv tail, timeout."""

    model_config = ConfigDict(frozen=True)

    executable: str
    arguments: tuple[str, ...] = ()
    timeout: float = Field(default=30.0, gt=0)

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.arguments]


class ProcessOutcome(BaseModel):
    """Captured streams and exit status of a finished child."""

    model_config = ConfigDict(frozen=True)

    stdout: bytes = b""
    stderr: bytes = b""
    exit_code: int = 0

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


class ColumnMeta(BaseModel):
    """Metadata for a single result or schema column."""

    name: str
    declared_type: str | None = None

    @property
    def type_name(self) -> str:
        return normalize_type(self.declared_type)


class TableSchema(BaseModel):
    """A table name plus its ordered column declarations."""

    name: str
    columns: list[ColumnMeta] = []

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    @classmethod
    def from_create_statement(cls, statement: str) -> TableSchema:
        """Parse ``CREATE TABLE name(col TYPE, ...)`` text.

        Handles both osqueryi's single-line dump format and the
        multi-line layout of the extension schemas. Raises ValueError
        when the text is not a CREATE TABLE statement.
        """
        head = _CREATE_HEAD.match(statement)
        if head is None:
            msg = f"Not a CREATE TABLE statement: {statement[:80]!r}"
            raise ValueError(msg)

        start = statement.find("(", head.end())
        end = statement.rfind(")")
        if start == -1 or end <= start:
            # CREATE VIRTUAL TABLE name USING module carries no columns
            return cls(name=head.group(1))

        columns: list[ColumnMeta] = []
        for part in _split_columns(statement[start + 1 : end]):
            definition = _COLUMN_OPTIONS.sub("", part.strip())
            if not definition or definition.upper().startswith(("PRIMARY KEY", "UNIQUE")):
                continue
            tokens = definition.split(None, 1)
            name = tokens[0].strip('`"[]')
            declared = tokens[1].strip() if len(tokens) > 1 else None
            columns.append(ColumnMeta(name=name, declared_type=declared))
        return cls(name=head.group(1), columns=columns)


def _split_columns(body: str) -> list[str]:
    # Split on top-level commas only: PRIMARY KEY (a, b) stays whole.
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in body:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    if current:
        parts.append("".join(current))
    return parts


class QueryResult(BaseModel):
    """Result of an osquery SQL query execution."""

    sql: str
    columns: list[ColumnMeta]
    rows: list[dict[str, Any]]
    row_count: int
    duration_ms: float = 0.0

    @classmethod
    def from_rows(
        cls,
        sql: str,
        rows: list[dict[str, Any]],
        schema: TableSchema | None = None,
        duration_ms: float = 0.0,
    ) -> QueryResult:
        """Build a result whose columns honor the ordering rules.

        Without a schema the columns are the union of row keys in the
        order they were first seen. With a schema, schema columns come
        first in declaration order, then any keys the schema lacks. An
        empty result with a schema still reports every schema column.
        """
        seen: dict[str, None] = {}
        for row in rows:
            for key in row:
                seen.setdefault(key, None)

        columns: list[ColumnMeta] = []
        if schema is not None:
            for col in schema.columns:
                if not rows:
                    columns.append(col)
                elif col.name in seen:
                    columns.append(col)
                    del seen[col.name]
        columns.extend(ColumnMeta(name=name) for name in seen)

        return cls(
            sql=sql,
            columns=columns,
            rows=rows,
            row_count=len(rows),
            duration_ms=duration_ms,
        )

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]
