"""Where the SQL for `osquery-tool query` comes from.

Inline text (-e) wins over a file argument, which wins over piped
stdin. A file argument of "-" reads stdin explicitly.

osqueryi takes the statement as a single argv entry and the validator
rejects line breaks, so SQL read from a file or stdin is folded onto
one line. Inline SQL is passed through untouched.
"""

from __future__ import annotations

import sys
from pathlib import Path

from osquery_tool.core.exceptions import InputError

STDIN_MARKER = "-"


def fold_sql(text: str) -> str:
    """Collapse every whitespace run (newlines included) to one space."""
    return " ".join(text.split())


def _read_file(file_path: str) -> str:
    p = Path(file_path)
    if not p.is_file():
        msg = (
            f"Query file not found: {file_path}\n"
            "Use -e for inline queries or pipe query via stdin."
        )
        raise InputError(msg)
    try:
        return p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Cannot read query file {file_path}: {e}"
        raise InputError(msg) from e


def resolve_query_source(
    inline: str | None,
    file_path: str | None,
) -> str:
    """Return the SQL to run, or raise InputError when there is none."""
    if inline is not None:
        return inline

    if file_path is not None and file_path != STDIN_MARKER:
        return fold_sql(_read_file(file_path))

    if file_path == STDIN_MARKER or not sys.stdin.isatty():
        return fold_sql(sys.stdin.read())

    msg = "No query provided. Use -e, file path, or pipe to stdin."
    raise InputError(msg)
