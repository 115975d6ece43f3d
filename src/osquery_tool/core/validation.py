"""SQL validation performed before osqueryi is ever spawned.

osquery is read-only by contract; these checks are an extra layer on
top of that. The SQL text ends up as a single argv entry, possibly
behind the arch wrapper, so shell metacharacters and control
characters are refused outright.
"""

from __future__ import annotations

from osquery_tool.core.exceptions import InvalidQueryError
from osquery_tool.core.logging import get_logger

MAX_QUERY_LENGTH = 10_000

ALLOWED_PREFIXES: tuple[str, ...] = ("SELECT", "PRAGMA", "EXPLAIN")

DISALLOWED_SEQUENCES: tuple[str, ...] = (
    "$(",
    "`",
    "&&",
    "||",
    "|",
    ">",
    "<",
    "\n",
    "\r",
    "\\x",
    "\\u",
)


def validate_sql(sql: str) -> str:
    """Return the trimmed SQL or raise InvalidQueryError.

    Multiple statements separated by ';' are allowed; osqueryi runs them
    in order.
    """
    log = get_logger("validation")
    trimmed = sql.strip()

    if not trimmed:
        log.warning("query rejected", reason="empty")
        raise InvalidQueryError("Empty query")

    if len(trimmed) > MAX_QUERY_LENGTH:
        log.warning("query rejected", reason="too long", length=len(trimmed))
        msg = f"Query too long ({len(trimmed):,} characters, max {MAX_QUERY_LENGTH:,})"
        raise InvalidQueryError(msg)

    if not trimmed.upper().startswith(ALLOWED_PREFIXES):
        log.warning("query rejected", reason="statement type")
        msg = "Only SELECT, PRAGMA and EXPLAIN statements are allowed"
        raise InvalidQueryError(msg)

    for sequence in DISALLOWED_SEQUENCES:
        if sequence in trimmed:
            log.warning("query rejected", reason="disallowed sequence")
            msg = f"Query contains disallowed characters: {sequence!r}"
            raise InvalidQueryError(msg)

    return trimmed
