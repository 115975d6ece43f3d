"""Exception hierarchy for osquery-tool.

All exceptions carry an exit_code for CLI return value mapping.
Every kind renders a distinct message so callers can tell a missing
binary from a bad query from a hung process.
"""

from __future__ import annotations

from osquery_tool.core.exit_codes import ExitCode

PREVIEW_LIMIT = 200


class OsqueryToolError(Exception):
    """Base exception for all osquery-tool errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(OsqueryToolError):
    """Executable (osqueryi, arch wrapper) is missing."""

    exit_code: int = ExitCode.NOT_FOUND

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"Executable not found: {path}. "
            "Install osquery (e.g. brew install osquery) or set osqueryi_path."
        )


class InputError(OsqueryToolError):
    """File not found, invalid parameters."""

    exit_code: int = ExitCode.INPUT_ERROR


class InvalidQueryError(InputError):
    """SQL rejected before any process was spawned."""

    def __init__(self, details: str) -> None:
        self.details = details
        super().__init__(f"Invalid SQL: {details}")


class ExecutionFailedError(OsqueryToolError):
    """osqueryi ran but reported failure, or could not be launched."""

    exit_code: int = ExitCode.EXECUTION_ERROR

    def __init__(self, stderr: str, returncode: int | None = None) -> None:
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(f"Query failed: {stderr}")


class TimeoutError(OsqueryToolError):
    """Deadline exceeded; the child was killed."""

    exit_code: int = ExitCode.TIMEOUT

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"osqueryi timed out after {timeout:g}s")


class CancelledError(OsqueryToolError):
    """Explicit cancellation won the race against normal completion."""

    exit_code: int = ExitCode.CANCELLED

    def __init__(self) -> None:
        super().__init__("Query was cancelled")


class ParseError(OsqueryToolError):
    """osqueryi output was not the expected structured format."""

    exit_code: int = ExitCode.OUTPUT_ERROR

    def __init__(self, details: str, output: str = "") -> None:
        self.details = details
        self.preview = output[:PREVIEW_LIMIT]
        message = f"Failed to parse osquery output: {details}"
        if self.preview:
            message += f"\nOutput: {self.preview}"
        super().__init__(message)


class ConfigError(OsqueryToolError):
    """Malformed config, invalid setting."""

    exit_code: int = ExitCode.CONFIG_ERROR
