"""Tests for the exception hierarchy and exit codes."""

import pytest

from osquery_tool.core.exceptions import (
    PREVIEW_LIMIT,
    CancelledError,
    ConfigError,
    ExecutionFailedError,
    InputError,
    InvalidQueryError,
    NotFoundError,
    OsqueryToolError,
    ParseError,
    TimeoutError,
)
from osquery_tool.core.exit_codes import ExitCode


@pytest.mark.unit
class TestExitCodes:
    def test_exit_code_values(self):
        assert ExitCode.SUCCESS == 0
        assert ExitCode.GENERAL_ERROR == 1
        assert ExitCode.USAGE_ERROR == 2
        assert ExitCode.INPUT_ERROR == 3
        assert ExitCode.OUTPUT_ERROR == 4
        assert ExitCode.NOT_FOUND == 5
        assert ExitCode.TIMEOUT == 6
        assert ExitCode.CONFIG_ERROR == 7
        assert ExitCode.EXECUTION_ERROR == 8
        assert ExitCode.CANCELLED == 130

    def test_exit_code_is_int(self):
        for code in ExitCode:
            assert isinstance(code, int)


@pytest.mark.unit
class TestOsqueryToolError:
    def test_base_exception(self):
        err = OsqueryToolError("test error")
        assert str(err) == "test error"
        assert err.message == "test error"
        assert err.exit_code == ExitCode.GENERAL_ERROR


@pytest.mark.unit
class TestNotFoundError:
    def test_includes_path(self):
        err = NotFoundError("/usr/bin/missing")
        assert err.path == "/usr/bin/missing"
        assert "not found" in err.message
        assert "/usr/bin/missing" in err.message
        assert "brew install osquery" in err.message
        assert err.exit_code == ExitCode.NOT_FOUND


@pytest.mark.unit
class TestInvalidQueryError:
    def test_is_input_error(self):
        err = InvalidQueryError("Empty query")
        assert isinstance(err, InputError)
        assert err.exit_code == ExitCode.INPUT_ERROR

    def test_message(self):
        err = InvalidQueryError("missing semicolon")
        assert err.message == "Invalid SQL: missing semicolon"
        assert err.details == "missing semicolon"


@pytest.mark.unit
class TestExecutionFailedError:
    def test_carries_stderr_and_returncode(self):
        err = ExecutionFailedError("no such table: nope", returncode=1)
        assert err.stderr == "no such table: nope"
        assert err.returncode == 1
        assert "Query failed" in err.message
        assert err.exit_code == ExitCode.EXECUTION_ERROR


@pytest.mark.unit
class TestTimeoutError:
    def test_includes_duration(self):
        err = TimeoutError(2.5)
        assert err.timeout == 2.5
        assert "timed out after 2.5s" in err.message
        assert err.exit_code == ExitCode.TIMEOUT

    def test_shadows_builtin_name_only(self):
        assert not issubclass(TimeoutError, OSError)


@pytest.mark.unit
class TestCancelledError:
    def test_message(self):
        err = CancelledError()
        assert "cancelled" in err.message
        assert err.exit_code == ExitCode.CANCELLED


@pytest.mark.unit
class TestParseError:
    def test_preview_is_bounded(self):
        err = ParseError("Expecting value", "x" * 5000)
        assert len(err.preview) == PREVIEW_LIMIT
        assert "x" * (PREVIEW_LIMIT + 1) not in err.message
        assert err.message.startswith("Failed to parse osquery output")
        assert err.exit_code == ExitCode.OUTPUT_ERROR

    def test_without_output(self):
        err = ParseError("unexpected token")
        assert err.preview == ""
        assert "Output:" not in err.message


@pytest.mark.unit
class TestExceptionCatching:
    def test_catch_all_by_base(self):
        errors = [
            NotFoundError("/x"),
            InvalidQueryError("bad"),
            ExecutionFailedError("bad"),
            TimeoutError(1),
            CancelledError(),
            ParseError("bad"),
            ConfigError("bad"),
        ]
        for err in errors:
            with pytest.raises(OsqueryToolError):
                raise err

    def test_messages_are_distinct(self):
        messages = {
            NotFoundError("/x").message,
            InvalidQueryError("x").message,
            ExecutionFailedError("x").message,
            TimeoutError(1).message,
            CancelledError().message,
            ParseError("x").message,
        }
        assert len(messages) == 6
