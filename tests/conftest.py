"""Shared test fixtures for osquery-tool."""

from __future__ import annotations

import stat
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from typer.testing import CliRunner

from osquery_tool.core.config import ResolvedConfig
from osquery_tool.core.models import ProcessOutcome
from osquery_tool.core.service import OsqueryService

PROCESS_ROWS_JSON = '[{"name":"launchd","pid":"1"},{"name":"kernel_task","pid":"0"}]'

# Stand-in for osqueryi: answers by its last argument and records argv.
FAKE_OSQUERYI = """#!/bin/sh
printf '%s\\n' "$@" > "$0.args"
for last in "$@"; do :; done
case "$last" in
  --version) echo "osqueryi version 5.12.1" ;;
  .tables) printf '  => processes\\n  => users\\n' ;;
  .schema) printf 'CREATE TABLE processes(`pid` BIGINT, `name` TEXT);\\nCREATE TABLE users(`uid` BIGINT, `username` TEXT);\\n' ;;
  *fail*) echo "Error: no such table: fail" >&2; exit 1 ;;
  *) printf '%s\\n' '""" + PROCESS_ROWS_JSON + """' ;;
esac
"""

_ENV_VARS = (
    "OSQUERYI_PATH",
    "OSQUERY_TOOL_EXTENSION",
    "OSQUERY_TOOL_EXTENSION_ENABLED",
    "OSQUERY_TOOL_DAEMON_SOCKET",
    "OSQUERY_TOOL_SOCKET_DIR",
    "OSQUERY_TOOL_SENTRY_DSN",
)


class SpyRunner:
    """ProcessRunner double that records invocations and replays outcomes."""

    def __init__(self, *outcomes: ProcessOutcome, error: Exception | None = None):
        self.outcomes = list(outcomes) or [ProcessOutcome()]
        self.error = error
        self.invocations = []
        self.cancel_calls = 0

    def run(self, invocation):
        self.invocations.append(invocation)
        if self.error is not None:
            raise self.error
        if len(self.outcomes) > 1:
            return self.outcomes.pop(0)
        return self.outcomes[0]

    def cancel(self):
        self.cancel_calls += 1


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of config resolution."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_osqueryi(temp_dir):
    """Executable shell script mimicking osqueryi."""
    path = temp_dir / "osqueryi"
    path.write_text(FAKE_OSQUERYI)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def extension_file(temp_dir):
    path = temp_dir / "ai_tables.ext"
    path.write_bytes(b"\x00")
    return path


@pytest.fixture
def base_config(temp_dir, fake_osqueryi):
    """Config with no daemon, no extension and an isolated socket dir."""
    return ResolvedConfig(
        osqueryi_path=str(fake_osqueryi),
        extension_candidates=(),
        daemon_socket=str(temp_dir / "osquery.em"),
        socket_dir=str(temp_dir),
        extension_arch=None,
    )


@pytest.fixture
def make_service(base_config):
    """Build an OsqueryService around a SpyRunner.

    Keyword arguments other than outcomes/error override config fields.
    """

    def build(*outcomes, error=None, **overrides):
        spy = SpyRunner(*outcomes, error=error)
        config = base_config.model_copy(update=overrides)
        return OsqueryService(config, runner=spy, sweep_sockets=False), spy

    return build


@pytest.fixture
def config_file(temp_dir, fake_osqueryi):
    """TOML config pointing the CLI at the fake osqueryi."""
    path = temp_dir / "config.toml"
    path.write_text(
        f'osqueryi_path = "{fake_osqueryi}"\n'
        f'daemon_socket = "{temp_dir / "osquery.em"}"\n'
        f'socket_dir = "{temp_dir}"\n'
        "extension_enabled = false\n"
    )
    return path
