"""Query service: osqueryi execution policy.

Builds the osqueryi command line for each call from the current
environment (is the daemon socket there, is the bundled extension
enabled and on disk), runs it through ProcessRunner and decodes the
output. Nothing about the environment is cached between calls; the
daemon can start or stop and the extension can be toggled at any time.
"""

from __future__ import annotations

import os
import time
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from osquery_tool.core.config import ResolvedConfig, find_extension
from osquery_tool.core.exceptions import (
    ExecutionFailedError,
    NotFoundError,
    OsqueryToolError,
    TimeoutError,
)
from osquery_tool.core.extension import (
    AI_DISCOVERY_TABLES,
    AI_TABLE_SCHEMAS,
    EXTENSION_NAME,
    is_extension_table,
)
from osquery_tool.core.logging import get_logger
from osquery_tool.core.models import ProcessInvocation, QueryResult, TableSchema
from osquery_tool.core.parsing import (
    filter_schema_dump,
    parse_json_rows,
    parse_table_list,
)
from osquery_tool.core.process import ProcessRunner
from osquery_tool.core.sockets import (
    cleanup_stale_sockets,
    discard_socket,
    new_socket_path,
)
from osquery_tool.core.validation import validate_sql

if TYPE_CHECKING:
    from collections.abc import Sequence

    from osquery_tool.core.models import ProcessOutcome


class InvocationMode(StrEnum):
    EXTENSION = "extension"
    DAEMON = "daemon"
    STANDALONE = "standalone"


def _socket_argument(invocation: ProcessInvocation) -> str | None:
    args = invocation.arguments
    if "--extensions_socket" in args:
        index = args.index("--extensions_socket")
        if index + 1 < len(args):
            return args[index + 1]
    return None


class OsqueryService:
    """Run read-only osquery SQL and introspect tables.

    Args:
        config: Resolved settings; defaults probe the usual install paths.
        runner: Process executor; shared runners serialize their callers.
        sweep_sockets: Remove stale extension sockets left by crashed runs.
    """

    def __init__(
        self,
        config: ResolvedConfig | None = None,
        runner: ProcessRunner | None = None,
        *,
        sweep_sockets: bool = True,
    ) -> None:
        self.config = config if config is not None else ResolvedConfig()
        self.runner = runner if runner is not None else ProcessRunner()
        self.extension_enabled = self.config.extension_enabled
        if sweep_sockets:
            cleanup_stale_sockets(self.config.socket_dir, self.config.stale_socket_age)

    # -- Environment probes (evaluated on every access) --

    @property
    def osqueryi_path(self) -> str:
        return self.config.osqueryi_path

    @property
    def extension_path(self) -> str | None:
        """Bundled extension location, or None when it is not on disk."""
        explicit = self.config.extension_path
        if explicit is not None:
            return explicit if os.path.isfile(explicit) else None
        return find_extension(self.config.extension_candidates)

    @property
    def daemon_running(self) -> bool:
        return os.path.exists(self.config.daemon_socket)

    @property
    def extension_tables_available(self) -> bool:
        """True when extension tables can be queried by the next call."""
        if self.daemon_running:
            return True
        return self.extension_enabled and self.extension_path is not None

    def describe_environment(self) -> dict[str, Any]:
        return {
            "osqueryi_path": self.osqueryi_path,
            "extension_path": self.extension_path,
            "extension_enabled": self.extension_enabled,
            "daemon_socket": self.config.daemon_socket,
            "daemon_running": self.daemon_running,
            "extension_tables_available": self.extension_tables_available,
        }

    # -- Invocation building --

    def build_invocation(
        self,
        query: str,
        *,
        json_output: bool = True,
        timeout: float | None = None,
    ) -> ProcessInvocation:
        """Construct a fresh osqueryi invocation for query.

        Priority: bundled extension on an isolated socket, then the
        running daemon, then a plain standalone osqueryi. Loading the
        extension goes through the arch wrapper when an architecture is
        configured, because the extension is built for one CPU only.
        """
        log = get_logger("service")
        extension = self.extension_path if self.extension_enabled else None

        args: list[str] = []
        if extension is not None:
            mode = InvocationMode.EXTENSION
            args.extend(
                [
                    "--extensions_socket",
                    new_socket_path(self.config.socket_dir),
                    "--extension",
                    extension,
                    f"--extensions_require={EXTENSION_NAME}",
                    f"--extensions_timeout={self.config.extension_timeout}",
                    "--disable_database",
                ]
            )
        elif self.daemon_running:
            mode = InvocationMode.DAEMON
            args.extend(["--connect", self.config.daemon_socket])
        else:
            mode = InvocationMode.STANDALONE

        if json_output:
            args.append("--json")
        args.append(query)

        executable = self.osqueryi_path
        if mode is InvocationMode.EXTENSION and self.config.extension_arch:
            args = [f"-{self.config.extension_arch}", executable, *args]
            executable = self.config.arch_path

        log.debug("invocation built", mode=str(mode), executable=executable)
        return ProcessInvocation(
            executable=executable,
            arguments=tuple(args),
            timeout=timeout if timeout is not None else self.config.query_timeout,
        )

    def _run(self, invocation: ProcessInvocation) -> ProcessOutcome:
        socket_path = _socket_argument(invocation)
        try:
            return self.runner.run(invocation)
        finally:
            if socket_path is not None:
                discard_socket(socket_path)

    @staticmethod
    def _raise_for_status(outcome: ProcessOutcome) -> None:
        if outcome.exit_code == 0:
            return
        message = (
            outcome.stderr_text.strip()
            or outcome.stdout_text.strip()
            or f"Exit code {outcome.exit_code}"
        )
        raise ExecutionFailedError(message, returncode=outcome.exit_code)

    # -- Query execution --

    def execute(self, sql: str, timeout: float | None = None) -> list[dict[str, Any]]:
        """Validate and run sql; return rows in osqueryi's emission order."""
        query = validate_sql(sql)
        invocation = self.build_invocation(query, json_output=True, timeout=timeout)
        outcome = self._run(invocation)
        self._raise_for_status(outcome)
        return parse_json_rows(outcome.stdout_text)

    def query(
        self,
        sql: str,
        *,
        schema: TableSchema | None = None,
        timeout: float | None = None,
    ) -> QueryResult:
        """Like execute(), wrapped in a QueryResult with ordered columns."""
        log = get_logger("service")
        start_time = time.monotonic()
        rows = self.execute(sql, timeout=timeout)
        duration_ms = (time.monotonic() - start_time) * 1000
        log.debug("query complete", row_count=len(rows), duration_ms=f"{duration_ms:.1f}")
        return QueryResult.from_rows(sql, rows, schema=schema, duration_ms=duration_ms)

    def cancel_current(self) -> None:
        self.runner.cancel()

    # -- Introspection --

    def list_tables(self, name_filter: str | None = None) -> list[str]:
        """Sorted, de-duplicated table names, including extension tables."""
        invocation = self.build_invocation(
            ".tables", json_output=False, timeout=self.config.tables_timeout
        )
        outcome = self._run(invocation)
        self._raise_for_status(outcome)

        tables = set(parse_table_list(outcome.stdout_text))
        if self.extension_tables_available:
            tables.update(AI_DISCOVERY_TABLES)

        result = sorted(tables)
        if name_filter:
            needle = name_filter.casefold()
            result = [name for name in result if needle in name.casefold()]
        return result

    def _schema_blocks(self, tables: Sequence[str]) -> list[str]:
        log = get_logger("service")
        requested = list(dict.fromkeys(tables))
        native = [name for name in requested if not is_extension_table(name)]
        extension_blocks = [
            AI_TABLE_SCHEMAS[name] for name in requested if is_extension_table(name)
        ]
        if not native:
            return extension_blocks

        # One `.schema` dump is cheaper than a round-trip per table.
        invocation = self.build_invocation(
            ".schema", json_output=False, timeout=self.config.schema_timeout
        )
        try:
            outcome = self._run(invocation)
            self._raise_for_status(outcome)
        except (ExecutionFailedError, NotFoundError, TimeoutError) as e:
            if not extension_blocks:
                raise
            log.warning(
                "native schema dump failed, returning extension schemas only",
                error=e.message,
            )
            return extension_blocks

        return filter_schema_dump(outcome.stdout_text, native) + extension_blocks

    def get_schema(self, tables: Sequence[str]) -> str:
        """CREATE TABLE text for the requested tables; "" for no tables."""
        if not tables:
            return ""
        return "\n".join(self._schema_blocks(tables))

    def get_table_schemas(self, tables: Sequence[str]) -> list[TableSchema]:
        if not tables:
            return []
        return [TableSchema.from_create_statement(b) for b in self._schema_blocks(tables)]

    def is_available(self) -> bool:
        """True when osqueryi answers --version with exit code 0. Never raises."""
        invocation = ProcessInvocation(
            executable=self.osqueryi_path,
            arguments=("--version",),
            timeout=self.config.version_timeout,
        )
        try:
            outcome = self.runner.run(invocation)
        except OsqueryToolError as e:
            get_logger("service").debug("osqueryi unavailable", error=e.message)
            return False
        return outcome.exit_code == 0
