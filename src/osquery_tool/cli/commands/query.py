from __future__ import annotations

import sys
from typing import Annotated

import typer

from osquery_tool.cli.commands._shared import get_service
from osquery_tool.cli.output import write_json
from osquery_tool.core.exceptions import CancelledError, InputError
from osquery_tool.core.exit_codes import ExitCode
from osquery_tool.core.query_source import resolve_query_source


def query_command(
    ctx: typer.Context,
    file: Annotated[
        str | None,
        typer.Argument(help="SQL file to execute ('-' reads stdin)"),
    ] = None,
    execute: Annotated[
        str | None,
        typer.Option("--execute", "-e", help="Execute inline SQL query"),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Query timeout in seconds", min=0.1),
    ] = None,
) -> None:
    """Execute an osquery SQL query from file, inline (-e), or stdin."""
    try:
        is_tty = sys.stdin.isatty()
    except (ValueError, AttributeError):
        is_tty = False
    if execute is None and file is None and is_tty:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    try:
        sql = resolve_query_source(inline=execute, file_path=file)
    except InputError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(ExitCode.INPUT_ERROR) from exc

    service = get_service(ctx, timeout=timeout)
    try:
        result = service.query(sql)
    except KeyboardInterrupt:
        service.cancel_current()
        raise CancelledError() from None

    write_json(result, compact=ctx.ensure_object(dict).get("compact", False))
