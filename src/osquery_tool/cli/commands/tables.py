from __future__ import annotations

from typing import Annotated

import typer

from osquery_tool.cli.commands._shared import get_service
from osquery_tool.cli.output import write_lines
from osquery_tool.core.extension import COMMON_TABLES


def tables_command(
    ctx: typer.Context,
    name_filter: Annotated[
        str | None,
        typer.Option("--filter", "-F", help="Case-insensitive substring filter"),
    ] = None,
    common: Annotated[
        bool,
        typer.Option("--common", help="Only tables from the common-tables catalog"),
    ] = False,
) -> None:
    """List available osquery tables, including extension tables."""
    tables = get_service(ctx).list_tables(name_filter)
    if common:
        tables = [name for name in tables if name in COMMON_TABLES]
    write_lines(tables)
    typer.echo(f"{len(tables)} table(s)", err=True)
