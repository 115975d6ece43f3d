from __future__ import annotations

from typing import Annotated

import typer

from osquery_tool.cli.commands._shared import get_service
from osquery_tool.cli.output import write_lines


def schema_command(
    ctx: typer.Context,
    tables: Annotated[
        list[str],
        typer.Argument(help="Table names"),
    ],
    columns: Annotated[
        bool,
        typer.Option("--columns", "-c", help="List columns with normalized types"),
    ] = False,
) -> None:
    """
    Show CREATE TABLE definitions for the given tables.

    Extension tables are answered from the bundled catalog; all other
    tables come from a single osqueryi schema dump.
    """
    service = get_service(ctx)

    if columns:
        for schema in service.get_table_schemas(tables):
            write_lines(f"{schema.name}\t{col.name}\t{col.type_name}" for col in schema.columns)
        return

    text = service.get_schema(tables)
    if not text:
        typer.echo("No schema found for specified tables", err=True)
        raise typer.Exit(1)
    write_lines([text])
