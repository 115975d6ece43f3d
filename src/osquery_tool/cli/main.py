"""osquery-tool main entry point and command registration."""

from __future__ import annotations

import atexit
from pathlib import Path  # noqa: TC003
from typing import Annotated

import sentry_sdk
import typer

from osquery_tool.__about__ import __version__
from osquery_tool.cli.commands._shared import get_resolved_config
from osquery_tool.cli.commands.config import config_app
from osquery_tool.cli.commands.query import query_command
from osquery_tool.cli.commands.schema import schema_command
from osquery_tool.cli.commands.status import status_command
from osquery_tool.cli.commands.tables import tables_command
from osquery_tool.core.exceptions import OsqueryToolError
from osquery_tool.core.exit_codes import ExitCode
from osquery_tool.core.logging import bind_command, setup_logging
from osquery_tool.core.monitoring import setup_sentry

app = typer.Typer(
    help="osquery-tool - read-only osquery SQL from the command line",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")
app.command("query")(query_command)
app.command("tables")(tables_command)
app.command("schema")(schema_command)
app.command("status")(status_command)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"osquery-tool {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable verbose logging"),
    ] = False,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config file"),
    ] = None,
    osqueryi: Annotated[
        str | None,
        typer.Option("--osqueryi", help="Path to the osqueryi binary"),
    ] = None,
    extension: Annotated[
        str | None,
        typer.Option("--extension", help="Path to the ai_tables extension"),
    ] = None,
    no_extension: Annotated[
        bool,
        typer.Option("--no-extension", help="Do not load the bundled extension"),
    ] = False,
    compact: Annotated[
        bool,
        typer.Option("--compact", help="Compact JSON output (no indentation)"),
    ] = False,
) -> None:
    """osquery-tool - read-only osquery SQL from the command line."""
    setup_logging(verbose)
    bind_command(ctx.invoked_subcommand)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_file"] = config_file
    ctx.obj["osqueryi"] = osqueryi
    ctx.obj["extension"] = extension
    ctx.obj["extension_enabled"] = False if no_extension else None
    ctx.obj["compact"] = compact

    setup_sentry(get_resolved_config(ctx).sentry_dsn)
    transaction = sentry_sdk.start_transaction(
        op="cli", name=ctx.invoked_subcommand or "osquery-tool"
    )
    transaction.__enter__()

    def cleanup() -> None:
        transaction.__exit__(None, None, None)
        sentry_sdk.flush(timeout=2)

    atexit.register(cleanup)


def run() -> None:
    """Entry point with global error handling."""
    try:
        app()
    except OsqueryToolError as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e.message}", err=True)
        raise SystemExit(e.exit_code) from None
    except SystemExit:
        raise
    except KeyboardInterrupt:
        raise SystemExit(ExitCode.CANCELLED) from None
    except Exception as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e}", err=True)
        raise SystemExit(ExitCode.GENERAL_ERROR) from None
