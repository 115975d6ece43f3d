"""Configuration inspection CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from osquery_tool.cli.commands._shared import get_resolved_config
from osquery_tool.core.config import DEFAULT_CONFIG_PATH

if TYPE_CHECKING:
    from pathlib import Path

config_app = typer.Typer(help="Configuration commands")


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context) -> None:
    if not ctx.invoked_subcommand:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _display(value: object) -> str:
    if value is None:
        return "not set"
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Display resolved configuration with source attribution."""
    resolved = get_resolved_config(ctx)
    sources = resolved.sources

    typer.echo("Paths (resolved):")
    for field_name in ("osqueryi_path", "extension_path", "daemon_socket", "socket_dir"):
        value = getattr(resolved, field_name)
        source = sources.get(field_name, "default")
        typer.echo(f"  {field_name}: {_display(value)} ({source})")

    typer.echo("")
    typer.echo("Extension:")
    for field_name in ("extension_enabled", "extension_arch", "extension_timeout"):
        value = getattr(resolved, field_name)
        source = sources.get(field_name, "default")
        typer.echo(f"  {field_name}: {_display(value)} ({source})")

    typer.echo("")
    typer.echo("Timeouts:")
    for field_name in ("query_timeout", "tables_timeout", "schema_timeout", "version_timeout"):
        value = getattr(resolved, field_name)
        source = sources.get(field_name, "default")
        typer.echo(f"  {field_name}: {value}s ({source})")

    typer.echo("")
    config_path: Path | None = ctx.ensure_object(dict).get("config_file")
    typer.echo(f"Config File: {config_path or DEFAULT_CONFIG_PATH}")
