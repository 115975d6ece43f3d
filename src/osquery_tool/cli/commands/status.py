from __future__ import annotations

import typer

from osquery_tool.cli.commands._shared import get_service
from osquery_tool.core.exit_codes import ExitCode


def status_command(ctx: typer.Context) -> None:
    """Report whether osqueryi is usable and which mode queries will run in."""
    service = get_service(ctx)
    available = service.is_available()
    env = service.describe_environment()

    typer.echo(f"osqueryi: {env['osqueryi_path']} ({'available' if available else 'unavailable'})")
    typer.echo(f"extension: {env['extension_path'] or 'not found'}")
    typer.echo(f"extension enabled: {'yes' if env['extension_enabled'] else 'no'}")
    typer.echo(
        f"daemon socket: {env['daemon_socket']} "
        f"({'running' if env['daemon_running'] else 'not running'})"
    )
    typer.echo(
        "extension tables: "
        f"{'available' if env['extension_tables_available'] else 'unavailable'}"
    )

    if not available:
        raise typer.Exit(ExitCode.NOT_FOUND)
