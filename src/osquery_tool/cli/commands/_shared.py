"""Shared CLI plumbing for command modules: config and service creation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from osquery_tool.core.config import load_config, resolve_config
from osquery_tool.core.service import OsqueryService

if TYPE_CHECKING:
    import typer

    from osquery_tool.core.config import ResolvedConfig


def get_resolved_config(
    ctx: typer.Context, timeout: float | None = None
) -> ResolvedConfig:
    obj = ctx.ensure_object(dict)
    config = load_config(obj.get("config_file"))

    cli_overrides: dict[str, Any] = {}
    for key in ("osqueryi", "extension", "extension_enabled"):
        val = obj.get(key)
        if val is not None:
            cli_overrides[key] = val
    if timeout is not None:
        cli_overrides["timeout"] = timeout

    return resolve_config(config, **cli_overrides)


def get_service(ctx: typer.Context, timeout: float | None = None) -> OsqueryService:
    return OsqueryService(get_resolved_config(ctx, timeout=timeout))
