"""Configuration management for osquery-tool.

Handles the TOML config file, environment variables, CLI overrides and
probing of the osqueryi / extension install locations.

Precedence order (highest to lowest):
1. CLI flags (--osqueryi, --extension, --no-extension, --timeout)
2. Environment variables (OSQUERYI_PATH, OSQUERY_TOOL_*)
3. Config file values
4. Built-in defaults
"""

from __future__ import annotations

import os
import sys
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from osquery_tool.core.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "osquery-tool" / "config.toml"

OSQUERYI_CANDIDATES: tuple[str, ...] = (
    "/opt/homebrew/bin/osqueryi",  # Apple Silicon Homebrew
    "/usr/local/bin/osqueryi",  # Intel Homebrew
    "/usr/bin/osqueryi",
)

EXTENSION_CANDIDATES: tuple[str, ...] = (
    "/opt/homebrew/lib/osquery-tool/ai_tables.ext",
    "/usr/local/lib/osquery-tool/ai_tables.ext",
    str(Path.home() / ".local" / "lib" / "osquery-tool" / "ai_tables.ext"),
)

_ENV_VARS: dict[str, str] = {
    "OSQUERYI_PATH": "osqueryi_path",
    "OSQUERY_TOOL_EXTENSION": "extension_path",
    "OSQUERY_TOOL_EXTENSION_ENABLED": "extension_enabled",
    "OSQUERY_TOOL_DAEMON_SOCKET": "daemon_socket",
    "OSQUERY_TOOL_SOCKET_DIR": "socket_dir",
    "OSQUERY_TOOL_SENTRY_DSN": "sentry_dsn",
}

# The bundled extension ships as an arm64-only macOS build.
_DEFAULT_ARCH: str | None = "arm64" if sys.platform == "darwin" else None

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def find_osqueryi(candidates: tuple[str, ...] = OSQUERYI_CANDIDATES) -> str:
    """First existing install location, else the bare name for PATH lookup."""
    for path in candidates:
        if os.path.isfile(path):
            return path
    return "osqueryi"


def find_extension(candidates: tuple[str, ...] = EXTENSION_CANDIDATES) -> str | None:
    for path in candidates:
        if os.path.isfile(path):
            return path
    return None


class AppConfig(BaseModel):
    """Contents of config.toml; every key optional."""

    model_config = ConfigDict(extra="forbid")

    osqueryi_path: str | None = None
    extension_path: str | None = None
    extension_enabled: bool = True
    daemon_socket: str = "/var/osquery/osquery.em"
    socket_dir: str = "/tmp"
    arch_path: str = "/usr/bin/arch"
    extension_arch: str | None = _DEFAULT_ARCH
    query_timeout: float = 30.0
    tables_timeout: float = 10.0
    schema_timeout: float = 15.0
    version_timeout: float = 5.0
    extension_timeout: int = 10
    stale_socket_age: float = 3600.0
    sentry_dsn: str | None = None

    @field_validator(
        "query_timeout", "tables_timeout", "schema_timeout", "version_timeout"
    )
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            msg = f"timeout must be positive, got {v}"
            raise ValueError(msg)
        return v


class ResolvedConfig(BaseModel):
    """Effective settings handed to OsqueryService.

    extension_path is an explicit override; when None the service probes
    EXTENSION_CANDIDATES on every call.
    """

    osqueryi_path: str = "osqueryi"
    extension_path: str | None = None
    extension_candidates: tuple[str, ...] = EXTENSION_CANDIDATES
    extension_enabled: bool = True
    daemon_socket: str = "/var/osquery/osquery.em"
    socket_dir: str = "/tmp"
    arch_path: str = "/usr/bin/arch"
    extension_arch: str | None = _DEFAULT_ARCH
    query_timeout: float = 30.0
    tables_timeout: float = 10.0
    schema_timeout: float = 15.0
    version_timeout: float = 5.0
    extension_timeout: int = 10
    stale_socket_age: float = 3600.0
    sentry_dsn: str | None = None
    sources: dict[str, str] = {}


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file.

    Returns default AppConfig if file doesn't exist.
    Raises ConfigError on malformed TOML or invalid config.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def _parse_bool(env_var: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    msg = f"Invalid {env_var} value: '{value}'. Must be true or false"
    raise ConfigError(msg)


def resolve_config(config: AppConfig, **cli_overrides: Any) -> ResolvedConfig:
    """Resolve configuration using precedence chain.

    CLI > env > config file > built-in defaults.
    """
    sources: dict[str, str] = {}
    resolved: dict[str, Any] = {}

    # Layer 1 and 2: built-in defaults, overridden by the config file
    for key in AppConfig.model_fields:
        value = getattr(config, key)
        resolved[key] = value
        sources[key] = "config" if key in config.model_fields_set else "default"
    if resolved["osqueryi_path"] is None:
        resolved["osqueryi_path"] = find_osqueryi()
        sources["osqueryi_path"] = "default"

    # Layer 3: environment variables
    for env_var, field_name in _ENV_VARS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        if field_name == "extension_enabled":
            resolved[field_name] = _parse_bool(env_var, value)
        else:
            resolved[field_name] = value
        sources[field_name] = f"env: {env_var}"

    # Layer 4: CLI flags (highest priority)
    cli_to_field = {
        "osqueryi": "osqueryi_path",
        "extension": "extension_path",
        "extension_enabled": "extension_enabled",
        "timeout": "query_timeout",
    }
    cli_flag_names = {
        "osqueryi": "--osqueryi",
        "extension": "--extension",
        "extension_enabled": "--no-extension",
        "timeout": "--timeout",
    }
    for cli_name, field_name in cli_to_field.items():
        value = cli_overrides.get(cli_name)
        if value is not None:
            resolved[field_name] = value
            sources[field_name] = f"cli: {cli_flag_names[cli_name]}"

    resolved["sources"] = sources
    try:
        return ResolvedConfig(**resolved)
    except ValidationError as e:
        msg = f"Invalid configuration value: {e}"
        raise ConfigError(msg) from e
