"""Static catalog for the bundled ai_tables extension.

osqueryi's `.tables` and `.schema` commands do not see extension
tables, so their names and schemas are kept here and merged into the
native listings.
"""

from __future__ import annotations

EXTENSION_NAME = "ai_tables"

AI_DISCOVERY_TABLES: tuple[str, ...] = (
    "ai_tools_installed",
    "ai_mcp_servers",
    "ai_env_vars",
    "ai_browser_extensions",
    "ai_code_assistants",
    "ai_api_keys",
    "ai_local_servers",
)


def _create(table: str, *columns: str) -> str:
    body = ",\n".join(f"  {column} TEXT" for column in columns)
    return f"CREATE TABLE {table} (\n{body}\n);"


AI_TABLE_SCHEMAS: dict[str, str] = {
    "ai_tools_installed": _create(
        "ai_tools_installed",
        "name",
        "category",
        "path",
        "version",
        "installed",
        "running",
        "config_path",
    ),
    "ai_mcp_servers": _create(
        "ai_mcp_servers",
        "name",
        "config_file",
        "server_type",
        "command",
        "args",
        "url",
        "has_env_vars",
        "has_api_key",
        "source_app",
    ),
    "ai_env_vars": _create(
        "ai_env_vars",
        "variable_name",
        "source",
        "source_file",
        "is_set",
        "value_preview",
        "category",
    ),
    "ai_browser_extensions": _create(
        "ai_browser_extensions",
        "name",
        "browser",
        "extension_id",
        "version",
        "enabled",
        "ai_related",
        "path",
    ),
    "ai_code_assistants": _create(
        "ai_code_assistants",
        "name",
        "tool",
        "config_type",
        "config_path",
        "enabled",
        "details",
    ),
    "ai_api_keys": _create(
        "ai_api_keys",
        "service",
        "source",
        "env_var_name",
        "key_present",
        "key_prefix",
        "key_length",
    ),
    "ai_local_servers": _create(
        "ai_local_servers",
        "name",
        "service_type",
        "pid",
        "port",
        "status",
        "endpoint",
        "model_loaded",
        "version",
    ),
}

# Tables worth offering first when building a query prompt.
COMMON_TABLES: frozenset[str] = frozenset(
    {
        # System info
        "uptime",
        "osquery_info",
        "system_info",
        "os_version",
        "kernel_info",
        # Users & groups
        "users",
        "groups",
        "logged_in_users",
        # Processes
        "processes",
        "process_open_files",
        # Network
        "listening_ports",
        "interface_details",
        "routes",
        "dns_resolvers",
        "etc_hosts",
        "arp_cache",
        "wifi_status",
        # Hardware
        "usb_devices",
        "battery",
        "cpu_info",
        "memory_info",
        # Storage
        "mounts",
        "disk_encryption",
        # Software
        "apps",
        "homebrew_packages",
        # Startup & services
        "launchd",
        "startup_items",
        # Security
        "sip_config",
        "gatekeeper",
        "certificates",
        "keychain_items",
        "ssh_keys",
        "authorization_mechanisms",
        # Files
        "file",
        "hash",
        "extended_attributes",
        *AI_DISCOVERY_TABLES,
    }
)

DEFAULT_ENABLED_TABLES: tuple[str, ...] = (
    "uptime",
    "osquery_info",
    "system_info",
    "os_version",
    "users",
    "logged_in_users",
    "processes",
    "listening_ports",
    "interface_details",
    "wifi_status",
    "battery",
    "mounts",
    "disk_encryption",
    "apps",
    "homebrew_packages",
    "launchd",
    "startup_items",
    "sip_config",
    "gatekeeper",
    *AI_DISCOVERY_TABLES,
)


def is_extension_table(name: str) -> bool:
    return name in AI_TABLE_SCHEMAS
