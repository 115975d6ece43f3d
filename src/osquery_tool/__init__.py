"""osquery-tool: drive osqueryi as a sandboxed, read-only query backend."""

from osquery_tool.__about__ import __version__

__all__ = ["__version__"]
