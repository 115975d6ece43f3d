"""structlog setup for osquery-tool.

Everything is written to stderr; stdout carries only query results so
`osquery-tool query ... | jq` keeps working with --verbose on.
"""

import logging
import sys
from typing import Any

import structlog

DEFAULT_LEVEL = logging.WARNING


class _LazyStderrFactory:
    """Look up sys.stderr each time a logger is built.

    CliRunner replaces stderr per invocation; a handle captured at
    configure() time would point at a closed stream.
    """

    def __call__(self, *args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def setup_logging(verbose: bool = False) -> None:
    """Install the stderr console logger.

    Args:
        verbose: Show debug events (argv sizes, invocation mode, exit
            codes, durations). Without it only warnings and errors print.
    """
    level = logging.DEBUG if verbose else DEFAULT_LEVEL
    structlog.contextvars.clear_contextvars()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_LazyStderrFactory(),
        cache_logger_on_first_use=False,
    )


def bind_command(command: str | None) -> None:
    """Tag every following event with the CLI subcommand being run."""
    if command:
        structlog.contextvars.bind_contextvars(command=command)


def get_logger(component: str | None = None) -> Any:
    """Logger for one part of the tool, e.g. "process" or "service".

    Call inside functions only: a module-level logger would be created
    before setup_logging() picks the level.
    """
    log = structlog.get_logger()
    if component:
        return log.bind(component=component)
    return log
