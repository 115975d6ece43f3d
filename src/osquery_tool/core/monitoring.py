"""Sentry integration for error tracking and subprocess tracing.

Sentry is initialized early in main() after logging setup. Without a
DSN the SDK stays inert, so spans and captures are no-ops.
"""

from __future__ import annotations

import sentry_sdk

from osquery_tool.__about__ import __version__


def setup_sentry(dsn: str | None = None, environment: str = "local") -> None:
    """Initialize Sentry; a missing DSN disables event delivery."""
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=0.03,
        environment=environment,
        release=__version__,
        attach_stacktrace=True,
        send_default_pii=False,
    )
