"""Subprocess executor for osquery-tool.

Runs one external program at a time with a wall-clock timeout and
supports cancellation from another thread. Timeout, cancellation and
natural completion race each other; a one-shot decision record makes
sure exactly one of them determines the outcome.
"""

from __future__ import annotations

import contextlib
import os
import signal
import subprocess
import threading
import time
from typing import TYPE_CHECKING

import sentry_sdk

from osquery_tool.core.exceptions import (
    CancelledError,
    ExecutionFailedError,
    NotFoundError,
    TimeoutError,
)
from osquery_tool.core.logging import get_logger
from osquery_tool.core.models import ProcessOutcome

if TYPE_CHECKING:
    from osquery_tool.core.models import ProcessInvocation

COMPLETED = "completed"
TIMED_OUT = "timed_out"
CANCELLED = "cancelled"

# Time allowed for a cancelled child to exit on SIGTERM before SIGKILL,
# and for the pipes to drain once the process group has been killed.
_TERMINATE_GRACE = 2.0


class _Decision:
    """Single-assignment outcome shared by run(), cancel() and the deadline."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._outcome: str | None = None

    def decide(self, outcome: str) -> bool:
        """Record outcome if none was recorded yet; True when this call won."""
        with self._lock:
            if self._outcome is not None:
                return False
            self._outcome = outcome
            return True

    @property
    def outcome(self) -> str | None:
        with self._lock:
            return self._outcome


def _signal_group(proc: subprocess.Popen[bytes], sig: signal.Signals) -> None:
    # The child leads its own session, so grandchildren share its pgid.
    with contextlib.suppress(ProcessLookupError, PermissionError):
        os.killpg(proc.pid, sig)


class ProcessRunner:
    """Run external programs one at a time.

    Concurrent run() calls on the same instance queue on an internal
    lock; they never interleave.
    """

    def __init__(self) -> None:
        self._run_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._current: tuple[subprocess.Popen[bytes], _Decision] | None = None

    @property
    def is_running(self) -> bool:
        with self._state_lock:
            return self._current is not None

    def run(self, invocation: ProcessInvocation) -> ProcessOutcome:
        """Execute invocation and return its captured output.

        A non-zero exit status is returned, not raised; interpreting it
        is up to the caller. Raises NotFoundError, TimeoutError,
        CancelledError, or ExecutionFailedError when launch fails.
        """
        log = get_logger("process")
        executable = invocation.executable
        if os.path.isabs(executable) and not os.path.exists(executable):
            raise NotFoundError(executable)

        with self._run_lock:
            log.debug(
                "launching process",
                executable=executable,
                argc=len(invocation.arguments),
                timeout=invocation.timeout,
            )
            with sentry_sdk.start_span(op="subprocess", description=executable) as span:
                start_time = time.monotonic()
                try:
                    proc = subprocess.Popen(
                        invocation.argv,
                        stdin=subprocess.DEVNULL,
                        stdout=subprocess.PIPE,
                        stderr=subprocess.PIPE,
                        start_new_session=True,
                    )
                except FileNotFoundError as e:
                    span.set_status("not_found")
                    raise NotFoundError(executable) from e
                except (OSError, ValueError) as e:
                    # ValueError: an embedded NUL byte in argv.
                    span.set_status("internal_error")
                    raise ExecutionFailedError(str(e), returncode=-1) from e

                decision = _Decision()
                with self._state_lock:
                    self._current = (proc, decision)
                try:
                    stdout, stderr = self._wait(proc, decision, invocation.timeout)
                finally:
                    with self._state_lock:
                        self._current = None

                duration_ms = (time.monotonic() - start_time) * 1000
                span.set_data("duration_ms", duration_ms)
                outcome = decision.outcome

                if outcome == CANCELLED:
                    span.set_status("cancelled")
                    log.warning("process cancelled", executable=executable)
                    raise CancelledError()
                if outcome == TIMED_OUT:
                    span.set_status("deadline_exceeded")
                    log.error(
                        "process timed out",
                        executable=executable,
                        timeout=invocation.timeout,
                    )
                    raise TimeoutError(invocation.timeout)

                span.set_data("exit_code", proc.returncode)
                log.debug(
                    "process complete",
                    exit_code=proc.returncode,
                    duration_ms=f"{duration_ms:.1f}",
                )
                return ProcessOutcome(
                    stdout=stdout, stderr=stderr, exit_code=proc.returncode
                )

    def _wait(
        self,
        proc: subprocess.Popen[bytes],
        decision: _Decision,
        timeout: float,
    ) -> tuple[bytes, bytes]:
        # communicate() drains both pipes, so the child never blocks on a
        # full pipe buffer while we wait.
        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            # The child is still running here; whoever decided first, it
            # must not outlive the deadline.
            decision.decide(TIMED_OUT)
            _signal_group(proc, signal.SIGKILL)
            stdout, stderr = _drain_killed(proc)
        except BaseException:
            # KeyboardInterrupt and friends: the child sits in its own
            # session and would not see the terminal's SIGINT.
            decision.decide(CANCELLED)
            _signal_group(proc, signal.SIGKILL)
            _drain_killed(proc)
            raise
        else:
            decision.decide(COMPLETED)

        if decision.outcome == CANCELLED:
            # Partial output of a cancelled child is never returned.
            return b"", b""
        return stdout, stderr

    def cancel(self) -> None:
        """Terminate the running child, if any.

        The in-flight run() then raises CancelledError. No-op when idle
        or when the child already finished or timed out.
        """
        with self._state_lock:
            current = self._current
        if current is None:
            return

        proc, decision = current
        if not decision.decide(CANCELLED):
            return
        if proc.poll() is not None:
            # Already reaped; its pid may belong to another process now.
            return
        get_logger("process").debug("cancelling process", pid=proc.pid)
        _signal_group(proc, signal.SIGTERM)
        reaper = threading.Timer(_TERMINATE_GRACE, _kill_if_alive, args=(proc,))
        reaper.daemon = True
        reaper.start()


def _drain_killed(proc: subprocess.Popen[bytes]) -> tuple[bytes, bytes]:
    """Collect output of a killed child without waiting on escaped descendants.

    A grandchild that called setsid() survives the group kill and may
    still hold the pipes open; past the grace period its output is
    abandoned so run() stays bounded by timeout + grace.
    """
    try:
        return proc.communicate(timeout=_TERMINATE_GRACE)
    except subprocess.TimeoutExpired:
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()
        proc.wait()
        return b"", b""


def _kill_if_alive(proc: subprocess.Popen[bytes]) -> None:
    if proc.poll() is None:
        _signal_group(proc, signal.SIGKILL)
