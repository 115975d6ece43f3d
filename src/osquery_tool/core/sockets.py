"""Per-invocation extension socket paths and stale socket cleanup."""

from __future__ import annotations

import time
import uuid
from pathlib import Path

from osquery_tool.core.logging import get_logger

SOCKET_PREFIX = "osquery_tool_"
SOCKET_SUFFIX = ".sock"


def new_socket_path(socket_dir: str | Path) -> str:
    """Fresh, collision-free socket path for one osqueryi run.

    Uniqueness comes from a random UUID, so concurrent callers need no
    shared counter or lock.
    """
    return str(Path(socket_dir) / f"{SOCKET_PREFIX}{uuid.uuid4().hex}{SOCKET_SUFFIX}")


def cleanup_stale_sockets(socket_dir: str | Path, max_age: float) -> list[Path]:
    """Remove leftover sockets older than max_age seconds; return removed paths."""
    log = get_logger("sockets")
    directory = Path(socket_dir)
    removed: list[Path] = []
    now = time.time()

    try:
        candidates = list(directory.glob(f"{SOCKET_PREFIX}*{SOCKET_SUFFIX}*"))
    except OSError as e:
        log.debug("socket directory unreadable", path=str(directory), error=str(e))
        return removed

    for path in candidates:
        try:
            age = now - path.lstat().st_mtime
            if age <= max_age:
                continue
            path.unlink()
        except FileNotFoundError:
            # Another process cleaned it up first.
            continue
        except OSError as e:
            log.debug("could not remove stale socket", path=str(path), error=str(e))
            continue
        removed.append(path)

    if removed:
        log.debug("removed stale sockets", count=len(removed))
    return removed


def discard_socket(socket_path: str | Path) -> None:
    """Remove a socket and the per-extension sockets osquery derives from it."""
    path = Path(socket_path)
    for candidate in (path, *path.parent.glob(f"{path.name}.*")):
        try:
            candidate.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            get_logger("sockets").debug(
                "could not remove socket", path=str(candidate), error=str(e)
            )
