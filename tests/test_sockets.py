"""Tests for extension socket naming and cleanup."""

import os
import threading
import time

import pytest

from osquery_tool.core.sockets import (
    SOCKET_PREFIX,
    SOCKET_SUFFIX,
    cleanup_stale_sockets,
    discard_socket,
    new_socket_path,
)


def age(path, seconds):
    past = time.time() - seconds
    os.utime(path, (past, past))


@pytest.mark.unit
def test_socket_path_shape(temp_dir):
    path = new_socket_path(temp_dir)
    name = os.path.basename(path)
    assert os.path.dirname(path) == str(temp_dir)
    assert name.startswith(SOCKET_PREFIX)
    assert name.endswith(SOCKET_SUFFIX)


@pytest.mark.unit
def test_socket_paths_unique_across_threads(temp_dir):
    paths = []
    lock = threading.Lock()

    def target():
        generated = [new_socket_path(temp_dir) for _ in range(200)]
        with lock:
            paths.extend(generated)

    threads = [threading.Thread(target=target) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(paths) == 1600
    assert len(set(paths)) == len(paths)


@pytest.mark.unit
def test_cleanup_removes_only_stale_sockets(temp_dir):
    stale = temp_dir / f"{SOCKET_PREFIX}old{SOCKET_SUFFIX}"
    stale_ext = temp_dir / f"{SOCKET_PREFIX}old{SOCKET_SUFFIX}.12345"
    fresh = temp_dir / f"{SOCKET_PREFIX}new{SOCKET_SUFFIX}"
    unrelated = temp_dir / "other.sock"
    for path in (stale, stale_ext, fresh, unrelated):
        path.write_text("")
    age(stale, 7200)
    age(stale_ext, 7200)
    age(unrelated, 7200)

    removed = cleanup_stale_sockets(temp_dir, max_age=3600)

    assert sorted(removed) == sorted([stale, stale_ext])
    assert not stale.exists()
    assert fresh.exists()
    assert unrelated.exists()


@pytest.mark.unit
def test_cleanup_missing_directory(temp_dir):
    assert cleanup_stale_sockets(temp_dir / "missing", max_age=0) == []


@pytest.mark.unit
def test_discard_socket_removes_derived_sockets(temp_dir):
    path = new_socket_path(temp_dir)
    derived = f"{path}.4242"
    for p in (path, derived):
        with open(p, "w"):
            pass

    discard_socket(path)

    assert not os.path.exists(path)
    assert not os.path.exists(derived)


@pytest.mark.unit
def test_discard_socket_missing_is_noop(temp_dir):
    discard_socket(new_socket_path(temp_dir))
