"""
Filesystem primitives for the fossil tree.

Every write in the store goes through ``atomic_write_bytes``: the data is
written to a temporary file in the destination directory, flushed and
fsynced, then moved into place with ``os.replace``. A reader therefore sees
either the old file or the new one, never a partial write, and a process
killed mid-write leaves the committed state intact.

``path_lock`` serialises writers that share a logical resource (one
canonical category, the entries tree). It combines an in-process
``threading.Lock`` keyed by the lock path with an advisory ``fcntl.flock``
on a sidecar lock file so separate processes are serialised too.

Tags:
    filesystem, atomic-write, locking, fsync
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from fossil.core.errors import ErrorContext, ParseError, StorageError
from fossil.core.logging import get_logger
from fossil.core.result import Err, Ok, Result

if sys.platform != "win32":
    import fcntl
else:  # pragma: no cover
    fcntl = None

logger = get_logger(__name__)

_LOCKS: dict[str, threading.Lock] = {}
_LOCKS_GUARD = threading.Lock()


def _fsync_dir(directory: Path) -> None:
    """Persist a rename by fsyncing its directory (POSIX only)."""
    if sys.platform == "win32":  # pragma: no cover
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` atomically and durably.

    Raises:
        OSError: the write or rename failed; ``path`` is unchanged and the
            temporary file has been removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    _fsync_dir(path.parent)


def dump_json(data: Any) -> bytes:
    """Serialise to the on-disk JSON form (2-space indent, trailing newline)."""
    return (json.dumps(data, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def write_json(path: Path, data: Any) -> Result[Path]:
    """Atomically write ``data`` as JSON, returning ``Err(StorageError)`` on I/O failure."""
    try:
        atomic_write_bytes(path, dump_json(data))
    except OSError as exc:
        return Err(StorageError(
            f"Could not write {path}: {exc}",
            context=ErrorContext(path=str(path)),
            cause=exc,
        ))
    return Ok(path)


def read_json(path: Path) -> Result[Any]:
    """Read and parse a JSON file.

    Returns ``Err(StorageError)`` when the file cannot be read and
    ``Err(ParseError)`` when it is not valid JSON.
    """
    try:
        raw = path.read_bytes()
    except OSError as exc:
        return Err(StorageError(
            f"Could not read {path}: {exc}",
            context=ErrorContext(path=str(path)),
            cause=exc,
        ))
    try:
        return Ok(json.loads(raw))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        return Err(ParseError(
            f"Corrupt JSON in {path}: {exc}",
            context=ErrorContext(path=str(path)),
            cause=exc,
        ))


def read_json_or_none(path: Path) -> Any | None:
    """Best-effort read: missing or unreadable files yield ``None``.

    Unreadable files are logged as warnings; a missing file is routine.
    """
    if not path.exists():
        return None
    match read_json(path):
        case Ok(data):
            return data
        case Err(error):
            logger.warning("fossil_file_unreadable", path=str(path), error=str(error))
            return None


def copy_bytes(src: Path, dst: Path) -> None:
    """Copy ``src`` to ``dst`` byte-for-byte through an atomic, fsynced write."""
    atomic_write_bytes(dst, src.read_bytes())


def _thread_lock_for(key: str) -> threading.Lock:
    with _LOCKS_GUARD:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _LOCKS[key] = lock
        return lock


@contextmanager
def path_lock(lock_path: Path) -> Iterator[None]:
    """Hold an exclusive lock on ``lock_path`` for the duration of the block."""
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    thread_lock = _thread_lock_for(str(lock_path.resolve()))
    with thread_lock:
        with open(lock_path, "a+b") as handle:
            if fcntl is not None:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                if fcntl is not None:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


__all__ = [
    "atomic_write_bytes",
    "copy_bytes",
    "dump_json",
    "path_lock",
    "read_json",
    "read_json_or_none",
    "write_json",
]
