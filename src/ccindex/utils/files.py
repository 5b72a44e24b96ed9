"""Utility helpers for working with temporary files."""

from __future__ import annotations

import atexit
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Set

LOGGER = logging.getLogger(__name__)

_pending_deletes: Set[Path] = set()
_pending_lock = threading.Lock()
_atexit_registered = False


def _delete_pending() -> None:
    with _pending_lock:
        paths = list(_pending_deletes)
        _pending_deletes.clear()
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            LOGGER.warning("Could not delete %s at exit: %s", path, exc)


def delete_on_exit(path: Path) -> None:
    """Queue ``path`` for deletion when the interpreter shuts down."""
    global _atexit_registered
    with _pending_lock:
        _pending_deletes.add(Path(path))
        if not _atexit_registered:
            atexit.register(_delete_pending)
            _atexit_registered = True


def pending_deletes() -> Set[Path]:
    with _pending_lock:
        return set(_pending_deletes)


def remove_file(path: Path) -> bool:
    """Delete ``path`` now, or queue it for deletion at exit.

    Returns True when the file is gone.
    """
    try:
        Path(path).unlink(missing_ok=True)
        return True
    except OSError as exc:
        LOGGER.warning("Failed to remove temporary file %s: %s", path, exc)
        delete_on_exit(path)
        return False


def make_tempfile(prefix: str = "ccindex", suffix: str = ".tmp") -> Path:
    """Reserve a fresh temporary file name and return its path.

    The file exists when this returns; callers that need the name free
    should delete it first.
    """
    fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix)
    os.close(fd)
    return Path(name)
