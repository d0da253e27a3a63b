"""Filesystem helpers for extension installs.

Writes and deletes on hosted sites regularly hit files that are briefly held
open by another process (virus scanners, the web server itself), so every
mutating operation goes through ``attempt``.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRIES = 3
DEFAULT_DELAY = 0.25


def attempt(
    action: Callable[[], T],
    retries: int = DEFAULT_RETRIES,
    delay: float = DEFAULT_DELAY,
) -> T:
    """Run an action, retrying on OSError.

    Args:
        action: Zero-argument callable to run.
        retries: Total number of tries (at least 1).
        delay: Seconds to wait between tries.

    Returns:
        Whatever the action returns.

    Raises:
        OSError: The last error once all tries are used up.
    """
    retries = max(1, retries)
    for attempt_number in range(1, retries + 1):
        try:
            return action()
        except OSError as e:
            if attempt_number == retries:
                raise
            logger.debug(
                "I/O error on try %d/%d, retrying: %s", attempt_number, retries, e
            )
            time.sleep(delay)
    raise AssertionError("unreachable")


def _handle_remove_readonly(func, path, _exc) -> None:
    """Clear the read-only bit and retry the failed removal once."""
    os.chmod(path, stat.S_IWRITE)
    func(path)


def _rmtree(path: Path) -> None:
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_handle_remove_readonly)
    else:
        shutil.rmtree(path, onerror=_handle_remove_readonly)


def delete_directory(path: Path) -> None:
    """Recursively delete a directory, handling read-only files.

    A missing directory is not an error.
    """
    if not path.exists():
        return
    if path.is_file() or path.is_symlink():
        path.unlink()
        return
    _rmtree(path)


def delete_directory_safe(
    path: Path,
    retries: int = DEFAULT_RETRIES,
    delay: float = DEFAULT_DELAY,
) -> bool:
    """Delete a directory with retries, never raising.

    Returns:
        True if the directory no longer exists afterwards.
    """
    try:
        attempt(lambda: delete_directory(path), retries=retries, delay=delay)
    except OSError as e:
        logger.error("Failed to delete %s: %s", path, e)
    return not path.exists()


def write_file(
    path: Path,
    data: bytes,
    retries: int = DEFAULT_RETRIES,
    delay: float = DEFAULT_DELAY,
) -> None:
    """Write bytes to a file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    attempt(lambda: path.write_bytes(data), retries=retries, delay=delay)


def last_write_time(path: Path) -> datetime | None:
    """Last modification time of a path in UTC, or None if it is missing."""
    try:
        return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
    except FileNotFoundError:
        return None
