"""
Exclusive lock files guarding read-modify-write cycles on the user file.

The lock is a sibling file created with O_CREAT | O_EXCL, so it serializes
writers across threads and across processes sharing the data directory.
The holder writes its PID into the file; a lock whose PID no longer exists,
or which is older than LOCK_STALE_SECONDS, is broken by the next waiter.
"""

from __future__ import annotations

import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from stockroom.utils.logger import get_logger

logger = get_logger(__name__)

LOCK_TIMEOUT_SECONDS = 10.0
LOCK_POLL_INTERVAL = 0.05
# Far longer than any single register() holds the lock
LOCK_STALE_SECONDS = 60.0


def lock_path_for(target: Path) -> Path:
    return target.with_name(target.name + ".lock")


def _read_pid(path: Path) -> Optional[int]:
    try:
        raw = path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, owned by another user
        return True
    except OSError:
        return True
    return True


def _is_stale(path: Path, stale_after_seconds: float) -> bool:
    try:
        age = time.time() - path.stat().st_mtime
    except FileNotFoundError:
        return False
    if age > stale_after_seconds:
        return True
    pid = _read_pid(path)
    # An empty file is a holder between create and write; only age applies
    return pid is not None and not _pid_alive(pid)


def _break_lock(path: Path) -> bool:
    logger.warning("Breaking stale lock", path=str(path), pid=_read_pid(path))
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error("Could not remove stale lock", path=str(path), error=str(e))
        return False
    return True


@contextmanager
def file_lock(
    target: Path,
    timeout_seconds: float = LOCK_TIMEOUT_SECONDS,
    poll_interval: float = LOCK_POLL_INTERVAL,
    stale_after_seconds: float = LOCK_STALE_SECONDS,
) -> Generator[None, None, None]:
    """
    Hold the lock for `target` for the duration of the block.

    Blocks until acquired; raises TimeoutError after `timeout_seconds`.
    Only the holder removes a live lock file; dead or expired ones are
    broken and retried.
    """
    path = lock_path_for(target)
    path.parent.mkdir(parents=True, exist_ok=True)
    deadline = time.monotonic() + timeout_seconds
    while True:
        try:
            fd = os.open(str(path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            if _is_stale(path, stale_after_seconds) and _break_lock(path):
                continue
            if time.monotonic() >= deadline:
                raise TimeoutError(f"Could not acquire lock {path} within {timeout_seconds}s")
            time.sleep(poll_interval)
            continue
        try:
            os.write(fd, str(os.getpid()).encode())
        finally:
            os.close(fd)
        break

    try:
        yield
    finally:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
