"""
Process Lock Utilities
======================

Advisory ``flock`` lock that keeps two relay processes from advancing the
same checkpoint file at once. The lock file lives next to the checkpoint and
holds the owner's PID while the lock is held.
"""

import fcntl
import logging
import os
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class ProcessLock:
    """Non-blocking exclusive lock on a file."""

    def __init__(self, lock_path: Union[str, Path]):
        self.lock_file = Path(lock_path)
        self._fd: Optional[int] = None

    @property
    def acquired(self) -> bool:
        return self._fd is not None

    def acquire(self) -> bool:
        """Try to take the lock.

        Returns:
            True if this process now holds the lock, False if another holder exists
        """
        if self.acquired:
            return True

        self.lock_file.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.lock_file, os.O_CREAT | os.O_RDWR, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            holder = self.get_lock_holder_pid()
            logger.warning(f"Lock {self.lock_file} is held by PID {holder or 'unknown'}")
            return False

        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())
        os.fsync(fd)
        self._fd = fd
        logger.debug(f"Acquired lock {self.lock_file}")
        return True

    def release(self) -> None:
        """Drop the lock; the file is emptied but left in place."""
        if self._fd is None:
            return
        try:
            os.ftruncate(self._fd, 0)
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        except OSError as e:
            logger.warning(f"Error releasing lock {self.lock_file}: {e}")
        finally:
            os.close(self._fd)
            self._fd = None
        logger.debug(f"Released lock {self.lock_file}")

    def get_lock_holder_pid(self) -> Optional[int]:
        """PID of the current holder, or None if nobody holds the lock."""
        if self.acquired:
            return os.getpid()

        try:
            fd = os.open(self.lock_file, os.O_RDONLY)
        except FileNotFoundError:
            return None

        try:
            try:
                fcntl.flock(fd, fcntl.LOCK_SH | fcntl.LOCK_NB)
            except BlockingIOError:
                content = os.read(fd, 32).decode(errors="ignore").strip()
                return int(content) if content.isdigit() else None
            # Nobody holds it; a PID left behind by a crashed process is stale
            fcntl.flock(fd, fcntl.LOCK_UN)
            return None
        finally:
            os.close(fd)

    def __enter__(self) -> "ProcessLock":
        if not self.acquire():
            raise RuntimeError(f"Could not acquire process lock: {self.lock_file}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


def lock_for_checkpoint(checkpoint_path: Union[str, Path]) -> ProcessLock:
    """Lock guarding ``checkpoint_path``, stored as ``<checkpoint>.lock`` beside it.

    Relays pointed at different checkpoint files may run side by side.
    """
    path = Path(checkpoint_path).resolve()
    return ProcessLock(path.with_name(path.name + ".lock"))
