"""
Project lock

One compile invocation at a time per build directory. Advisory lock on a
lock file next to the fingerprint store (fcntl on POSIX, msvcrt on Windows).
"""

import time
import warnings
from pathlib import Path

from codegraph_incremental.errors import ProjectLockedError
from codegraph_incremental.observability import get_logger

try:
    import fcntl  # POSIX systems

    HAVE_FCNTL = True
except ImportError:
    HAVE_FCNTL = False

try:
    import msvcrt  # Windows

    HAVE_MSVCRT = True
except ImportError:
    HAVE_MSVCRT = False

logger = get_logger(__name__)


class ProjectLock:
    """
    Exclusive, non-reentrant lock on a project build directory.

    Usage:
        with ProjectLock(build_dir / ".incremental.lock", timeout_seconds=30):
            compiler.compile()
    """

    def __init__(self, lock_path: Path, timeout_seconds: float = 30.0, poll_interval_seconds: float = 0.1):
        self.lock_path = lock_path
        self.timeout_seconds = timeout_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self._lock_file = None

    def __enter__(self) -> "ProjectLock":
        self.acquire()
        return self

    def __exit__(self, _exc_type, _exc_val, _exc_tb) -> None:
        self.release()

    @property
    def is_held(self) -> bool:
        return self._lock_file is not None

    def acquire(self) -> None:
        """Acquire the lock, waiting up to ``timeout_seconds``."""
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock_file = open(self.lock_path, "a+")
        deadline = time.monotonic() + self.timeout_seconds

        while True:
            if self._try_lock(lock_file):
                self._lock_file = lock_file
                logger.debug("project_lock_acquired", path=str(self.lock_path))
                return
            if time.monotonic() >= deadline:
                lock_file.close()
                raise ProjectLockedError(
                    f"Another build holds {self.lock_path}",
                    path=str(self.lock_path),
                    timeout_seconds=self.timeout_seconds,
                )
            time.sleep(self.poll_interval_seconds)

    def release(self) -> None:
        if self._lock_file is None:
            return
        if HAVE_FCNTL:
            fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_UN)
        elif HAVE_MSVCRT:
            self._lock_file.seek(0)
            msvcrt.locking(self._lock_file.fileno(), msvcrt.LK_UNLCK, 1)
        self._lock_file.close()
        self._lock_file = None
        logger.debug("project_lock_released", path=str(self.lock_path))

    @staticmethod
    def _try_lock(lock_file) -> bool:
        if HAVE_FCNTL:
            try:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                return False
            return True
        if HAVE_MSVCRT:
            lock_file.seek(0)
            try:
                msvcrt.locking(lock_file.fileno(), msvcrt.LK_NBLCK, 1)
            except OSError:
                return False
            return True
        warnings.warn("File locking not available on this platform", stacklevel=3)
        return True
