"""Process-wide exclusive lock for commands that write shared state."""

import fcntl
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from mcs.core.errors import FileLockError

logger = logging.getLogger(__name__)


@contextmanager
def with_file_lock(path: Path) -> Iterator[None]:
    """Hold a non-blocking advisory flock on `path` for the duration of the block.

    The lock file and its parent directories are created if missing. The OS
    releases the lock when the descriptor closes, including on a crash.

    Raises:
        FileLockError: If another process already holds the lock
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_CREAT | os.O_RDWR, 0o644)
    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            raise FileLockError(path) from e
        logger.debug("Acquired lock %s", path)
        yield
    finally:
        os.close(fd)
