"""Fifo — thin wrapper over a named pipe (create, open, read, write, close)."""

import logging
import os
import select
import stat
from enum import Enum
from pathlib import Path

from .errors import FifoIOError

log = logging.getLogger(__name__)

# Writes of up to PIPE_BUF bytes in a single call are never interleaved
# with other writers. POSIX guarantees at least 512.
PIPE_BUF = getattr(select, "PIPE_BUF", 512)

FIFO_MODE = 0o644  # rw-r--r--


class Direction(Enum):
    READ = os.O_RDONLY
    WRITE = os.O_WRONLY
    # Holding both ends keeps a long-lived reader from seeing EOF
    # every time a writer goes away (Linux semantics).
    READWRITE = os.O_RDWR


def make_fifo(path, mode: int = FIFO_MODE) -> Path:
    """Create a named pipe at path, replacing a stale pipe left there.

    Raises FifoIOError if path exists and is not a pipe, or mkfifo fails.
    """
    path = Path(path)
    try:
        st = path.lstat()
    except FileNotFoundError:
        st = None
    except OSError as e:
        raise FifoIOError(f"stat {path}: {e.strerror}", path) from e

    if st is not None:
        if not stat.S_ISFIFO(st.st_mode):
            raise FifoIOError(f"{path} exists and is not a named pipe", path)
        log.debug("Removing stale pipe %s", path)
        path.unlink(missing_ok=True)

    try:
        os.mkfifo(path, mode)
        # mkfifo honours the umask; force the documented permissions
        os.chmod(path, mode)
    except OSError as e:
        raise FifoIOError(f"mkfifo {path}: {e.strerror}", path) from e
    return path


class Fifo:
    """One open end of a named pipe.

    Opening blocks until the peer opens the complementary end, unless the
    pipe is opened READWRITE. Use as a context manager or call close().
    """

    def __init__(self, path, direction: Direction, fd: int, delete_on_close: bool = False):
        self.path = Path(path)
        self.direction = direction
        self._fd: int | None = fd
        self._delete_on_close = delete_on_close

    # ── Construction ──────────────────────────────────────────────────

    @classmethod
    def create(cls, path, direction: Direction, mode: int = FIFO_MODE,
               nonblocking: bool = False) -> "Fifo":
        """Create (or recreate) a pipe we own, then open it.

        The pipe entry is removed again when the Fifo is closed.
        """
        path = make_fifo(path, mode)
        try:
            return cls.open(path, direction, delete_on_close=True, nonblocking=nonblocking)
        except FifoIOError:
            path.unlink(missing_ok=True)
            raise

    @classmethod
    def open(cls, path, direction: Direction, delete_on_close: bool = False,
             nonblocking: bool = False) -> "Fifo":
        """Open an existing pipe. Blocks until the peer end is opened."""
        path = Path(path)
        flags = direction.value
        if nonblocking:
            flags |= os.O_NONBLOCK
        try:
            st = path.stat()
            if not stat.S_ISFIFO(st.st_mode):
                raise FifoIOError(f"{path} is not a named pipe", path)
            fd = os.open(path, flags)
        except FifoIOError:
            raise
        except OSError as e:
            raise FifoIOError(f"open {path}: {e.strerror}", path) from e
        log.debug("Opened %s (%s)", path, direction.name.lower())
        return cls(path, direction, fd, delete_on_close=delete_on_close)

    # ── I/O ───────────────────────────────────────────────────────────

    @property
    def closed(self) -> bool:
        return self._fd is None

    def fileno(self) -> int:
        if self._fd is None:
            raise FifoIOError(f"{self.path} is closed", self.path)
        return self._fd

    def read(self, size: int = PIPE_BUF) -> bytes:
        """Blocking read of at most size bytes. b"" means the peer closed."""
        if self.direction is Direction.WRITE:
            raise FifoIOError(f"{self.path} is not open for reading", self.path)
        try:
            return os.read(self.fileno(), size)
        except OSError as e:
            raise FifoIOError(f"read {self.path}: {e.strerror}", self.path) from e

    def write(self, data: bytes) -> int:
        """Blocking write. Only writes of at most PIPE_BUF bytes are atomic."""
        if self.direction is Direction.READ:
            raise FifoIOError(f"{self.path} is not open for writing", self.path)
        if len(data) > PIPE_BUF:
            log.warning("Write of %d bytes to %s exceeds PIPE_BUF (%d); may interleave",
                        len(data), self.path, PIPE_BUF)
        fd = self.fileno()
        view = memoryview(data)
        written = 0
        try:
            while written < len(data):
                written += os.write(fd, view[written:])
        except OSError as e:
            raise FifoIOError(f"write {self.path}: {e.strerror}", self.path) from e
        return written

    # ── Teardown ──────────────────────────────────────────────────────

    def close(self):
        """Close the descriptor; unlink the pipe if we created it. Idempotent."""
        fd, self._fd = self._fd, None
        if fd is not None:
            try:
                os.close(fd)
            except OSError as e:
                log.debug("close %s: %s", self.path, e)
        if self._delete_on_close:
            self._delete_on_close = False
            self.path.unlink(missing_ok=True)
            log.debug("Removed pipe %s", self.path)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __repr__(self):
        state = "closed" if self.closed else f"fd={self._fd}"
        return f"<Fifo {self.path} {self.direction.name.lower()} {state}>"
