"""LedSrv protocol — newline-delimited text requests and OK/FAILED responses."""

import logging
import re

from ledsrv.errors import FifoIOError, ProtocolError
from ledsrv.fifo import PIPE_BUF

log = logging.getLogger(__name__)

STATUS_OK = "OK"
STATUS_FAILED = "FAILED"

_CLIENT_ID_RE = re.compile(r"[0-9]{1,10}")
_CLIENT_ID_MAX = 2**31 - 1


# ── Encode ────────────────────────────────────────────────────────────

def encode_request(*lines: str) -> bytes:
    """Client → Server request batch, one command per line."""
    return "".join(f"{line}\n" for line in lines).encode()


def encode_response(ok: bool, output: str = "") -> bytes:
    """Server → Client response line: "OK", "OK <output>" or "FAILED"."""
    if not ok:
        return f"{STATUS_FAILED}\n".encode()
    if output:
        return f"{STATUS_OK} {output}\n".encode()
    return f"{STATUS_OK}\n".encode()


def encode_client_id(client_id: int) -> bytes:
    """Client → control FIFO announcement."""
    return f"{client_id}\n".encode()


# ── Decode ────────────────────────────────────────────────────────────

def _decode(data: bytes) -> str:
    # Anything after an embedded NUL is garbage, not request text
    data = data.split(b"\0", 1)[0]
    return data.decode("utf-8", errors="replace")


def split_lines(data: bytes) -> list[str]:
    """Split one buffer into request lines, dropping empty ones."""
    return [line for line in _decode(data).split("\n") if line.strip()]


def read_requests(fifo, size: int = PIPE_BUF) -> list[str]:
    """Read one batch of request lines from a per-client FIFO.

    Performs exactly one bounded read. A request split across two reads
    is not reassembled: clients are expected to send their whole batch
    in one write of at most PIPE_BUF bytes.

    Raises FifoIOError if the read fails or the peer closed before sending.
    """
    data = fifo.read(size)
    if not data:
        raise FifoIOError(f"{fifo.path}: peer closed before sending a request", fifo.path)
    return split_lines(data)


def decode_response(line: str) -> tuple[bool, str]:
    """Parse a response line into (ok, output). Raises ProtocolError."""
    line = line.rstrip("\n")
    if line == STATUS_FAILED:
        return False, ""
    if line == STATUS_OK:
        return True, ""
    if line.startswith(STATUS_OK + " "):
        return True, line[len(STATUS_OK) + 1:]
    raise ProtocolError(f"bad response line: {line!r}")


def parse_client_id(line: str) -> int:
    """Strictly parse a control-FIFO line as a positive client id."""
    token = line.strip()
    if not _CLIENT_ID_RE.fullmatch(token):
        raise ProtocolError(f"bad client id: {line!r}")
    client_id = int(token)
    if not 0 < client_id <= _CLIENT_ID_MAX:
        raise ProtocolError(f"client id out of range: {client_id}")
    return client_id


# ── Accumulation ──────────────────────────────────────────────────────

class LineAccumulator:
    """Reassembles newline-terminated lines from a long-lived byte stream.

    Bytes after the last newline are kept until a later feed() completes
    them, so fragmented writes on the control FIFO are not lost.
    """

    def __init__(self, limit: int = 64 * 1024):
        self._buf = b""
        self._limit = limit

    @property
    def pending(self) -> bytes:
        return self._buf

    def feed(self, data: bytes) -> list[str]:
        """Append data and return every line it completed (empty lines dropped)."""
        data = data.split(b"\0", 1)[0]
        buf = self._buf + data
        *complete, self._buf = buf.split(b"\n")
        if len(self._buf) > self._limit:
            log.warning("Discarding %d unterminated bytes (limit %d)", len(self._buf), self._limit)
            self._buf = b""
        lines = []
        for raw in complete:
            line = raw.decode("utf-8", errors="replace").strip()
            if line:
                lines.append(line)
        return lines
