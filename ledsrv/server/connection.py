"""Connection — the per-client request/response FIFO pair."""

import logging

from ledsrv.errors import ClientConnectionError, FifoIOError
from ledsrv.fifo import PIPE_BUF, Direction, Fifo

log = logging.getLogger(__name__)


class Connection:
    """Request (client → server) and response (server → client) pipes of one client.

    The client creates both pipes before announcing itself; the server only
    opens them and never removes them.
    """

    def __init__(self, client_id: int, in_fifo: Fifo, out_fifo: Fifo):
        self.client_id = client_id
        self._in = in_fifo
        self._out = out_fifo

    @classmethod
    def open(cls, client_id: int, in_template: str, out_template: str) -> "Connection":
        """Open the client's request pipe for reading, then its response pipe for writing.

        Each open blocks until the client opens the matching end, so the
        client must open them in the same order.
        """
        in_path = in_template.format(client_id)
        out_path = out_template.format(client_id)

        try:
            in_fifo = Fifo.open(in_path, Direction.READ)
        except FifoIOError as e:
            raise ClientConnectionError(f"client {client_id}: {e}", client_id) from e

        try:
            out_fifo = Fifo.open(out_path, Direction.WRITE)
        except FifoIOError as e:
            in_fifo.close()
            raise ClientConnectionError(f"client {client_id}: {e}", client_id) from e

        log.debug("Connection open for client %d", client_id)
        return cls(client_id, in_fifo, out_fifo)

    @property
    def closed(self) -> bool:
        return self._in.closed and self._out.closed

    @property
    def path(self):
        return self._in.path

    def read(self, size: int = PIPE_BUF) -> bytes:
        return self._in.read(size)

    def write(self, data: bytes) -> int:
        return self._out.write(data)

    def close(self):
        self._in.close()
        self._out.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __repr__(self):
        return f"<Connection client={self.client_id} in={self._in.path} out={self._out.path}>"
