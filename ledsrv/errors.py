"""LedSrv error taxonomy."""


class LedSrvError(Exception):
    """Base class for all ledsrv errors."""


class FifoIOError(LedSrvError):
    """Named pipe create/open/read/write failed at the OS level."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class ProtocolError(LedSrvError):
    """Malformed request: unknown verb, wrong arity or bad argument value."""


class ClientConnectionError(LedSrvError):
    """A per-client FIFO pair could not be established."""

    def __init__(self, message: str, client_id: int | None = None):
        super().__init__(message)
        self.client_id = client_id
