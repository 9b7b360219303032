"""
LedSrv — LED state server for local clients over named pipes (FIFOs).
Clients announce themselves on a control FIFO, then exchange one batch of
text commands over their own request/response FIFO pair.

Usage:
    from ledsrv.server import LedServer
    from ledsrv.client import LedClient
"""

from .errors import LedSrvError, FifoIOError, ProtocolError, ClientConnectionError
from .state import LedState, LedColor

__version__ = "1.0.0"
