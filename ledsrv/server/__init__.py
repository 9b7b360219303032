"""LedSrv server — LED state service over named pipes."""

from .daemon import LedServer, ServerConfig, ClientErrorPolicy, CONTROL_PATH, IN_TEMPLATE, OUT_TEMPLATE, PID_PATH
from .commands import Dispatcher, DispatchResult, COMMAND_TABLE
from .connection import Connection
from .protocol import encode_request, encode_response, decode_response, read_requests, LineAccumulator
