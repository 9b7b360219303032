"""LedServer — serial control-FIFO loop serving the LED state to FIFO clients."""

import logging
import os
import signal
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ledsrv.errors import ClientConnectionError, FifoIOError, LedSrvError, ProtocolError
from ledsrv.fifo import FIFO_MODE, Direction, Fifo
from ledsrv.state import LedState
from ledsrv.view import create_led_view
from .commands import Dispatcher
from .connection import Connection
from .protocol import LineAccumulator, encode_response, parse_client_id, read_requests

log = logging.getLogger(__name__)

RUNTIME_DIR = Path(os.environ.get("LEDSRV_RUNTIME_DIR", "/tmp"))
CONTROL_PATH = RUNTIME_DIR / "ledsrv"
IN_TEMPLATE = str(RUNTIME_DIR / "ledsrv.in.{}")
OUT_TEMPLATE = str(RUNTIME_DIR / "ledsrv.out.{}")
PID_PATH = RUNTIME_DIR / "ledsrv.pid"


class ClientErrorPolicy(Enum):
    ABORT = "abort"  # an I/O failure with one client stops the server
    DROP = "drop"    # log it, drop that client, keep serving


class ServerShutdown(LedSrvError):
    """Raised from the signal handler to unwind blocking pipe I/O."""


@dataclass
class ServerConfig:
    control_path: Path = CONTROL_PATH
    in_template: str = IN_TEMPLATE
    out_template: str = OUT_TEMPLATE
    pid_path: Path | None = PID_PATH
    fifo_mode: int = FIFO_MODE
    client_errors: ClientErrorPolicy = ClientErrorPolicy.ABORT
    view: str = "rich"

    @classmethod
    def in_dir(cls, directory, **kw) -> "ServerConfig":
        """All runtime paths under directory."""
        directory = Path(directory)
        return cls(
            control_path=directory / "ledsrv",
            in_template=str(directory / "ledsrv.in.{}"),
            out_template=str(directory / "ledsrv.out.{}"),
            pid_path=directory / "ledsrv.pid",
            **kw,
        )


class LedServer:
    """Reads client ids from the control FIFO and serves each client in turn.

    Strictly serial: the next control line is not looked at until the
    current client's Connection is closed.
    """

    def __init__(self, config: ServerConfig | None = None, view=None):
        self.config = config or ServerConfig()
        self._view = view
        self._dispatcher: Dispatcher | None = None
        self._control: Fifo | None = None
        self._running = False
        self.sessions = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def dispatcher(self) -> Dispatcher | None:
        return self._dispatcher

    @property
    def state(self) -> LedState | None:
        return self._dispatcher.state if self._dispatcher else None

    # ── Client session ────────────────────────────────────────────────

    def serve_client(self, client_id: int) -> int:
        """Run one request/response cycle with a client. Returns the request count."""
        cfg = self.config
        with Connection.open(client_id, cfg.in_template, cfg.out_template) as conn:
            requests = read_requests(conn)
            for request in requests:
                result = self._dispatcher.dispatch(request)
                # One write per response keeps each line atomic
                conn.write(encode_response(result.ok, result.output))
        log.info("Client %d served (%d request%s)", client_id, len(requests),
                 "" if len(requests) == 1 else "s")
        return len(requests)

    def _handle_control_line(self, line: str):
        try:
            client_id = parse_client_id(line)
        except ProtocolError as e:
            log.warning("Ignoring control message: %s", e)
            return

        try:
            self.serve_client(client_id)
        except (ClientConnectionError, FifoIOError) as e:
            if self.config.client_errors is ClientErrorPolicy.ABORT:
                raise
            log.error("Dropping client %d: %s", client_id, e)
        self.sessions += 1

    # ── Main loop ─────────────────────────────────────────────────────

    def serve(self, max_sessions: int | None = None):
        """Loop on the control FIFO until stopped or max_sessions clients were handled.

        Raises FifoIOError if the control FIFO fails.
        """
        if self._control is None:
            raise LedSrvError("server not started")
        accum = LineAccumulator()
        try:
            while self._running:
                data = self._control.read()
                if not data:
                    raise FifoIOError(f"{self._control.path}: unexpected end of stream",
                                      self._control.path)
                for line in accum.feed(data):
                    self._handle_control_line(line)
                    if max_sessions is not None and self.sessions >= max_sessions:
                        self._running = False
                        break
        finally:
            self._running = False

    # ── Lifecycle ─────────────────────────────────────────────────────

    def start(self):
        """Create the view, push the initial state and create the control FIFO."""
        cfg = self.config
        view = self._view if self._view is not None else create_led_view(cfg.view)
        state = LedState()
        view.update(state.copy())
        self._view = view
        self._dispatcher = Dispatcher(view, state)

        self._control = Fifo.create(cfg.control_path, Direction.READWRITE, mode=cfg.fifo_mode)
        if cfg.pid_path:
            Path(cfg.pid_path).write_text(str(os.getpid()))
        self._running = True
        log.info("LedServer listening on %s (PID %d)", cfg.control_path, os.getpid())

    def stop(self):
        """Close and remove the control FIFO and pid file. Safe to call twice."""
        self._running = False
        if self._control is not None:
            self._control.close()
            self._control = None
            log.info("Removed control FIFO %s", self.config.control_path)
        if self.config.pid_path:
            Path(self.config.pid_path).unlink(missing_ok=True)

    def run_forever(self, max_sessions: int | None = None):
        """Start, serve until a signal or fatal error, then clean up."""
        handlers = {}

        def _signal_handler(signum, frame):
            raise ServerShutdown(signal.Signals(signum).name)

        if threading.current_thread() is threading.main_thread():
            for sig in (signal.SIGTERM, signal.SIGINT):
                handlers[sig] = signal.signal(sig, _signal_handler)

        try:
            self.start()
            self.serve(max_sessions=max_sessions)
        except ServerShutdown as e:
            log.info("Received %s, shutting down", e)
        finally:
            self.stop()
            for sig, handler in handlers.items():
                signal.signal(sig, handler)
            log.info("LedServer stopped after %d session%s.", self.sessions,
                     "" if self.sessions == 1 else "s")
