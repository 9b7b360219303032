"""LedSrv server CLI — run with: python3 -m ledsrv.server [--daemon|--stop|--status]"""

import argparse
import logging
import os
import signal
import sys

from ledsrv.errors import LedSrvError
from ledsrv.output import error, info, status_line, success
from ledsrv.view import VIEWS
from .daemon import ClientErrorPolicy, LedServer, ServerConfig

log = logging.getLogger("ledsrv")


def _read_pid(config: ServerConfig) -> int | None:
    """Read PID from pidfile. Returns None if missing or stale."""
    pid_path = config.pid_path
    if not pid_path or not pid_path.exists():
        return None
    try:
        pid = int(pid_path.read_text().strip())
        # Check if process is alive
        os.kill(pid, 0)
        return pid
    except (ValueError, ProcessLookupError, PermissionError):
        # Stale pidfile — clean up
        pid_path.unlink(missing_ok=True)
        return None


def cmd_status(config: ServerConfig):
    """Print server status and exit."""
    pid = _read_pid(config)
    if pid:
        success(f"ledsrv is running (PID {pid})")
        status_line("Control", str(config.control_path), ok=config.control_path.exists())
        status_line("PID file", str(config.pid_path))
        sys.exit(0)
    else:
        info("ledsrv is not running.")
        sys.exit(1)


def cmd_stop(config: ServerConfig):
    """Send SIGTERM to running daemon."""
    pid = _read_pid(config)
    if not pid:
        info("ledsrv is not running.")
        sys.exit(1)
    info(f"Stopping ledsrv (PID {pid})...")
    os.kill(pid, signal.SIGTERM)
    success("Stop signal sent.")


def cmd_run(config: ServerConfig, daemon: bool):
    """Run the server (foreground or background)."""
    pid = _read_pid(config)
    if pid:
        error(f"ledsrv already running (PID {pid}).")
        sys.exit(1)

    if daemon:
        # Fork to background
        child_pid = os.fork()
        if child_pid > 0:
            # Parent
            success(f"ledsrv started in background (PID {child_pid})")
            sys.exit(0)
        # Child — detach
        os.setsid()
        # Redirect stdio to /dev/null
        devnull = os.open(os.devnull, os.O_RDWR)
        os.dup2(devnull, 0)
        os.dup2(devnull, 1)
        os.dup2(devnull, 2)
        os.close(devnull)

    server = LedServer(config)
    try:
        server.run_forever()
    except (LedSrvError, ValueError) as e:
        log.error("Fatal: %s", e)
        sys.exit(1)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="ledsrv",
        description="ledsrv — LED state server over named pipes",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--daemon", "-d", action="store_true", help="Run as background daemon")
    group.add_argument("--stop", action="store_true", help="Stop running daemon")
    group.add_argument("--status", action="store_true", help="Check daemon status")
    parser.add_argument("--view", choices=sorted(VIEWS), default="rich", help="LED view (default: rich)")
    parser.add_argument("--keep-going", action="store_true",
                        help="Drop a failing client instead of stopping the server")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    config = ServerConfig(
        view=args.view,
        client_errors=ClientErrorPolicy.DROP if args.keep_going else ClientErrorPolicy.ABORT,
    )

    if args.status:
        cmd_status(config)
    elif args.stop:
        cmd_stop(config)
    else:
        cmd_run(config, daemon=args.daemon)


if __name__ == "__main__":
    main()
