"""LedClient — talk to a running ledsrv over its named pipes.

Usage:
    from ledsrv.client import LedClient
    LedClient().request("set-led-color blue", "get-led-color")  # ['OK', 'OK blue']

    # Or from CLI:
    ledcli get-led-color
"""

import logging
import os
import sys

from .errors import LedSrvError, ProtocolError
from .fifo import PIPE_BUF, Direction, Fifo, make_fifo
from .output import C, error
from .server.daemon import CONTROL_PATH, IN_TEMPLATE, OUT_TEMPLATE
from .server.protocol import decode_response, encode_client_id, encode_request

log = logging.getLogger(__name__)

USAGE = """\
{prog}:
 get-led-state | set-led-state <on|off>
 get-led-color | set-led-color <red|green|blue>
 get-led-rate | set-led-rate <1..5>"""


class LedClient:
    """One request batch per session, mirroring the server's serial protocol."""

    def __init__(self, client_id: int | None = None, control_path=CONTROL_PATH,
                 in_template: str = IN_TEMPLATE, out_template: str = OUT_TEMPLATE):
        self.client_id = client_id if client_id is not None else os.getpid()
        self.control_path = control_path
        self.in_template = in_template
        self.out_template = out_template

    @classmethod
    def for_config(cls, config, client_id: int | None = None) -> "LedClient":
        return cls(client_id, config.control_path, config.in_template, config.out_template)

    def request(self, *lines: str) -> list[str]:
        """Send request lines, return the raw response lines in order.

        Raises FifoIOError if the server is not running or a pipe fails.
        """
        if not lines:
            raise ProtocolError("empty request batch")
        payload = encode_request(*lines)
        if len(payload) > PIPE_BUF:
            raise ProtocolError(f"request batch of {len(payload)} bytes exceeds PIPE_BUF ({PIPE_BUF})")

        # Both pipes must exist before we announce ourselves
        in_path = make_fifo(self.in_template.format(self.client_id))
        try:
            out_path = make_fifo(self.out_template.format(self.client_id))
        except LedSrvError:
            in_path.unlink(missing_ok=True)
            raise
        try:
            # Non-blocking so a missing server fails fast instead of hanging
            with Fifo.open(self.control_path, Direction.WRITE, nonblocking=True) as control:
                control.write(encode_client_id(self.client_id))

            # Same order the server opens them, or both sides deadlock
            with Fifo.open(in_path, Direction.WRITE) as req, Fifo.open(out_path, Direction.READ) as resp:
                req.write(payload)
                req.close()
                chunks = []
                while True:
                    chunk = resp.read()
                    if not chunk:
                        break
                    chunks.append(chunk)
        finally:
            in_path.unlink(missing_ok=True)
            out_path.unlink(missing_ok=True)

        replies = b"".join(chunks).decode("utf-8", errors="replace").splitlines()
        log.debug("client %d: %d request(s), %d reply(ies)", self.client_id, len(lines), len(replies))
        return replies

    def call(self, line: str) -> tuple[bool, str]:
        """Send one request, return (ok, output)."""
        replies = self.request(line)
        if not replies:
            raise ProtocolError(f"no reply to {line!r}")
        return decode_response(replies[0])


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(USAGE.format(prog="ledcli"))
        return 0

    try:
        ok, output = LedClient().call(" ".join(argv))
    except LedSrvError as e:
        error(str(e))
        return 2

    if ok:
        print(f"{C.GREEN}OK{C.RESET}" + (f" {output}" if output else ""))
        return 0
    print(f"{C.RED}FAILED{C.RESET}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
