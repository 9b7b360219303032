"""Command table and dispatcher — resolve a request line and apply it to the LED."""

import logging
import re
from types import MappingProxyType
from typing import Callable, NamedTuple

from ledsrv.errors import ProtocolError
from ledsrv.state import RATE_MAX, RATE_MIN, LedColor, LedState

log = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?[0-9]+")

# Handlers receive (args, led) where args excludes the verb and led is a
# working copy they may mutate. They return the output text ("" for none)
# and raise ProtocolError on a bad argument.
Handler = Callable[[list[str], LedState], str]


class CommandDescriptor(NamedTuple):
    verb: str
    arity: int
    handler: Handler


class DispatchResult(NamedTuple):
    ok: bool
    output: str = ""


# ── Handlers ──────────────────────────────────────────────────────────

_ON_OFF = {"on": True, "off": False}


def _set_state(args, led):
    value = _ON_OFF.get(args[0].lower())
    if value is None:
        raise ProtocolError(f"expected on|off, got {args[0]!r}")
    led.on = value
    return ""


def _get_state(args, led):
    return "on" if led.on else "off"


def _set_color(args, led):
    try:
        led.color = LedColor(args[0].lower())
    except ValueError:
        raise ProtocolError(f"unknown color {args[0]!r}") from None
    return ""


def _get_color(args, led):
    return led.color.value


def _set_rate(args, led):
    if not _INT_RE.fullmatch(args[0]):
        raise ProtocolError(f"rate is not an integer: {args[0]!r}")
    rate = int(args[0])
    if not RATE_MIN <= rate <= RATE_MAX:
        raise ProtocolError(f"rate {rate} outside {RATE_MIN}..{RATE_MAX}")
    led.rate = rate
    return ""


def _get_rate(args, led):
    return str(led.rate)


COMMANDS = (
    CommandDescriptor("set-led-state", 1, _set_state),
    CommandDescriptor("get-led-state", 0, _get_state),
    CommandDescriptor("set-led-color", 1, _set_color),
    CommandDescriptor("get-led-color", 0, _get_color),
    CommandDescriptor("set-led-rate", 1, _set_rate),
    CommandDescriptor("get-led-rate", 0, _get_rate),
)

# (verb, arity) → descriptor. Verbs match case-sensitively.
COMMAND_TABLE = MappingProxyType({(c.verb, c.arity): c for c in COMMANDS})


def resolve(tokens: list[str]) -> CommandDescriptor:
    """Find the command for a tokenized request. Raises ProtocolError."""
    if not tokens:
        raise ProtocolError("empty request")
    verb, nargs = tokens[0], len(tokens) - 1
    try:
        return COMMAND_TABLE[(verb, nargs)]
    except KeyError:
        raise ProtocolError(f"unknown command {verb!r} with {nargs} argument(s)") from None


# ── Dispatcher ────────────────────────────────────────────────────────

class Dispatcher:
    """Owns the authoritative LedState and the view it is reflected to."""

    def __init__(self, view, state: LedState | None = None):
        self._view = view
        self._state = state if state is not None else LedState()

    @property
    def state(self) -> LedState:
        """A copy of the committed state."""
        return self._state.copy()

    @property
    def view(self):
        return self._view

    def dispatch(self, request: str) -> DispatchResult:
        """Run one request line. Rejected requests leave state and view untouched."""
        tokens = request.split()
        try:
            command = resolve(tokens)
            led = self._state.copy()
            output = command.handler(tokens[1:], led)
        except ProtocolError as e:
            log.debug("Rejected %r: %s", request, e)
            return DispatchResult(False)

        log.debug("%s -> %s", command.verb, output or "-")
        if led != self._state:
            try:
                self._view.update(led.copy())
            except Exception:
                log.exception("View update failed for %r; state not committed", request)
                return DispatchResult(False)
            self._state = led
            log.info("LED state now {%s}", led.describe())
        return DispatchResult(True, output)
