"""LED state value type."""

import copy
from dataclasses import dataclass
from enum import Enum

RATE_MIN = 1
RATE_MAX = 5


class LedColor(Enum):
    RED = "red"
    GREEN = "green"
    BLUE = "blue"


@dataclass
class LedState:
    """On/off flag, color and blink rate (Hz) of the LED.

    Equality is structural. The dispatcher works on a copy and only
    commits it back when a handler succeeds and the copy differs.
    """

    on: bool = False
    color: LedColor = LedColor.RED
    rate: int = RATE_MIN

    def copy(self) -> "LedState":
        return copy.copy(self)

    def describe(self) -> str:
        return f"{'on' if self.on else 'off'}, {self.color.value}, {self.rate}"
