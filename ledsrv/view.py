"""LED views — where committed LED state changes are displayed."""

import sys

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .state import RATE_MAX, LedState

LED = "\u25cf"  # ●
BLINK = "\u2502"  # │


class LedView:
    """Receives committed state changes. update() must return promptly:
    the server is single-threaded and a slow view stalls every client."""

    def update(self, state: LedState):
        raise NotImplementedError


class StdoutLedView(LedView):
    """Simplest possible view: one line per state change."""

    def __init__(self, stream=None):
        self._stream = stream or sys.stdout

    def update(self, state: LedState):
        print(f"{{ {state.describe()}}} ", file=self._stream, flush=True)


class RichLedView(LedView):

    def __init__(self, console: Console | None = None):
        self._console = console or Console()

    def render(self, state: LedState) -> Panel:
        color = state.color.value
        lamp = Text.from_markup(f"[bold {color}]{LED}[/]" if state.on else f"[dim]{LED}[/]")

        grid = Table.grid(padding=(0, 2))
        grid.add_column(width=6)
        grid.add_column()
        grid.add_row("[bold]LED[/]", lamp)
        grid.add_row("[bold]State[/]", "[green]on[/]" if state.on else "[dim]off[/]")
        grid.add_row("[bold]Color[/]", f"[{color}]{color}[/]")
        grid.add_row("[bold]Rate[/]", f"{state.rate} Hz [dim]{BLINK * state.rate}{' ' * (RATE_MAX - state.rate)}[/]")

        return Panel(grid, title="[bold cyan]ledsrv[/]", border_style=color if state.on else "dim", expand=False)

    def update(self, state: LedState):
        self._console.print(self.render(state))


VIEWS = {
    "stdout": StdoutLedView,
    "rich": RichLedView,
}


def create_led_view(kind: str = "rich") -> LedView:
    """Create the view named kind. Raises ValueError for unknown kinds."""
    try:
        factory = VIEWS[kind]
    except KeyError:
        raise ValueError(f"unknown LED view {kind!r} (choose from {', '.join(VIEWS)})") from None
    return factory()
