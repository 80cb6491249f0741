"""Rich-based terminal display for the console.

All output goes through a ``Display`` handle so the editor and engine never
touch terminal state directly; tests substitute an in-memory display.
"""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.control import Control
from rich.text import Text

# ---------------------------------------------------------------------------
# Color palette
# ---------------------------------------------------------------------------

INPUT = "green"  # text being typed
PENDING = "yellow"  # committed line while its operation runs
SUCCESS = "green"  # committed line after a successful call
ERROR = "red"  # committed line after a failed call
OUTPUT = "dark_green"  # result block and timing
ERROR_DETAIL = "dark_red"  # diagnostics under a failed line
WARNING = "dark_goldenrod"  # registry warnings at startup


class Display(Protocol):
    """Cursor-addressable single-line character output."""

    @property
    def width(self) -> int: ...

    @property
    def column(self) -> int: ...

    def write(self, text: str, style: str | None = None) -> None: ...

    def newline(self) -> None: ...

    def move_to_column(self, column: int) -> None: ...

    def clear(self) -> None: ...

    def set_title(self, title: str) -> None: ...

    def bell(self) -> None: ...


class TerminalDisplay:
    """``Display`` backed by a rich ``Console``.

    The console only ever writes to the current line or starts a new one, so
    the cursor column is tracked here instead of queried from the terminal.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(highlight=False, soft_wrap=True)
        self._column = 0
        self._title = ""

    @property
    def console(self) -> Console:
        return self._console

    @property
    def width(self) -> int:
        return self._console.width

    @property
    def column(self) -> int:
        return self._column

    @property
    def title(self) -> str:
        return self._title

    def write(self, text: str, style: str | None = None) -> None:
        if not text:
            return
        self._console.print(Text(text, style=style or ""), end="")
        self._column += len(text)

    def newline(self) -> None:
        self._console.print()
        self._column = 0

    def move_to_column(self, column: int) -> None:
        column = max(0, column)
        self._console.control(Control.move_to_column(column))
        self._column = column

    def clear(self) -> None:
        self._console.clear(home=True)
        self._column = 0

    def set_title(self, title: str) -> None:
        self._title = title
        self._console.set_window_title(title)

    def bell(self) -> None:
        self._console.bell()
