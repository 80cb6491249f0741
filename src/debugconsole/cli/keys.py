"""Key events and the raw terminal key source."""

from __future__ import annotations

import codecs
import os
import platform
import sys
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, TextIO

from prompt_toolkit.input.vt100_parser import Vt100Parser
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys

_IS_WINDOWS = platform.system() == "Windows"

_ESCAPE_WAIT = 0.05  # seconds to wait for the rest of an escape sequence


class Key(Enum):
    CHAR = "char"
    ENTER = "enter"
    BACKSPACE = "backspace"
    DELETE = "delete"
    TAB = "tab"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    ESCAPE = "escape"
    INTERRUPT = "interrupt"  # Ctrl+C
    EOF = "eof"  # Ctrl+D
    OTHER = "other"


@dataclass(frozen=True)
class KeyEvent:
    key: Key
    char: str = ""

    @classmethod
    def of(cls, char: str) -> KeyEvent:
        return cls(Key.CHAR, char)


class KeySource(Protocol):
    def read_key(self, timeout: float | None = None) -> KeyEvent | None:
        """Block up to ``timeout`` seconds for the next key; ``None`` on timeout."""
        ...

    def close(self) -> None: ...


_KEY_MAP: dict[Any, Key] = {
    Keys.ControlM: Key.ENTER,
    Keys.ControlJ: Key.ENTER,
    Keys.ControlI: Key.TAB,
    Keys.ControlH: Key.BACKSPACE,
    Keys.Delete: Key.DELETE,
    Keys.Left: Key.LEFT,
    Keys.Right: Key.RIGHT,
    Keys.Up: Key.UP,
    Keys.Down: Key.DOWN,
    Keys.Escape: Key.ESCAPE,
    Keys.ControlC: Key.INTERRUPT,
    Keys.ControlD: Key.EOF,
}

# msvcrt scan codes following a 0x00 / 0xE0 prefix
_WINDOWS_SCAN_MAP: dict[str, Key] = {
    "H": Key.UP,
    "P": Key.DOWN,
    "K": Key.LEFT,
    "M": Key.RIGHT,
    "S": Key.DELETE,
}

_WINDOWS_CHAR_MAP: dict[str, Key] = {
    "\r": Key.ENTER,
    "\n": Key.ENTER,
    "\t": Key.TAB,
    "\x08": Key.BACKSPACE,
    "\x1b": Key.ESCAPE,
    "\x03": Key.INTERRUPT,
    "\x04": Key.EOF,
    "\x1a": Key.EOF,
}


def translate_key_press(key_press: KeyPress) -> KeyEvent:
    """Map a prompt_toolkit key press onto the console's key vocabulary."""
    mapped = _KEY_MAP.get(key_press.key)
    if mapped is not None:
        return KeyEvent(mapped)
    data = key_press.data
    if isinstance(key_press.key, str) and len(data) == 1 and data.isprintable():
        return KeyEvent.of(data)
    return KeyEvent(Key.OTHER)


class TerminalKeySource:
    """Reads single key presses from a terminal without line buffering.

    POSIX terminals are switched to cbreak mode for the lifetime of the
    source and decoded with prompt_toolkit's VT100 parser. Windows consoles
    are read through ``msvcrt``.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdin
        self._pending: deque[KeyEvent] = deque()
        self._parser = Vt100Parser(self._on_key_press)
        self._decoder = codecs.getincrementaldecoder("utf-8")("replace")
        self._saved_attrs: Any = None
        self._fd: int | None = None
        if not _IS_WINDOWS:
            self._enter_cbreak()

    def _enter_cbreak(self) -> None:
        import termios
        import tty

        fd = self._stream.fileno()
        self._fd = fd
        if os.isatty(fd):
            self._saved_attrs = termios.tcgetattr(fd)
            tty.setcbreak(fd)

    def close(self) -> None:
        if self._saved_attrs is not None and self._fd is not None:
            import termios

            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None

    def __enter__(self) -> TerminalKeySource:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _on_key_press(self, key_press: KeyPress) -> None:
        self._pending.append(translate_key_press(key_press))

    def read_key(self, timeout: float | None = None) -> KeyEvent | None:
        if self._pending:
            return self._pending.popleft()
        if _IS_WINDOWS:
            return self._read_windows(timeout)
        return self._read_posix(timeout)

    def _read_posix(self, timeout: float | None) -> KeyEvent | None:
        import select

        assert self._fd is not None
        ready, _, _ = select.select([self._fd], [], [], timeout)
        if not ready:
            return None

        raw = os.read(self._fd, 1024)
        if not raw:
            return KeyEvent(Key.EOF)
        self._parser.feed(self._decoder.decode(raw))

        if not self._pending:
            # A lone Escape stays buffered in the parser until we know no
            # sequence follows it.
            more, _, _ = select.select([self._fd], [], [], _ESCAPE_WAIT)
            if not more:
                self._parser.flush()

        return self._pending.popleft() if self._pending else None

    def _read_windows(self, timeout: float | None) -> KeyEvent | None:
        import msvcrt

        deadline = None if timeout is None else time.monotonic() + timeout
        while not msvcrt.kbhit():  # type: ignore[attr-defined]
            if deadline is not None and time.monotonic() >= deadline:
                return None
            time.sleep(0.01)

        ch = msvcrt.getwch()  # type: ignore[attr-defined]
        if ch in ("\x00", "\xe0"):
            scan = msvcrt.getwch()  # type: ignore[attr-defined]
            return KeyEvent(_WINDOWS_SCAN_MAP.get(scan, Key.OTHER))
        mapped = _WINDOWS_CHAR_MAP.get(ch)
        if mapped is not None:
            return KeyEvent(mapped)
        if ch.isprintable():
            return KeyEvent.of(ch)
        return KeyEvent(Key.OTHER)
