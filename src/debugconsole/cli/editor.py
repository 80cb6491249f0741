"""Single-line command editor: buffer, cursor, history recall and tab completion."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from .keys import Key, KeyEvent
from .parser import tokenize
from .renderer import INPUT, Display


CommitHandler = Callable[[str], Any]
Completer = Callable[[str], list[str]]


@dataclass
class EditBuffer:
    chars: list[str] = field(default_factory=list)
    cursor: int = 0

    @property
    def text(self) -> str:
        return "".join(self.chars)

    def __len__(self) -> int:
        return len(self.chars)

    @property
    def at_end(self) -> bool:
        return self.cursor == len(self.chars)

    def insert(self, ch: str) -> None:
        self.chars.insert(self.cursor, ch)
        self.cursor += 1

    def delete_before(self) -> bool:
        if self.cursor == 0:
            return False
        del self.chars[self.cursor - 1]
        self.cursor -= 1
        return True

    def delete_at(self) -> bool:
        if self.cursor >= len(self.chars):
            return False
        del self.chars[self.cursor]
        return True

    def move(self, delta: int) -> None:
        self.cursor = max(0, min(len(self.chars), self.cursor + delta))

    def replace(self, text: str) -> None:
        self.chars = list(text)
        self.cursor = len(self.chars)

    def clear(self) -> None:
        self.chars = []
        self.cursor = 0


class HistoryLog:
    """Committed lines, oldest first, with a browse index (-1 = not browsing)."""

    def __init__(self, limit: int = 0) -> None:
        self._entries: list[str] = []
        self._limit = limit
        self.index = -1

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: str) -> None:
        self._entries.append(entry)
        if self._limit > 0 and len(self._entries) > self._limit:
            del self._entries[: len(self._entries) - self._limit]
        self.index = -1

    def older(self) -> str | None:
        if not self._entries:
            return None
        if self.index == -1:
            self.index = len(self._entries) - 1
        elif self.index > 0:
            self.index -= 1
        return self._entries[self.index]

    def newer(self) -> str | None:
        # Stops at the newest entry; never returns to the "not browsing" state.
        if not self._entries or self.index == -1 or self.index == len(self._entries) - 1:
            return None
        self.index += 1
        return self._entries[self.index]


@dataclass
class AutocompleteSession:
    candidates: list[str]
    index: int = 0

    def next(self) -> str | None:
        if not self.candidates:
            return None
        candidate = self.candidates[self.index]
        self.index = (self.index + 1) % len(self.candidates)
        return candidate


class LineEditor:
    """Key-event state machine over an ``EditBuffer``.

    Every transition runs synchronously on the input thread and keeps the
    display cursor column equal to the buffer cursor.
    """

    def __init__(
        self,
        display: Display,
        completer: Completer,
        on_commit: CommitHandler | None = None,
        history: HistoryLog | None = None,
    ) -> None:
        self._display = display
        self._completer = completer
        self._on_commit = on_commit
        self.buffer = EditBuffer()
        self.history = history if history is not None else HistoryLog()
        self.autocomplete: AutocompleteSession | None = None

    @property
    def text(self) -> str:
        return self.buffer.text

    @property
    def cursor(self) -> int:
        return self.buffer.cursor

    def set_commit_handler(self, handler: CommitHandler | None) -> None:
        self._on_commit = handler

    def handle_key(self, event: KeyEvent) -> None:
        handler = self._HANDLERS.get(event.key)
        if handler is not None:
            handler(self, event)

    # -- rendering ---------------------------------------------------------

    def fill_line(self, text: str, style: str | None = INPUT) -> None:
        """Replace the whole line on screen and in the buffer with ``text``."""
        previous = len(self.buffer)
        self._display.move_to_column(0)
        self._display.write(text, style)
        if previous > len(text):
            self._display.write(" " * (previous - len(text)))
        self.buffer.replace(text)
        self._display.move_to_column(self.buffer.cursor)

    def _render_tail(self, erase: int = 0) -> None:
        tail = "".join(self.buffer.chars[self.buffer.cursor :])
        self._display.move_to_column(self.buffer.cursor)
        self._display.write(tail + " " * erase, INPUT)
        self._display.move_to_column(self.buffer.cursor)

    def reset(self) -> None:
        """Drop the buffer without touching the screen (used after a screen clear)."""
        self.buffer.clear()
        self.autocomplete = None

    def clear_line(self) -> None:
        length = len(self.buffer)
        self._display.move_to_column(0)
        self._display.write(" " * length)
        self._display.move_to_column(0)
        self.reset()

    # -- transitions -------------------------------------------------------

    def insert_char(self, ch: str) -> None:
        if len(self.buffer) >= self._display.width - 1:
            return
        if self.buffer.at_end:
            self.buffer.insert(ch)
            self._display.write(ch, INPUT)
        else:
            self.buffer.insert(ch)
            self._display.move_to_column(self.buffer.cursor - 1)
            self._display.write(ch, INPUT)
            self._render_tail()
        self.autocomplete = None

    def backspace(self) -> None:
        if not self.buffer.delete_before():
            return
        self._render_tail(erase=1)
        self.autocomplete = None

    def delete(self) -> None:
        if not self.buffer.delete_at():
            return
        self._render_tail(erase=1)
        self.autocomplete = None

    def move_left(self) -> None:
        self.buffer.move(-1)
        self._display.move_to_column(self.buffer.cursor)

    def move_right(self) -> None:
        self.buffer.move(1)
        self._display.move_to_column(self.buffer.cursor)

    def history_back(self) -> None:
        entry = self.history.older()
        if entry is not None:
            self.fill_line(entry)
            self.autocomplete = None

    def history_forward(self) -> None:
        entry = self.history.newer()
        if entry is not None:
            self.fill_line(entry)
            self.autocomplete = None

    def complete(self) -> None:
        tokens = tokenize(self.buffer.text)
        if len(tokens) != 1:
            # arguments are being typed
            return
        if self.autocomplete is None:
            self.autocomplete = AutocompleteSession(self._completer(tokens[0]))
        candidate = self.autocomplete.next()
        if candidate is not None:
            self.fill_line(candidate)

    def commit(self) -> str | None:
        """Hand the trimmed line to the commit handler; returns it, or None if blank."""
        raw = self.buffer.text
        command = raw.strip()
        if not command:
            return None
        try:
            if self._on_commit is not None:
                self._on_commit(command)
        finally:
            self.history.append(raw)
            self.reset()
            self._display.move_to_column(0)
            self._display.newline()
        return command

    def _on_char(self, event: KeyEvent) -> None:
        if event.char:
            self.insert_char(event.char)

    _HANDLERS: dict[Key, Callable[[LineEditor, KeyEvent], Any]] = {
        Key.CHAR: _on_char,
        Key.BACKSPACE: lambda self, _e: self.backspace(),
        Key.DELETE: lambda self, _e: self.delete(),
        Key.LEFT: lambda self, _e: self.move_left(),
        Key.RIGHT: lambda self, _e: self.move_right(),
        Key.UP: lambda self, _e: self.history_back(),
        Key.DOWN: lambda self, _e: self.history_forward(),
        Key.TAB: lambda self, _e: self.complete(),
        Key.ESCAPE: lambda self, _e: self.clear_line(),
        Key.ENTER: lambda self, _e: self.commit(),
    }
