"""Shared fakes: an in-memory display and a scripted key source."""

from __future__ import annotations

import contextlib
import time
from collections import deque
from typing import Iterable

import pytest

from debugconsole.cli.keys import Key, KeyEvent


class FakeDisplay:
    """Terminal stand-in: overwrites characters at the cursor column like a real line."""

    def __init__(self, width: int = 80) -> None:
        self.width = width
        self.column = 0
        self.lines: list[str] = [""]
        self.writes: list[tuple[str, str | None]] = []
        self.title = ""
        self.bells = 0
        self.clears = 0

    def write(self, text: str, style: str | None = None) -> None:
        self.writes.append((text, style))
        line = self.lines[-1].ljust(self.column)
        self.lines[-1] = line[: self.column] + text + line[self.column + len(text) :]
        self.column += len(text)

    def newline(self) -> None:
        self.lines.append("")
        self.column = 0

    def move_to_column(self, column: int) -> None:
        self.column = max(0, column)

    def clear(self) -> None:
        self.lines = [""]
        self.column = 0
        self.clears += 1

    def set_title(self, title: str) -> None:
        self.title = title

    def bell(self) -> None:
        self.bells += 1

    @property
    def current_line(self) -> str:
        return self.lines[-1].rstrip()

    def output(self) -> list[str]:
        return [line.rstrip() for line in self.lines]

    def styles_for(self, text: str) -> list[str | None]:
        return [style for written, style in self.writes if written == text]


class ScriptedKeySource:
    """Hands out queued key events, then reports timeouts."""

    def __init__(self, events: Iterable[KeyEvent] = ()) -> None:
        self.events: deque[KeyEvent] = deque(events)
        self.closed = False

    def feed(self, *events: KeyEvent) -> None:
        self.events.extend(events)

    def read_key(self, timeout: float | None = None) -> KeyEvent | None:
        if self.events:
            return self.events.popleft()
        if timeout:
            time.sleep(min(timeout, 0.01))
        return None

    def close(self) -> None:
        self.closed = True


def keys_for(text: str, enter: bool = True) -> list[KeyEvent]:
    events = [KeyEvent.of(ch) for ch in text]
    if enter:
        events.append(KeyEvent(Key.ENTER))
    return events


@pytest.fixture
def display() -> FakeDisplay:
    return FakeDisplay()


@pytest.fixture
def no_guard() -> type[contextlib.nullcontext]:
    return contextlib.nullcontext
