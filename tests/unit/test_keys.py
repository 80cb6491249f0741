"""Tests for cli/keys.py: key translation and the raw terminal source."""

from __future__ import annotations

import os
import sys
from typing import Iterator

import pytest
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys

from debugconsole.cli.keys import Key, KeyEvent, TerminalKeySource, translate_key_press


class TestTranslateKeyPress:
    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            (Keys.ControlM, Key.ENTER),
            (Keys.ControlI, Key.TAB),
            (Keys.ControlH, Key.BACKSPACE),
            (Keys.Delete, Key.DELETE),
            (Keys.Left, Key.LEFT),
            (Keys.Right, Key.RIGHT),
            (Keys.Up, Key.UP),
            (Keys.Down, Key.DOWN),
            (Keys.Escape, Key.ESCAPE),
            (Keys.ControlC, Key.INTERRUPT),
            (Keys.ControlD, Key.EOF),
        ],
    )
    def test_named_keys(self, key: Keys, expected: Key) -> None:
        assert translate_key_press(KeyPress(key)).key is expected

    def test_printable_character(self) -> None:
        assert translate_key_press(KeyPress("q", "q")) == KeyEvent.of("q")

    def test_unmapped_control_key(self) -> None:
        assert translate_key_press(KeyPress(Keys.F5)).key is Key.OTHER


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX pipe input")
class TestTerminalKeySource:
    @pytest.fixture
    def pipe(self) -> Iterator[tuple[TerminalKeySource, int]]:
        read_fd, write_fd = os.pipe()
        stream = os.fdopen(read_fd, "r")
        source = TerminalKeySource(stream)
        try:
            yield source, write_fd
        finally:
            source.close()
            stream.close()
            try:
                os.close(write_fd)
            except OSError:
                pass

    def test_characters_and_arrows(self, pipe: tuple[TerminalKeySource, int]) -> None:
        source, write_fd = pipe
        os.write(write_fd, b"ab\x1b[A\r")
        events = [source.read_key(timeout=1) for _ in range(4)]
        assert events == [KeyEvent.of("a"), KeyEvent.of("b"), KeyEvent(Key.UP), KeyEvent(Key.ENTER)]

    def test_backspace_byte(self, pipe: tuple[TerminalKeySource, int]) -> None:
        source, write_fd = pipe
        os.write(write_fd, b"\x7f")
        assert source.read_key(timeout=1) == KeyEvent(Key.BACKSPACE)

    def test_lone_escape_delivered(self, pipe: tuple[TerminalKeySource, int]) -> None:
        source, write_fd = pipe
        os.write(write_fd, b"\x1b")
        assert source.read_key(timeout=1) == KeyEvent(Key.ESCAPE)

    def test_utf8_character(self, pipe: tuple[TerminalKeySource, int]) -> None:
        source, write_fd = pipe
        os.write(write_fd, "é".encode())
        assert source.read_key(timeout=1) == KeyEvent.of("é")

    def test_timeout_returns_none(self, pipe: tuple[TerminalKeySource, int]) -> None:
        source, _ = pipe
        assert source.read_key(timeout=0.01) is None

    def test_closed_input_is_eof(self, pipe: tuple[TerminalKeySource, int]) -> None:
        source, write_fd = pipe
        os.close(write_fd)
        assert source.read_key(timeout=1) == KeyEvent(Key.EOF)
