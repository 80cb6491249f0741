"""The console: registry construction, built-in operations and the input loop."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from ..config import ConsoleConfig
from ..operations import (
    OperationDescriptor,
    OperationProvider,
    OperationRegistry,
    build_registry,
    console_method,
    describe_operations,
)
from .editor import HistoryLog, LineEditor
from .engine import ExecutionEngine, SchedulingGuard
from .feedback import AudibleFeedback, FeedbackSink, SilentFeedback
from .keys import Key, KeyEvent, KeySource, TerminalKeySource
from .renderer import ERROR_DETAIL, WARNING, Display, TerminalDisplay

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.1  # seconds between stop-flag checks while waiting for a key

_EXIT_KEYS = frozenset({Key.INTERRUPT, Key.EOF})


class ConsoleUI:
    """Interactive console bound to one or more live target objects.

    Operations are collected from every target through ``provider`` plus the
    console's own built-ins (``help``, ``cls``), filtered once into a frozen
    registry, and then driven from a single input thread.
    """

    def __init__(
        self,
        *targets: Any,
        title: str | None = None,
        emit_sound: bool | None = None,
        display: Display | None = None,
        key_source: KeySource | None = None,
        provider: OperationProvider = describe_operations,
        config: ConsoleConfig | None = None,
        guard_factory: Callable[[], Any] = SchedulingGuard,
    ) -> None:
        config = config or ConsoleConfig()
        self._display: Display = display or TerminalDisplay()
        self._key_source = key_source
        self._owns_key_source = False
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

        candidates = []
        for target in targets:
            candidates.extend(provider(target))
        candidates.extend(describe_operations(self))
        self.registry: OperationRegistry = build_registry(candidates)

        self.editor = LineEditor(
            self._display,
            completer=self.registry.complete,
            history=HistoryLog(limit=config.history_limit),
        )
        self._feedback: FeedbackSink = self._make_feedback(config.emit_sound if emit_sound is None else emit_sound)
        self.engine = ExecutionEngine(
            self.registry,
            self._feedback,
            echo=self.editor.fill_line,
            guard_factory=guard_factory,
        )
        self.editor.set_commit_handler(self.engine.execute)

        self._title = ""
        self.title = config.title if title is None else title

        for warning in self.registry.warnings:
            self._feedback.render(warning, WARNING)

    # -- properties --------------------------------------------------------

    @property
    def display(self) -> Display:
        return self._display

    @property
    def title(self) -> str:
        return self._title

    @title.setter
    def title(self, value: str) -> None:
        self._title = value
        self._display.set_title(value)

    @property
    def emit_sound(self) -> bool:
        return isinstance(self._feedback, AudibleFeedback)

    @emit_sound.setter
    def emit_sound(self, value: bool) -> None:
        self._feedback = self._make_feedback(value)
        self.engine.feedback = self._feedback

    def _make_feedback(self, audible: bool) -> FeedbackSink:
        if audible:
            return AudibleFeedback(self._display)
        return SilentFeedback(self._display)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -- built-in operations -------------------------------------------------

    @console_method
    def help(self) -> list[OperationDescriptor]:
        return self.registry.list_operations()

    @console_method
    def cls(self) -> None:
        self._display.clear()
        self.editor.reset()

    # -- input loop --------------------------------------------------------

    def handle_key(self, event: KeyEvent) -> None:
        """Route one key event; Ctrl+C / Ctrl+D request a stop."""
        if event.key in _EXIT_KEYS:
            self.stop()
            return
        try:
            self.editor.handle_key(event)
        except Exception as e:
            logger.exception("Key handling failed for %s", event)
            self._feedback.render(f"Internal error: {e}", ERROR_DETAIL)

    def _ensure_key_source(self) -> KeySource:
        if self._key_source is None:
            self._key_source = TerminalKeySource()
            self._owns_key_source = True
        return self._key_source

    def _release_key_source(self) -> None:
        if self._owns_key_source and self._key_source is not None:
            self._key_source.close()
            self._key_source = None
            self._owns_key_source = False

    def _loop(self) -> None:
        source = self._ensure_key_source()
        try:
            while not self._stop_event.is_set():
                event = source.read_key(timeout=_POLL_INTERVAL)
                if event is not None:
                    self.handle_key(event)
        finally:
            self._release_key_source()

    def run(self) -> threading.Thread:
        """Start the input loop on a dedicated daemon thread."""
        if self.running:
            raise RuntimeError("console is already running")
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="debugconsole-input", daemon=True)
        self._thread.start()
        return self._thread

    def run_forever(self) -> None:
        """Run the input loop on the calling thread until stopped."""
        self._stop_event.clear()
        try:
            self._loop()
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        """Ask the loop to exit after the current key; an in-flight operation runs to completion."""
        self._stop_event.set()

    def join(self, timeout: float | None = None) -> bool:
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def close(self) -> None:
        self.stop()
        if self._thread is not None and self._thread is not threading.current_thread():
            self.join(timeout=1.0)
        self._release_key_source()

    def __enter__(self) -> ConsoleUI:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
