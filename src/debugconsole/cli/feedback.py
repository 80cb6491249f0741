"""Visual and audible command feedback."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Protocol

from .renderer import Display


@dataclass(frozen=True)
class Tone:
    frequency: int  # Hz
    duration_ms: int
    rings: int = 1  # terminal bells used to render the tone


SUCCESS_TONE = Tone(frequency=400, duration_ms=200)
ERROR_TONE = Tone(frequency=250, duration_ms=200, rings=2)


class FeedbackSink(Protocol):
    def render(self, text: str, style: str | None = None) -> None: ...

    def cue_success(self) -> None: ...

    def cue_error(self) -> None: ...


class SilentFeedback:
    """Renders output lines; cues are no-ops."""

    def __init__(self, display: Display) -> None:
        self._display = display

    @property
    def display(self) -> Display:
        return self._display

    def render(self, text: str, style: str | None = None) -> None:
        self._display.write(text, style)
        self._display.newline()

    def cue_success(self) -> None:
        pass

    def cue_error(self) -> None:
        pass


class AudibleFeedback(SilentFeedback):
    """Renders output lines and plays a distinct tone for success and error.

    A terminal has no pitch control, so the default player rings the bell
    ``tone.rings`` times, holding each for ``tone.duration_ms``. Hosts with a
    real audio device pass their own ``player``.
    """

    def __init__(self, display: Display, player: Callable[[Tone], None] | None = None) -> None:
        super().__init__(display)
        self._player = player or self._ring

    def _ring(self, tone: Tone) -> None:
        for _ in range(tone.rings):
            self._display.bell()
            time.sleep(tone.duration_ms / 1000)

    def cue_success(self) -> None:
        self._player(SUCCESS_TONE)

    def cue_error(self) -> None:
        self._player(ERROR_TONE)
