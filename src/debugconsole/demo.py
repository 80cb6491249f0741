"""Sample target for trying the console from the command line."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from .operations import console_method


class CameraMode(Enum):
    FREE = "free"
    SEEK = "seek"
    LOCKED = "locked"


@dataclass
class Vector2:
    x: float = 0.0
    y: float = 0.0

    def __str__(self) -> str:
        return f"({self.x:g}, {self.y:g})"


class DemoCamera:
    """A 2D camera with just enough state to poke at."""

    def __init__(self) -> None:
        self._home()

    def _home(self) -> None:
        self.position = Vector2()
        self.rotation = 0.0  # radians
        self.zoom_rate = 1.0
        self.mode = CameraMode.FREE

    @console_method
    def move(self, x: float, y: float) -> Vector2:
        self.position = Vector2(x, y)
        return self.position

    @console_method
    def rotate(self, degrees: float) -> float:
        self.rotation = math.radians(degrees)
        return self.rotation

    @console_method
    def zoom(self, rate: float) -> float:
        if rate <= 0:
            raise ValueError("zoom rate must be positive")
        self.zoom_rate = rate
        return self.zoom_rate

    @console_method
    def set_mode(self, mode: CameraMode) -> CameraMode:
        self.mode = mode
        return self.mode

    @console_method
    def label(self, text: str) -> str:
        return f"[{self.mode.value}] {text} @ {self.position}"

    @console_method
    def orbit(self, steps: int) -> list[Vector2]:
        """Points on a unit circle around the current position."""
        return [
            Vector2(
                round(self.position.x + math.cos(2 * math.pi * i / steps), 3),
                round(self.position.y + math.sin(2 * math.pi * i / steps), 3),
            )
            for i in range(steps)
        ]

    @console_method
    def state(self) -> str:
        return (
            f"position={self.position} rotation={math.degrees(self.rotation):g}deg "
            f"zoom={self.zoom_rate:g} mode={self.mode.name}"
        )

    @console_method
    def reset(self) -> None:
        self._home()
