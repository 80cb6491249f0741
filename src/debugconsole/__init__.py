"""Embeddable interactive debugging console."""

from __future__ import annotations

__version__ = "0.3.0"

from .cli.repl import ConsoleUI
from .operations.discovery import console_method

__all__ = ["ConsoleUI", "__version__", "console_method"]
