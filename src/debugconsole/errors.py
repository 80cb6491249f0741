"""Error taxonomy for the console.

Registry conflicts are collected at build time and never raised. Every
``CommandError`` is scoped to a single committed line: the execution engine
catches it, reports it and keeps the input loop alive.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .operations.descriptor import OperationDescriptor


class ConsoleError(Exception):
    """Base class for all console errors."""


class ConfigError(ConsoleError, ValueError):
    """Invalid configuration value."""


@dataclass(frozen=True)
class RegistryConflict:
    """An operation excluded while building the registry."""

    signature: str
    reason: str

    @property
    def message(self) -> str:
        return f"Warning: {self.signature}\n\t{self.reason}"

    def __str__(self) -> str:
        return self.message


class CommandError(ConsoleError):
    """A committed line could not be executed."""


class EmptyCommand(CommandError):
    def __init__(self) -> None:
        super().__init__("empty command")


class UnknownCommand(CommandError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown command: {name}")
        self.name = name


class ArityMismatch(CommandError):
    def __init__(self, descriptor: OperationDescriptor, given: int) -> None:
        expected = len(descriptor.parameter_types)
        super().__init__(f"{descriptor.name} expects {expected} argument(s), got {given}")
        self.descriptor = descriptor
        self.expected = expected
        self.given = given

    @property
    def signature(self) -> str:
        return self.descriptor.signature


class CoercionFailure(CommandError):
    def __init__(self, descriptor: OperationDescriptor, index: int, parameter: str, token: str) -> None:
        super().__init__(f"Can't parse argument number {index}: {parameter}")
        self.descriptor = descriptor
        self.index = index
        self.parameter = parameter
        self.token = token

    @property
    def signature(self) -> str:
        return self.descriptor.signature


class InvocationFailure(CommandError):
    """The operation itself raised; ``cause`` is the original exception."""

    def __init__(self, descriptor: OperationDescriptor, cause: BaseException) -> None:
        super().__init__(f"{type(cause).__name__}: {cause}")
        self.descriptor = descriptor
        self.cause = cause
