"""Command execution: parse, invoke inside a scheduling bracket, report."""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

import psutil

from ..errors import (
    ArityMismatch,
    CoercionFailure,
    CommandError,
    EmptyCommand,
    InvocationFailure,
    UnknownCommand,
)
from ..operations import OperationRegistry, ResultKind
from ..operations.descriptor import friendly_name
from .feedback import FeedbackSink
from .parser import ParsedCommand, parse_command
from .renderer import ERROR, ERROR_DETAIL, INPUT, OUTPUT, PENDING, SUCCESS

logger = logging.getLogger(__name__)

EchoCallback = Callable[[str, str], None]


# ---------------------------------------------------------------------------
# Scheduling bracket
# ---------------------------------------------------------------------------


def _thread_priority() -> tuple[int, int] | None:
    """Return (native thread id, nice value) where threads carry their own priority."""
    if not hasattr(os, "getpriority") or not hasattr(threading, "get_native_id"):
        return None
    tid = threading.get_native_id()
    try:
        return tid, os.getpriority(os.PRIO_PROCESS, tid)
    except OSError:
        return None


@dataclass(frozen=True)
class SchedulingSnapshot:
    """Ambient scheduling hints captured around a single invocation."""

    thread_priority: tuple[int, int] | None
    cpu_affinity: tuple[int, ...] | None
    priority_class: int | None

    @classmethod
    def capture(cls, process: psutil.Process) -> SchedulingSnapshot:
        affinity: tuple[int, ...] | None = None
        if hasattr(process, "cpu_affinity"):
            try:
                affinity = tuple(process.cpu_affinity())
            except (psutil.Error, OSError):
                affinity = None
        try:
            priority_class: int | None = int(process.nice())
        except (psutil.Error, OSError):
            priority_class = None
        return cls(thread_priority=_thread_priority(), cpu_affinity=affinity, priority_class=priority_class)

    def restore(self, process: psutil.Process) -> None:
        """Put back every hint that differs from the captured value.

        A hint that cannot be restored (typically raising priority back up
        without privileges) is logged and skipped; the others still restore.
        """
        current = SchedulingSnapshot.capture(process)

        if self.cpu_affinity is not None and current.cpu_affinity != self.cpu_affinity:
            try:
                process.cpu_affinity(list(self.cpu_affinity))
            except (psutil.Error, OSError) as e:
                logger.warning("Could not restore CPU affinity: %s", e)

        if self.priority_class is not None and current.priority_class != self.priority_class:
            try:
                process.nice(self.priority_class)
            except (psutil.Error, OSError) as e:
                logger.warning("Could not restore process priority: %s", e)

        if self.thread_priority is not None and current.thread_priority != self.thread_priority:
            tid, value = self.thread_priority
            try:
                os.setpriority(os.PRIO_PROCESS, tid, value)
            except OSError as e:
                logger.warning("Could not restore thread priority: %s", e)


class SchedulingGuard:
    """Context manager: snapshot on enter, restore on exit regardless of outcome."""

    def __init__(self, process: psutil.Process | None = None) -> None:
        self._process = process or psutil.Process()
        self._snapshot: SchedulingSnapshot | None = None

    def __enter__(self) -> SchedulingSnapshot:
        self._snapshot = SchedulingSnapshot.capture(self._process)
        return self._snapshot

    def __exit__(self, *exc: Any) -> None:
        if self._snapshot is not None:
            self._snapshot.restore(self._process)
            self._snapshot = None


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExecutionResult:
    command: str
    ok: bool
    elapsed_ms: int | None = None
    value: Any = None
    error: CommandError | None = None


class ExecutionEngine:
    """Runs committed lines against the registry.

    ``echo`` redraws the command line in a given style; ``feedback`` renders
    output lines and plays cues. No ``CommandError`` escapes ``execute``.
    """

    def __init__(
        self,
        registry: OperationRegistry,
        feedback: FeedbackSink,
        echo: EchoCallback,
        guard_factory: Callable[[], Any] = SchedulingGuard,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._registry = registry
        self.feedback = feedback
        self._echo = echo
        self._guard_factory = guard_factory
        self._clock = clock

    def execute(self, command: str) -> ExecutionResult:
        self._echo(command, PENDING)

        try:
            parsed = parse_command(command, self._registry)
        except EmptyCommand as e:
            self._echo(command, INPUT)
            return ExecutionResult(command, ok=False, error=e)
        except CommandError as e:
            return self._report_failure(command, e)

        try:
            value, lines, elapsed_ms = self._invoke(parsed)
        except InvocationFailure as e:
            logger.debug("Operation %s failed", parsed.descriptor.name, exc_info=e.cause)
            return self._report_failure(command, e)

        self._echo(command, SUCCESS)
        self._begin_output()
        for line in lines:
            self.feedback.render(line, OUTPUT)
        self.feedback.render(f"{elapsed_ms} Ms", OUTPUT)
        self.feedback.cue_success()
        logger.debug("Executed %r in %d ms", command, elapsed_ms)
        return ExecutionResult(command, ok=True, elapsed_ms=elapsed_ms, value=value)

    def _invoke(self, parsed: ParsedCommand) -> tuple[Any, list[str], int]:
        descriptor = parsed.descriptor
        with self._guard_factory():
            start = self._clock()
            try:
                value = descriptor.invoke(*parsed.arguments)
                if descriptor.result_kind is ResultKind.SEQUENCE and value is not None:
                    # lazy sequences run their code here, inside the bracket
                    value = list(value)
            except Exception as e:
                raise InvocationFailure(descriptor, e) from e
            finally:
                elapsed_ms = int((self._clock() - start) * 1000)

        try:
            lines = format_result(descriptor.result_kind, descriptor.return_type, value)
        except Exception as e:
            raise InvocationFailure(descriptor, e) from e
        return value, lines, elapsed_ms

    def _begin_output(self) -> None:
        # end the echoed line, then one blank line before the result block
        self.feedback.render("")
        self.feedback.render("")

    def _report_failure(self, command: str, error: CommandError) -> ExecutionResult:
        self._echo(command, ERROR)
        self._begin_output()
        for line in describe_failure(error):
            self.feedback.render(line, ERROR_DETAIL)
        self.feedback.cue_error()
        return ExecutionResult(command, ok=False, error=error)


def format_result(kind: ResultKind, return_type: Any, value: Any) -> list[str]:
    if kind is ResultKind.EMPTY or value is None:
        return []
    if kind is ResultKind.SEQUENCE:
        lines = [f"Enumerating {friendly_name(return_type)}", ""]
        lines.extend(str(item) for item in value)
        lines.append(f"{len(lines) - 2} Elements")
        return lines
    return [str(value)]


def describe_failure(error: CommandError) -> list[str]:
    if isinstance(error, UnknownCommand):
        return [str(error)]
    if isinstance(error, CoercionFailure):
        return [str(error), "Bad arguments, check function signature:", error.signature]
    if isinstance(error, ArityMismatch):
        return ["Bad arguments, check function signature:", error.signature]
    return [str(error)]
