"""Default operation provider: methods explicitly marked with ``@console_method``.

The registry never looks at classes itself; it only consumes the
``OperationCandidate`` list a provider returns. Hosts with their own notion
of exposed operations can pass any callable with the ``OperationProvider``
shape to ``ConsoleUI`` instead of ``describe_operations``.
"""

from __future__ import annotations

import inspect
import logging
import typing
from typing import Any, Callable, TypeVar

from .descriptor import BaseDeclaration, OperationCandidate

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

OperationProvider = Callable[[Any], list[OperationCandidate]]

_MARKER = "__console_method__"

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def console_method(func: F) -> F:
    """Mark an instance method as callable from the console."""
    setattr(func, _MARKER, True)
    return func


def is_console_method(member: Any) -> bool:
    return inspect.isfunction(member) and getattr(member, _MARKER, False) is True


def _scope_name(klass: type) -> str:
    return f"{klass.__module__}.{klass.__qualname__}"


def _resolve_hints(func: Callable[..., Any]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(func)
    except (NameError, TypeError) as e:
        logger.warning("Unresolvable annotations on %s: %s", func.__qualname__, e)
        return {}


def _override_chain(klass: type, attr_name: str) -> tuple[BaseDeclaration, ...]:
    chain = []
    for base in klass.__mro__[1:]:
        member = vars(base).get(attr_name)
        if inspect.isfunction(member):
            chain.append(BaseDeclaration(scope=_scope_name(base), marked=is_console_method(member)))
    return tuple(chain)


def describe_operations(target: Any) -> list[OperationCandidate]:
    """Walk the target's class hierarchy, most derived first, and yield marked methods.

    Each marked declaration becomes its own candidate, including overrides of
    other marked declarations; the registry builder decides which survive.
    Invocation always goes through ``getattr`` on the target so the most
    derived implementation runs.
    """
    candidates: list[OperationCandidate] = []
    for klass in type(target).__mro__:
        if klass is object:
            continue
        for attr_name, member in vars(klass).items():
            if not is_console_method(member):
                continue

            hints = _resolve_hints(member)
            params = [p for p in inspect.signature(member).parameters.values() if p.kind in _POSITIONAL]
            # drop the bound instance parameter
            params = params[1:]

            candidates.append(
                OperationCandidate(
                    scope=_scope_name(klass),
                    name=attr_name,
                    parameter_types=tuple(hints.get(p.name, Any) for p in params),
                    parameter_names=tuple(p.name for p in params),
                    return_type=hints.get("return", Any),
                    invoke=getattr(target, attr_name),
                    overrides=_override_chain(klass, attr_name),
                    owner=id(target),
                )
            )
    return candidates
