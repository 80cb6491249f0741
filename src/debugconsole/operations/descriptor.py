"""Operation records: raw provider candidates and frozen registry descriptors."""

from __future__ import annotations

import collections.abc
import types
import typing
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

OperationInvoker = Callable[..., Any]


class ResultKind(Enum):
    """How the execution engine formats an operation's return value."""

    SCALAR = "scalar"
    SEQUENCE = "sequence"
    EMPTY = "empty"


@dataclass(frozen=True)
class BaseDeclaration:
    """One step up an operation's override chain."""

    scope: str
    marked: bool


@dataclass(frozen=True)
class OperationCandidate:
    """Raw operation yielded by an operation provider, before conflict filtering.

    ``overrides`` lists the base declarations this operation overrides,
    nearest first. ``owner`` identifies the instance ``invoke`` is bound to so
    that two targets of the same class never collide with each other.
    """

    scope: str
    name: str
    parameter_types: tuple[Any, ...]
    parameter_names: tuple[str, ...]
    return_type: Any
    invoke: OperationInvoker = field(compare=False, repr=False)
    overrides: tuple[BaseDeclaration, ...] = ()
    owner: int = 0

    @property
    def call_name(self) -> str:
        return self.name.lower()

    @property
    def signature(self) -> str:
        return build_signature(self.name, self.parameter_names, self.parameter_types, self.return_type)


@dataclass(frozen=True)
class OperationDescriptor:
    name: str
    call_name: str
    scope: str
    parameter_types: tuple[Any, ...]
    parameter_names: tuple[str, ...]
    return_type: Any
    result_kind: ResultKind
    signature: str
    invoke: OperationInvoker = field(compare=False, repr=False)

    @classmethod
    def from_candidate(cls, candidate: OperationCandidate) -> OperationDescriptor:
        return cls(
            name=candidate.name,
            call_name=candidate.call_name,
            scope=candidate.scope,
            parameter_types=tuple(candidate.parameter_types),
            parameter_names=tuple(candidate.parameter_names),
            return_type=candidate.return_type,
            result_kind=classify_result(candidate.return_type),
            signature=candidate.signature,
            invoke=candidate.invoke,
        )

    @property
    def arity(self) -> int:
        return len(self.parameter_types)

    def __str__(self) -> str:
        return self.signature


def friendly_name(tp: Any) -> str:
    """Render a type annotation the way it reads in source, without ``typing.`` noise."""
    if tp is None or tp is type(None):
        return "None"
    if tp is Ellipsis:
        return "..."
    if isinstance(tp, str):
        return tp
    if isinstance(tp, list):
        return "[" + ", ".join(friendly_name(a) for a in tp) + "]"

    origin = typing.get_origin(tp)
    if origin is not None:
        args = typing.get_args(tp)
        if origin is typing.Union or origin is types.UnionType:
            return " | ".join(friendly_name(a) for a in args)
        base = getattr(origin, "__name__", None) or str(origin).replace("typing.", "")
        if args:
            return f"{base}[{', '.join(friendly_name(a) for a in args)}]"
        return base

    if isinstance(tp, type):
        return tp.__name__
    return str(tp).replace("typing.", "")


def build_signature(
    name: str,
    parameter_names: tuple[str, ...],
    parameter_types: tuple[Any, ...],
    return_type: Any,
) -> str:
    params = ", ".join(f"{pname}: {friendly_name(ptype)}" for pname, ptype in zip(parameter_names, parameter_types))
    return f"{name}({params}) -> {friendly_name(return_type)}"


def unwrap_optional(tp: Any) -> Any:
    """Return ``X`` for ``Optional[X]`` / ``X | None``; anything else unchanged."""
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def classify_result(return_type: Any) -> ResultKind:
    """Decide the result kind from a declared return type.

    Text and mappings print as a single value; any other iterable type is
    enumerated element by element.
    """
    if return_type is None or return_type is type(None):
        return ResultKind.EMPTY
    if return_type is Any:
        return ResultKind.SCALAR

    tp = unwrap_optional(return_type)
    origin = typing.get_origin(tp) or tp
    if not isinstance(origin, type):
        return ResultKind.SCALAR
    if issubclass(origin, (str, bytes, bytearray, collections.abc.Mapping)):
        return ResultKind.SCALAR
    if issubclass(origin, collections.abc.Iterable):
        return ResultKind.SEQUENCE
    return ResultKind.SCALAR
