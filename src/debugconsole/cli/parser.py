"""Command-line tokenizer and argument coercion.

Pure functions: no I/O, no side effects.
"""

from __future__ import annotations

import locale
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable

from ..errors import ArityMismatch, CoercionFailure, EmptyCommand, UnknownCommand
from ..operations import OperationDescriptor, OperationRegistry
from ..operations.descriptor import unwrap_optional

_TOKEN_BREAKS = "("


@dataclass(frozen=True)
class ParsedCommand:
    descriptor: OperationDescriptor
    arguments: tuple[Any, ...]


def tokenize(line: str) -> list[str]:
    """Split a command line into tokens.

    A double-quoted run is a single token with the quotes removed; an
    unterminated quote runs to the end of the line. Outside quotes a token is
    a maximal run of characters that are neither whitespace nor ``(``.
    """
    tokens: list[str] = []
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            end = line.find('"', i + 1)
            if end == -1:
                end = n
            tokens.append(line[i + 1 : end])
            i = end + 1
        elif ch.isspace() or ch in _TOKEN_BREAKS:
            i += 1
        else:
            start = i
            while i < n and not line[i].isspace() and line[i] not in _TOKEN_BREAKS and line[i] != '"':
                i += 1
            tokens.append(line[start:i])
    return [t for t in tokens if t]


def _parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"not a boolean: {text!r}")


def _parse_decimal(text: str) -> Decimal:
    try:
        return Decimal(text)
    except InvalidOperation as e:
        raise ValueError(str(e)) from e


# Culture-invariant parsers for the common scalar types.
_INVARIANT_PARSERS: dict[type, Callable[[str], Any]] = {
    bool: _parse_bool,
    int: int,
    float: float,
    complex: complex,
    Decimal: _parse_decimal,
}

# Locale-default parsers, tried when the invariant parse fails.
_LOCALE_PARSERS: dict[type, Callable[[str], Any]] = {
    int: locale.atoi,
    float: locale.atof,
    Decimal: lambda text: _parse_decimal(locale.delocalize(text)),
}


def _parse_enum(enum_type: type[Enum], token: str) -> Enum:
    try:
        return enum_type[token]
    except KeyError:
        pass
    folded = token.casefold()
    for member_name, member in enum_type.__members__.items():
        if member_name.casefold() == folded:
            return member
    raise ValueError(f"{token!r} is not a member of {enum_type.__name__}")


def _invariant_parse(param_type: type, token: str) -> Any:
    parser = _INVARIANT_PARSERS.get(param_type)
    if parser is not None:
        return parser(token)
    parse = getattr(param_type, "parse", None)
    if callable(parse):
        return parse(token)
    return param_type(token)


def coerce_argument(token: str, param_type: Any, index: int, descriptor: OperationDescriptor) -> Any:
    """Convert one token to the declared parameter type or raise ``CoercionFailure``."""
    name = descriptor.parameter_names[index]
    param_type = unwrap_optional(param_type)

    if param_type is str or param_type is Any or not isinstance(param_type, type):
        return token

    if issubclass(param_type, Enum):
        try:
            return _parse_enum(param_type, token)
        except ValueError as e:
            raise CoercionFailure(descriptor, index, name, token) from e

    # a type's own parse or constructor may raise anything
    try:
        return _invariant_parse(param_type, token)
    except Exception as e:
        cause: Exception = e

    fallback = _LOCALE_PARSERS.get(param_type)
    if fallback is not None:
        try:
            return fallback(token)
        except Exception as e:
            cause = e

    raise CoercionFailure(descriptor, index, name, token) from cause


def resolve(tokens: list[str], registry: OperationRegistry) -> OperationDescriptor:
    if not tokens:
        raise EmptyCommand()
    descriptor = registry.get(tokens[0].lower())
    if descriptor is None:
        raise UnknownCommand(tokens[0])
    return descriptor


def parse_command(line: str, registry: OperationRegistry) -> ParsedCommand:
    tokens = tokenize(line)
    descriptor = resolve(tokens, registry)

    arguments = tokens[1:]
    if len(arguments) != descriptor.arity:
        raise ArityMismatch(descriptor, len(arguments))

    coerced = tuple(
        coerce_argument(token, param_type, i, descriptor)
        for i, (token, param_type) in enumerate(zip(arguments, descriptor.parameter_types))
    )
    return ParsedCommand(descriptor=descriptor, arguments=coerced)
