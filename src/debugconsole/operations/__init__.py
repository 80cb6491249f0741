"""Operation registry: call name to descriptor, frozen after build."""

from __future__ import annotations

import logging
from collections import defaultdict
from types import MappingProxyType
from typing import Iterable, Iterator

from ..errors import RegistryConflict
from .descriptor import OperationCandidate, OperationDescriptor, ResultKind
from .discovery import OperationProvider, console_method, describe_operations

logger = logging.getLogger(__name__)

__all__ = [
    "OperationCandidate",
    "OperationDescriptor",
    "OperationProvider",
    "OperationRegistry",
    "ResultKind",
    "build_registry",
    "console_method",
    "describe_operations",
    "filter_candidates",
]


class OperationRegistry:
    """Read-only mapping of lowercase call name to descriptor."""

    def __init__(self, descriptors: dict[str, OperationDescriptor], conflicts: list[RegistryConflict]) -> None:
        self._descriptors = MappingProxyType(dict(descriptors))
        self._conflicts = tuple(conflicts)

    @property
    def conflicts(self) -> tuple[RegistryConflict, ...]:
        return self._conflicts

    @property
    def warnings(self) -> list[str]:
        return [c.message for c in self._conflicts]

    def get(self, call_name: str) -> OperationDescriptor | None:
        return self._descriptors.get(call_name.lower())

    def __contains__(self, call_name: object) -> bool:
        return isinstance(call_name, str) and call_name.lower() in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def call_names(self) -> list[str]:
        return list(self._descriptors)

    def list_operations(self) -> list[OperationDescriptor]:
        return sorted(self._descriptors.values(), key=lambda d: d.name)

    def complete(self, fragment: str) -> list[str]:
        """Names whose call name contains ``fragment`` (case-insensitive), descending by name."""
        needle = fragment.lower()
        matches = [d.name for d in self._descriptors.values() if needle in d.call_name]
        return sorted(matches, key=str.casefold, reverse=True)


def _root_marked_scope(candidate: OperationCandidate) -> str:
    scope = candidate.scope
    for base in candidate.overrides:
        if base.marked:
            scope = base.scope
    return scope


def filter_candidates(
    candidates: Iterable[OperationCandidate],
) -> tuple[list[OperationCandidate], list[RegistryConflict]]:
    """Apply the override and overload rules. Pure: no logging, no output.

    Returns the surviving candidates in their original order plus one
    conflict record per excluded candidate.
    """
    conflicts: list[RegistryConflict] = []

    survivors: list[OperationCandidate] = []
    for candidate in candidates:
        if _root_marked_scope(candidate) != candidate.scope:
            conflicts.append(RegistryConflict(candidate.signature, "console method on virtual and override"))
            continue
        survivors.append(candidate)

    groups: dict[tuple[int, str, str], list[OperationCandidate]] = defaultdict(list)
    for candidate in survivors:
        groups[(candidate.owner, candidate.scope, candidate.call_name)].append(candidate)

    overloaded = set()
    for members in groups.values():
        if len(members) > 1:
            for member in members:
                overloaded.add(id(member))
                conflicts.append(RegistryConflict(member.signature, "method overloads not supported"))

    survivors = [c for c in survivors if id(c) not in overloaded]

    unique: list[OperationCandidate] = []
    seen: dict[str, OperationCandidate] = {}
    for candidate in survivors:
        winner = seen.get(candidate.call_name)
        if winner is not None:
            conflicts.append(RegistryConflict(candidate.signature, f"shadowed by {winner.signature}"))
            continue
        seen[candidate.call_name] = candidate
        unique.append(candidate)

    return unique, conflicts


def build_registry(candidates: Iterable[OperationCandidate]) -> OperationRegistry:
    survivors, conflicts = filter_candidates(candidates)
    for conflict in conflicts:
        logger.warning("%s", conflict.message.replace("\n\t", " - "))
    descriptors = {c.call_name: OperationDescriptor.from_candidate(c) for c in survivors}
    return OperationRegistry(descriptors, conflicts)
