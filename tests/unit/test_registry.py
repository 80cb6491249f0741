"""Tests for the operation registry builder and its conflict rules."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from debugconsole.errors import RegistryConflict
from debugconsole.operations import build_registry, console_method, describe_operations, filter_candidates
from debugconsole.operations.descriptor import BaseDeclaration, OperationCandidate


def _candidate(
    name: str,
    scope: str = "app.Target",
    params: tuple[Any, ...] = (),
    overrides: tuple[BaseDeclaration, ...] = (),
    owner: int = 1,
    result: Any = "ok",
) -> OperationCandidate:
    return OperationCandidate(
        scope=scope,
        name=name,
        parameter_types=params,
        parameter_names=tuple(f"p{i}" for i in range(len(params))),
        return_type=str,
        invoke=lambda *args: result,
        overrides=overrides,
        owner=owner,
    )


class TestSameScopeCollisions:
    def test_both_members_excluded(self) -> None:
        registry = build_registry([_candidate("Reload"), _candidate("reload", params=(int,))])
        assert "reload" not in registry
        assert len(registry) == 0

    def test_one_warning_per_excluded_member(self) -> None:
        registry = build_registry([_candidate("Reload"), _candidate("reload"), _candidate("status")])
        overload_warnings = [w for w in registry.warnings if "overloads not supported" in w]
        assert len(overload_warnings) == 2
        assert "status" in registry

    def test_same_name_on_different_owners_is_not_an_overload(self) -> None:
        registry = build_registry([_candidate("reload", owner=1), _candidate("reload", owner=2)])
        assert "reload" in registry
        assert any("shadowed by" in w for w in registry.warnings)

    def test_real_class_with_case_variants(self) -> None:
        class Target:
            @console_method
            def Reset(self) -> None:  # noqa: N802
                pass

            @console_method
            def reset(self) -> None:
                pass

            @console_method
            def other(self) -> None:
                pass

        registry = build_registry(describe_operations(Target()))
        assert registry.call_names() == ["other"]


class TestOverrideFiltering:
    def test_override_of_marked_base_dropped(self) -> None:
        base = _candidate("ping", scope="app.Base")
        override = _candidate(
            "ping", scope="app.Derived", overrides=(BaseDeclaration("app.Base", marked=True),), result="derived"
        )
        survivors, conflicts = filter_candidates([override, base])
        assert survivors == [base]
        assert len(conflicts) == 1
        assert "virtual and override" in conflicts[0].reason

    def test_override_of_unmarked_base_kept(self) -> None:
        override = _candidate("ping", scope="app.Derived", overrides=(BaseDeclaration("app.Base", marked=False),))
        survivors, conflicts = filter_candidates([override])
        assert survivors == [override]
        assert conflicts == []

    def test_root_most_marked_declaration_wins(self) -> None:
        chain_c = (BaseDeclaration("app.B", marked=True), BaseDeclaration("app.A", marked=True))
        chain_b = (BaseDeclaration("app.A", marked=True),)
        c = _candidate("f", scope="app.C", overrides=chain_c)
        b = _candidate("f", scope="app.B", overrides=chain_b)
        a = _candidate("f", scope="app.A")
        survivors, conflicts = filter_candidates([c, b, a])
        assert survivors == [a]
        assert len(conflicts) == 2

    def test_hierarchy_invokes_most_derived(self) -> None:
        class Base:
            @console_method
            def ping(self) -> str:
                return "base"

        class Derived(Base):
            @console_method
            def ping(self) -> str:
                return "derived"

        registry = build_registry(describe_operations(Derived()))
        descriptor = registry.get("ping")
        assert descriptor is not None
        assert descriptor.scope.endswith("Base")
        assert descriptor.invoke() == "derived"
        assert len(registry.warnings) == 1


class TestFilterIsPure:
    def test_returns_conflict_records(self) -> None:
        _, conflicts = filter_candidates([_candidate("x"), _candidate("X")])
        assert all(isinstance(c, RegistryConflict) for c in conflicts)
        assert conflicts[0].message.startswith("Warning: ")

    def test_build_logs_warnings(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="debugconsole.operations"):
            build_registry([_candidate("x"), _candidate("X")])
        assert "overloads not supported" in caplog.text


class TestRegistryLookup:
    def _registry(self) -> Any:
        return build_registry([_candidate("Help"), _candidate("history"), _candidate("cls"), _candidate("Shake")])

    def test_lookup_is_case_insensitive(self) -> None:
        registry = self._registry()
        assert registry.get("HELP") is not None
        assert registry.get("help").name == "Help"

    def test_missing(self) -> None:
        assert self._registry().get("nope") is None

    def test_list_operations_ordered_by_name(self) -> None:
        names = [d.name for d in self._registry().list_operations()]
        assert names == sorted(names)

    def test_complete_substring_descending(self) -> None:
        assert self._registry().complete("h") == ["Shake", "history", "Help"]

    def test_complete_no_match(self) -> None:
        assert self._registry().complete("zz") == []

    def test_registry_is_read_only(self) -> None:
        registry = self._registry()
        with pytest.raises(TypeError):
            registry._descriptors["x"] = None  # type: ignore[index]
