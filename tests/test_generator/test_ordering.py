"""Tests for DependencyOrderer.

Covers:
- Dependencies always precede their dependents
- Input order is kept for unrelated modules
- Unknown dependencies are ignored
- Cycles (including self-cycles) name every module on the cycle
- Long chains do not hit the recursion limit
"""

from __future__ import annotations

import sys

import pytest

from scaffoldkit.errors import CircularDependencyError, ScaffoldError
from scaffoldkit.generator.ordering import DependencyOrderer, order_modules
from scaffoldkit.models import BlueprintModule

pytestmark = pytest.mark.unit


def _mod(name: str, *deps: str) -> BlueprintModule:
    return BlueprintModule(name=name, depends_on=list(deps))


def _names(modules: list[BlueprintModule]) -> list[str]:
    return [m.name for m in modules]


class TestOrdering:
    def test_empty_input(self):
        assert DependencyOrderer().order([]) == []

    def test_dependency_comes_first(self):
        ordered = order_modules([_mod("A", "B"), _mod("B")])
        assert _names(ordered) == ["B", "A"]

    def test_independent_modules_keep_input_order(self):
        ordered = order_modules([_mod("Zeta"), _mod("Alpha"), _mod("Mid")])
        assert _names(ordered) == ["Zeta", "Alpha", "Mid"]

    def test_declared_dependency_order_is_followed(self):
        ordered = order_modules([_mod("App", "Db", "Cache"), _mod("Cache"), _mod("Db")])
        assert _names(ordered) == ["Db", "Cache", "App"]

    def test_diamond(self, modules):
        ordered = order_modules(modules)
        assert _names(ordered) == ["EventBus", "Logger", "App"]

    def test_every_dependency_precedes_dependent(self):
        mods = [
            _mod("E", "D", "B"),
            _mod("D", "C"),
            _mod("C", "A"),
            _mod("B", "A"),
            _mod("A"),
            _mod("F"),
        ]
        ordered = _names(order_modules(mods))
        assert sorted(ordered) == ["A", "B", "C", "D", "E", "F"]
        for mod in mods:
            for dep in mod.depends_on:
                assert ordered.index(dep) < ordered.index(mod.name)

    def test_unknown_dependency_is_ignored(self):
        ordered = order_modules([_mod("A", "Missing"), _mod("B")])
        assert _names(ordered) == ["A", "B"]

    def test_same_input_same_output(self, modules):
        assert _names(order_modules(modules)) == _names(order_modules(list(modules)))

    def test_returns_the_input_objects(self):
        a = _mod("A")
        assert order_modules([a])[0] is a

    def test_long_chain_is_iterative(self):
        depth = sys.getrecursionlimit() + 200
        chain = [_mod(f"M{i}", f"M{i + 1}") for i in range(depth)] + [_mod(f"M{depth}")]
        ordered = order_modules(chain)
        assert ordered[0].name == f"M{depth}"
        assert ordered[-1].name == "M0"


class TestCycles:
    def test_two_module_cycle_names_both(self):
        with pytest.raises(CircularDependencyError) as exc_info:
            order_modules([_mod("A", "B"), _mod("B", "A")])

        err = exc_info.value
        assert err.cycle == ["A", "B", "A"]
        assert "A -> B -> A" in str(err)

    def test_self_cycle(self):
        with pytest.raises(CircularDependencyError) as exc_info:
            order_modules([_mod("A", "A")])
        assert exc_info.value.cycle == ["A", "A"]
        assert exc_info.value.module == "A"

    def test_cycle_path_excludes_lead_in(self):
        with pytest.raises(CircularDependencyError) as exc_info:
            order_modules([_mod("Root", "X"), _mod("X", "Y"), _mod("Y", "Z"), _mod("Z", "X")])
        assert exc_info.value.cycle == ["X", "Y", "Z", "X"]

    def test_is_a_scaffold_error(self):
        with pytest.raises(ScaffoldError):
            order_modules([_mod("A", "B"), _mod("B", "A")])
