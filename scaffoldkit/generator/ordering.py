"""Dependency ordering for blueprint modules.

Produces a linear order in which every module follows all of the modules it
depends on.  The traversal is an iterative depth-first search with
three-colour marking, so deep dependency chains never hit the interpreter's
recursion limit.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from enum import Enum

from scaffoldkit.errors import CircularDependencyError
from scaffoldkit.models import BlueprintModule


class _Mark(Enum):
    UNVISITED = 0
    VISITING = 1
    VISITED = 2


class DependencyOrderer:
    """Topologically sorts modules by their ``depends_on`` relation.

    Modules with no dependency relation to each other keep their input order,
    which makes the output reproducible for identical input.  Dependencies
    naming modules outside the input set are treated as already satisfied.
    """

    def order(self, modules: Sequence[BlueprintModule]) -> list[BlueprintModule]:
        """Return *modules* sorted so dependencies come first.

        Raises:
            CircularDependencyError: If the graph contains a cycle.  No
                partial order is returned.
        """
        if not modules:
            return []

        by_name: dict[str, BlueprintModule] = {m.name: m for m in modules}
        marks: dict[str, _Mark] = {name: _Mark.UNVISITED for name in by_name}
        ordered: list[BlueprintModule] = []

        # Each frame is (module name, iterator over its in-set deps).
        stack: list[tuple[str, Iterator[str]]] = []
        path: list[str] = []

        def _enter(name: str) -> None:
            marks[name] = _Mark.VISITING
            deps = (d for d in by_name[name].depends_on if d in by_name)
            stack.append((name, deps))
            path.append(name)

        for root in modules:
            if marks[root.name] is not _Mark.UNVISITED:
                continue

            _enter(root.name)
            while stack:
                name, deps = stack[-1]
                dep = next(deps, None)
                if dep is None:
                    stack.pop()
                    path.pop()
                    marks[name] = _Mark.VISITED
                    ordered.append(by_name[name])
                    continue

                mark = marks[dep]
                if mark is _Mark.VISITING:
                    cycle = path[path.index(dep):] + [dep]
                    raise CircularDependencyError(cycle)
                if mark is _Mark.UNVISITED:
                    _enter(dep)

        return ordered


def order_modules(modules: Sequence[BlueprintModule]) -> list[BlueprintModule]:
    """Shortcut for ``DependencyOrderer().order(modules)``."""
    return DependencyOrderer().order(modules)
