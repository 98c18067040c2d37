"""Exception hierarchy for the scaffolding engine.

Every error raised by the generator derives from ``ScaffoldError`` so callers
can catch the whole family with a single ``except`` clause.  Conflicts are
*not* errors; they are reported through ``ConflictEvent``.
"""

from __future__ import annotations


class ScaffoldError(Exception):
    """Base class for all scaffolding failures."""


class CircularDependencyError(ScaffoldError):
    """Raised when the blueprint's ``depends_on`` graph contains a cycle.

    Attributes:
        cycle: Module names along the cycle, first name repeated at the end
            (e.g. ``["A", "B", "A"]``).
    """

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = list(cycle)
        self.module = cycle[0] if cycle else ""
        super().__init__(
            f"Circular dependency detected: {' -> '.join(self.cycle)}"
        )


class ContentGenerationError(ScaffoldError):
    """Raised when a content producer fails to render an artifact."""

    def __init__(self, artifact: str, message: str = "") -> None:
        self.artifact = artifact
        detail = f": {message}" if message else ""
        super().__init__(f"Failed to generate content for {artifact}{detail}")


class WriteError(ScaffoldError):
    """Raised when a directory or file cannot be written."""

    def __init__(self, path: str, message: str = "") -> None:
        self.path = path
        detail = f": {message}" if message else ""
        super().__init__(f"Failed to write {path}{detail}")


class RollbackError(ScaffoldError):
    """Raised when an artifact cannot be removed during rollback."""

    def __init__(self, path: str, message: str = "") -> None:
        self.path = path
        detail = f": {message}" if message else ""
        super().__init__(f"Rollback could not remove {path}{detail}")


class GenerationInProgressError(ScaffoldError):
    """Raised when a second run is started on a busy orchestrator."""

    def __init__(self) -> None:
        super().__init__("A generation run is already in progress on this orchestrator")
