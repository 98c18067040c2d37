"""Conflict handling for generated paths that already exist.

One ``ConflictStrategy`` applies to a whole run.  ``merge`` is a textual
append: the new content is kept in full and followed by a marker line so a
human can reconcile any duplication.  It is not a semantic merge.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Literal

from scaffoldkit.events import ConflictEvent, EventEmitter
from scaffoldkit.models import ConflictStrategy

if TYPE_CHECKING:
    from scaffoldkit.generator.writer import TransactionalFileWriter


MERGE_MARKER_TEXT = "--- scaffoldkit generated (merged) ---"

_HASH_COMMENT_SUFFIXES = {
    ".py", ".sh", ".yml", ".yaml", ".toml", ".cfg", ".ini", ".env", ".rb",
}
_HASH_COMMENT_NAMES = {
    ".gitignore", ".dockerignore", ".editorconfig", ".env", ".env.example",
    "Dockerfile", "Makefile", ".prettierrc",
}
_HTML_COMMENT_SUFFIXES = {".md", ".html", ".xml", ".svg"}
_NO_COMMENT_SUFFIXES = {".json"}


def merge_marker(path: str) -> str:
    """Return the marker appended on merge, commented for *path*'s file type."""
    p = PurePosixPath(path.replace("\\", "/"))
    if p.name in _HASH_COMMENT_NAMES or p.suffix in _HASH_COMMENT_SUFFIXES:
        line = f"# {MERGE_MARKER_TEXT}"
    elif p.suffix in _HTML_COMMENT_SUFFIXES:
        line = f"<!-- {MERGE_MARKER_TEXT} -->"
    elif p.suffix in _NO_COMMENT_SUFFIXES:
        line = MERGE_MARKER_TEXT
    else:
        line = f"// {MERGE_MARKER_TEXT}"
    return f"\n\n{line}\n\n"


@dataclass(frozen=True)
class Resolution:
    """Outcome of a conflict check for one path."""

    action: Literal["write", "skip"]
    final_content: str
    conflicted: bool = False

    @property
    def should_write(self) -> bool:
        return self.action == "write"


class ConflictResolver:
    """Decides whether a generated file may be written over an existing one.

    Args:
        strategy: Run-wide policy applied to every collision.
        emitter: Receives a ``ConflictEvent`` for every collision.
    """

    def __init__(
        self,
        strategy: ConflictStrategy | str = ConflictStrategy.OVERWRITE,
        emitter: EventEmitter | None = None,
    ) -> None:
        self.strategy = ConflictStrategy(strategy)
        self.emitter = emitter

    def resolve(self, path: str, new_content: str, exists: bool) -> Resolution:
        """Decide what to do with *new_content* destined for *path*."""
        if not exists:
            return Resolution("write", new_content)

        if self.emitter is not None:
            self.emitter.emit(ConflictEvent(path=path, strategy=self.strategy))

        if self.strategy is ConflictStrategy.SKIP:
            return Resolution("skip", new_content, conflicted=True)
        if self.strategy is ConflictStrategy.MERGE:
            return Resolution("write", new_content + merge_marker(path), conflicted=True)
        return Resolution("write", new_content, conflicted=True)

    async def resolve_with(
        self, writer: TransactionalFileWriter, path: str, new_content: str
    ) -> Resolution:
        """Like :meth:`resolve`, asking *writer* whether *path* exists."""
        exists = await writer.exists(path)
        return self.resolve(str(writer.resolve(path)), new_content, exists)
