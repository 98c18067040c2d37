"""Transactional file writing with an undo ledger.

``TransactionalFileWriter`` creates directories and writes text files under a
base path, recording every artifact it touches so the whole batch can be
rolled back.  In dry-run mode nothing reaches the disk: directories and file
contents are kept in an in-memory namespace, and the ledger is recorded
exactly as for a real run.
"""

from __future__ import annotations

import asyncio
import errno
import os
from pathlib import Path

from scaffoldkit.errors import RollbackError, WriteError
from scaffoldkit.models import ArtifactKind, CreatedArtifact
from scaffoldkit.utils import byte_length


class TransactionalFileWriter:
    """Writes files under *base_path* and can undo everything it wrote.

    One instance belongs to one generation run.  The ledger is append-only
    until :meth:`rollback` clears it.

    Args:
        base_path: Root against which relative paths are resolved.
        dry_run: Simulate every operation in memory.
        encoding: Encoding used for file contents and byte accounting.
    """

    def __init__(
        self,
        base_path: str | Path,
        *,
        dry_run: bool = False,
        encoding: str = "utf-8",
    ) -> None:
        self.base_path = Path(base_path).resolve()
        self.dry_run = dry_run
        self.encoding = encoding
        self._ledger: list[CreatedArtifact] = []
        self._virtual_dirs: set[str] = set()
        self._virtual_files: dict[str, str] = {}

    # -- Inspection --------------------------------------------------------

    @property
    def ledger(self) -> tuple[CreatedArtifact, ...]:
        """Snapshot of every artifact recorded so far, in creation order."""
        return tuple(self._ledger)

    @property
    def virtual_files(self) -> dict[str, str]:
        """Copy of the dry-run namespace (absolute path -> content)."""
        return dict(self._virtual_files)

    def resolve(self, target: str | Path) -> Path:
        """Resolve *target* against the base path (absolute paths pass through)."""
        path = Path(target)
        if not path.is_absolute():
            path = self.base_path / path
        return Path(os.path.normpath(path))

    def relative(self, target: str | Path) -> str:
        """POSIX-style path of *target* relative to the base path."""
        return self.resolve(target).relative_to(self.base_path).as_posix()

    async def exists(self, target: str | Path) -> bool:
        """Whether *target* exists on disk, or in the virtual namespace in dry-run."""
        path = self.resolve(target)
        if self.dry_run:
            key = str(path)
            return key in self._virtual_files or key in self._virtual_dirs
        return await asyncio.to_thread(path.exists)

    # -- Writing -----------------------------------------------------------

    async def create_directory(self, target: str | Path) -> CreatedArtifact:
        """Create *target* and any missing ancestors.

        Idempotent.  The directory is recorded even when it already existed,
        so rollback considers it part of this run.  Ancestors that did not
        exist yet are recorded before it, outermost first.

        Raises:
            WriteError: If the directory cannot be created.
        """
        path = self.resolve(target)
        if self.dry_run:
            blocker = self._virtual_file_at(path)
            if blocker is not None:
                reason = "File exists" if blocker == path else "Not a directory"
                raise WriteError(str(path), reason)
            # Outside the base path the virtual namespace knows nothing, so
            # those ancestors are taken to exist.
            missing = [
                p for p in reversed(path.parents)
                if p.is_relative_to(self.base_path) and str(p) not in self._virtual_dirs
            ]
            self._virtual_dirs.add(str(path))
            for parent in path.parents:
                self._virtual_dirs.add(str(parent))
        else:
            missing = await asyncio.to_thread(_missing_ancestors, path)
            try:
                await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
            except OSError as exc:
                raise WriteError(str(path), exc.strerror or str(exc)) from exc

        for ancestor in missing:
            self._record(ancestor, ArtifactKind.DIRECTORY, 0)
        return self._record(path, ArtifactKind.DIRECTORY, 0)

    async def write_file(self, target: str | Path, content: str) -> CreatedArtifact:
        """Write *content* to *target*, creating the parent directory first.

        Raises:
            WriteError: If the parent directory or the file cannot be written.
        """
        path = self.resolve(target)
        await self.create_directory(path.parent)

        if self.dry_run:
            if str(path) in self._virtual_dirs:
                raise WriteError(str(path), "Is a directory")
            self._virtual_files[str(path)] = content
        else:
            try:
                await asyncio.to_thread(_write_text, path, content, self.encoding)
            except OSError as exc:
                raise WriteError(str(path), exc.strerror or str(exc)) from exc
        return self._record(path, ArtifactKind.FILE, byte_length(content, self.encoding))

    async def read_file(self, target: str | Path) -> str:
        """Read back a file written by this writer (or present on disk)."""
        path = self.resolve(target)
        if self.dry_run:
            return self._virtual_files[str(path)]
        return await asyncio.to_thread(path.read_text, encoding=self.encoding)

    # -- Undo --------------------------------------------------------------

    async def rollback(self) -> int:
        """Remove every recorded artifact and clear the ledger.

        Files go first in reverse creation order, then directories deepest
        first.  Targets that are already gone and directories that still
        hold foreign content are tolerated.

        Returns:
            Number of artifacts actually removed.

        Raises:
            RollbackError: On any other filesystem error.  The ledger is left
                intact in that case so the caller can inspect it.
        """
        files = [a.absolute_path for a in reversed(self._ledger) if a.kind is ArtifactKind.FILE]
        dirs = sorted(
            {a.absolute_path for a in self._ledger if a.kind is ArtifactKind.DIRECTORY},
            key=len,
            reverse=True,
        )

        if self.dry_run:
            removed = self._rollback_virtual(files, dirs)
        else:
            removed = 0
            for path in files:
                if await asyncio.to_thread(_remove_file, path):
                    removed += 1
            for path in dirs:
                if await asyncio.to_thread(_remove_dir, path):
                    removed += 1

        self._ledger.clear()
        return removed

    def _rollback_virtual(self, files: list[str], dirs: list[str]) -> int:
        removed = 0
        for path in files:
            if self._virtual_files.pop(path, None) is not None:
                removed += 1
        for path in dirs:
            if path not in self._virtual_dirs:
                continue
            prefix = path.rstrip(os.sep) + os.sep
            occupied = any(f.startswith(prefix) for f in self._virtual_files) or any(
                d.startswith(prefix) for d in self._virtual_dirs
            )
            if not occupied:
                self._virtual_dirs.discard(path)
                removed += 1
        # Implicit ancestors were never recorded; drop the ones left empty.
        for path in sorted(self._virtual_dirs, key=len, reverse=True):
            prefix = path.rstrip(os.sep) + os.sep
            if not any(f.startswith(prefix) for f in self._virtual_files) and not any(
                d.startswith(prefix) for d in self._virtual_dirs
            ):
                self._virtual_dirs.discard(path)
        return removed

    # -- Internals ---------------------------------------------------------

    def _virtual_file_at(self, path: Path) -> Path | None:
        """The virtual file occupying *path* or one of its ancestors, if any."""
        for candidate in (path, *path.parents):
            if str(candidate) in self._virtual_files:
                return candidate
        return None

    def _record(self, path: Path, kind: ArtifactKind, size: int) -> CreatedArtifact:
        entry = CreatedArtifact(absolute_path=str(path), kind=kind, byte_size=size)
        self._ledger.append(entry)
        return entry


# ---------------------------------------------------------------------------
# Blocking helpers (run in a worker thread)
# ---------------------------------------------------------------------------

def _write_text(path: Path, content: str, encoding: str) -> None:
    # newline="" keeps the content byte-identical to the dry-run namespace.
    with open(path, "w", encoding=encoding, newline="") as fh:
        fh.write(content)


def _missing_ancestors(path: Path) -> list[Path]:
    missing: list[Path] = []
    for parent in path.parents:
        if parent.exists():
            break
        missing.append(parent)
    return list(reversed(missing))


def _remove_file(path: str) -> bool:
    try:
        os.unlink(path)
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise RollbackError(path, exc.strerror or str(exc)) from exc
    return True


def _remove_dir(path: str) -> bool:
    try:
        os.rmdir(path)
    except FileNotFoundError:
        return False
    except OSError as exc:
        if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
            return False
        raise RollbackError(path, exc.strerror or str(exc)) from exc
    return True
