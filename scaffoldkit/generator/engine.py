"""Generation orchestrator.

Takes a ``Blueprint`` and a ``RequirementsProfile`` and materialises the
project tree: directory skeleton, modules in dependency order, entry point,
package manifest, README, configuration files, tests, and the ``CLAUDE.md``
assistant-context stub.  Every artifact is one tracked step.  Any failure
rolls back what the run wrote and re-raises the original error.

A dry run goes through exactly the same code path with the writer switched
to its in-memory mode, so its file map is byte-identical to what a real run
writes into an empty directory.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path, PurePath
from types import MappingProxyType
from typing import Any, TypeVar

from scaffoldkit.errors import (
    ContentGenerationError,
    GenerationInProgressError,
    ScaffoldError,
    WriteError,
)
from scaffoldkit.events import CompleteEvent, ErrorEvent, EventEmitter, FileCreatedEvent, Listener
from scaffoldkit.generator.conflicts import ConflictResolver
from scaffoldkit.generator.content import ContentProducer, TemplateContentProducer
from scaffoldkit.generator.ordering import DependencyOrderer
from scaffoldkit.generator.progress import StepTracker
from scaffoldkit.generator.writer import TransactionalFileWriter
from scaffoldkit.models import (
    ArtifactKind,
    Blueprint,
    BlueprintModule,
    ConflictStrategy,
    DryRunResult,
    GeneratedManifest,
    GenerationProgress,
    GenerationStatus,
    RenderedFile,
    RequirementsProfile,
)
from scaffoldkit.utils import byte_length

T = TypeVar("T")

README_PATH = "README.md"
CONTEXT_STUB_PATH = "CLAUDE.md"
ROLLBACK_STEP = "rollback"


def scaffold_directories(profile: RequirementsProfile) -> list[str]:
    """Directory skeleton for *profile*, parents before children."""
    dirs = ["src", "src/core", "src/utils", "tests", "docs"]
    if profile.domain == "plugin":
        dirs.append("src/plugins")
    if profile.use_docker:
        dirs.append(".docker")
    if profile.use_github_actions:
        dirs.extend([".github", ".github/workflows"])
    dirs.extend([".claude", ".claude/commands"])
    return dirs


def _known_dependencies_only(modules: list[BlueprintModule]) -> list[BlueprintModule]:
    """Drop ``depends_on`` names that no module in *modules* provides.

    Nothing is generated for such names, so rendered sources must not import
    them either.
    """
    known = {m.name for m in modules}
    return [
        m if known.issuperset(m.depends_on)
        else m.model_copy(update={"depends_on": [d for d in m.depends_on if d in known]})
        for m in modules
    ]


@dataclass
class GenerationPlan:
    """Everything that is known before the first write."""

    modules: list[BlueprintModule] = field(default_factory=list)
    manifest_path: str = ""
    config_files: list[RenderedFile] = field(default_factory=list)
    test_files: list[RenderedFile] = field(default_factory=list)

    @property
    def total_steps(self) -> int:
        # scaffold + modules + entry point + manifest + README
        # + configs + tests + context stub
        return (
            1
            + len(self.modules)
            + 1
            + 1
            + 1
            + len(self.config_files)
            + len(self.test_files)
            + 1
        )


class GenerationOrchestrator:
    """Drives one generation run at a time.

    Listeners registered with :meth:`on` survive across runs; all per-run
    state (writer and ledger, progress, generated file map) is reset when a
    run starts.

    Args:
        producer: Content producer.  Defaults to the bundled templates.
        conflict_strategy: Policy applied to every pre-existing path.
        orderer: Module orderer.
        emitter: Event registry; a private one is created when omitted.
    """

    def __init__(
        self,
        producer: ContentProducer | None = None,
        *,
        conflict_strategy: ConflictStrategy | str = ConflictStrategy.OVERWRITE,
        orderer: DependencyOrderer | None = None,
        emitter: EventEmitter | None = None,
    ) -> None:
        self.producer: ContentProducer = producer or TemplateContentProducer()
        self.orderer = orderer or DependencyOrderer()
        self.emitter = emitter or EventEmitter()
        self.tracker = StepTracker(self.emitter)
        self.resolver = ConflictResolver(conflict_strategy, self.emitter)
        self.writer: TransactionalFileWriter | None = None
        self._generated_files: dict[str, str] = {}

    @property
    def conflict_strategy(self) -> ConflictStrategy:
        return self.resolver.strategy

    # -- Public API --------------------------------------------------------

    def on(self, event: str | type, listener: Listener) -> Callable[[], None]:
        """Subscribe to a lifecycle event; returns an unsubscribe function."""
        return self.emitter.on(event, listener)

    async def generate(
        self,
        blueprint: Blueprint,
        profile: RequirementsProfile,
        output_path: str | Path,
    ) -> GeneratedManifest:
        """Generate the project into *output_path*.

        Returns:
            The manifest of everything written.

        Raises:
            CircularDependencyError: Before any write, if modules form a cycle.
            ContentGenerationError: If a content producer fails.
            WriteError: If the filesystem rejects a write.
        """
        writer = TransactionalFileWriter(output_path)
        return await self._run(blueprint, profile, writer)

    async def dry_run(
        self, blueprint: Blueprint, profile: RequirementsProfile
    ) -> DryRunResult:
        """Run the full pipeline in memory and return the virtual file map."""
        writer = TransactionalFileWriter(Path.cwd() / (profile.name or "output"), dry_run=True)
        manifest = await self._run(blueprint, profile, writer)
        return DryRunResult(file_map=dict(self._generated_files), manifest=manifest)

    def get_progress(self) -> GenerationProgress:
        """Snapshot of the current (or last) run's progress."""
        return self.tracker.snapshot()

    def get_generated_files(self) -> Mapping[str, str]:
        """Read-only view of relative path -> content written by the last run."""
        return MappingProxyType(dict(self._generated_files))

    # -- Run driver --------------------------------------------------------

    async def _run(
        self,
        blueprint: Blueprint,
        profile: RequirementsProfile,
        writer: TransactionalFileWriter,
    ) -> GeneratedManifest:
        if self.tracker.status is GenerationStatus.RUNNING:
            raise GenerationInProgressError()

        started = time.monotonic()
        self.writer = writer
        self._generated_files = {}
        self.tracker.reset()
        self.tracker.mark_running()

        try:
            plan = self._plan(blueprint, profile)
            self.tracker.begin(plan.total_steps)
            await self._execute(plan, blueprint, profile, writer)
            manifest = self._build_manifest(
                blueprint.name or profile.name, writer, started
            )
        except asyncio.CancelledError:
            # No rollback on cancellation: the caller owns what was written.
            self.tracker.mark_failed()
            raise
        except Exception as exc:
            self.tracker.mark_failed()
            self.emitter.emit(ErrorEvent(error=exc, step=self.tracker.current_step_label))
            await self._rollback(writer)
            raise

        self.tracker.mark_completed()
        self.emitter.emit(CompleteEvent(manifest=manifest))
        return manifest

    def _plan(self, blueprint: Blueprint, profile: RequirementsProfile) -> GenerationPlan:
        modules = _known_dependencies_only(self.orderer.order(blueprint.modules))
        return GenerationPlan(
            modules=modules,
            # Needed up front: the manifest step is labelled by its file name.
            manifest_path=self._render(
                "package manifest", self.producer.manifest_path, profile
            ),
            config_files=self._render(
                "configuration files", self.producer.render_config_files, profile
            ),
            test_files=self._render(
                "test files", self.producer.render_test_files, modules, profile
            ),
        )

    async def _execute(
        self,
        plan: GenerationPlan,
        blueprint: Blueprint,
        profile: RequirementsProfile,
        writer: TransactionalFileWriter,
    ) -> None:
        step = self.tracker.step
        producer = self.producer
        modules = plan.modules

        await step(
            "Scaffolding directory structure",
            partial(self._scaffold, writer, profile),
        )

        for module in modules:
            await step(
                f"Generating module: {module.name}",
                partial(
                    self._generate_file,
                    writer,
                    module.name,
                    partial(producer.module_path, module, profile),
                    partial(producer.render_module, module, profile),
                ),
            )

        await step(
            "Generating entry point",
            partial(
                self._generate_file, writer, "entry point",
                partial(producer.entry_point_path, profile),
                partial(producer.render_entry_point, modules, profile),
            ),
        )

        await step(
            f"Generating {PurePath(plan.manifest_path).name}",
            partial(
                self._generate_file, writer, plan.manifest_path, plan.manifest_path,
                partial(producer.render_manifest_file, profile, modules),
            ),
        )

        await step(
            f"Generating {README_PATH}",
            partial(
                self._generate_file, writer, README_PATH, README_PATH,
                partial(producer.render_readme, profile, modules),
            ),
        )

        for cfg in plan.config_files:
            await step(
                f"Generating config: {cfg.path}",
                partial(self._write_artifact, writer, cfg.path, cfg.content),
            )

        for test in plan.test_files:
            await step(
                f"Generating test: {test.path}",
                partial(self._write_artifact, writer, test.path, test.content),
            )

        await step(
            f"Generating {CONTEXT_STUB_PATH}",
            partial(
                self._generate_file, writer, CONTEXT_STUB_PATH, CONTEXT_STUB_PATH,
                partial(producer.render_context_stub, blueprint, profile),
            ),
        )

    # -- Steps -------------------------------------------------------------

    async def _scaffold(
        self, writer: TransactionalFileWriter, profile: RequirementsProfile
    ) -> None:
        await writer.create_directory(writer.base_path)
        for directory in scaffold_directories(profile):
            await writer.create_directory(directory)

    async def _generate_file(
        self,
        writer: TransactionalFileWriter,
        artifact: str,
        locate: str | Callable[[], str],
        render: Callable[[], str],
    ) -> None:
        """Resolve the path and render the content of one artifact, then write it."""
        rel_path = locate if isinstance(locate, str) else self._render(artifact, locate)
        content = self._render(artifact, render)
        await self._write_artifact(writer, rel_path, content)

    async def _write_artifact(
        self, writer: TransactionalFileWriter, rel_path: str, content: str
    ) -> None:
        key = self._relative_key(writer, rel_path)
        resolution = await self.resolver.resolve_with(writer, key, content)
        if not resolution.should_write:
            return

        entry = await writer.write_file(key, resolution.final_content)
        self._generated_files[key] = resolution.final_content
        self.emitter.emit(FileCreatedEvent(path=entry.absolute_path, size=entry.byte_size))

    # -- Helpers -----------------------------------------------------------

    @staticmethod
    def _render(artifact: str, fn: Callable[..., T], *args: Any) -> T:
        """Call a producer function, wrapping foreign errors."""
        try:
            return fn(*args)
        except ScaffoldError:
            raise
        except Exception as exc:
            raise ContentGenerationError(artifact, str(exc)) from exc

    @staticmethod
    def _relative_key(writer: TransactionalFileWriter, rel_path: str) -> str:
        if PurePath(rel_path).is_absolute():
            raise WriteError(rel_path, "generated paths must be relative")
        try:
            key = writer.relative(rel_path)
        except ValueError as exc:
            raise WriteError(rel_path, "path escapes the output directory") from exc
        if key in ("", "."):
            raise WriteError(rel_path, "path resolves to the output directory itself")
        return key

    async def _rollback(self, writer: TransactionalFileWriter) -> None:
        try:
            await writer.rollback()
        except Exception as exc:
            # Reported only; the original error is what propagates.
            self.emitter.emit(ErrorEvent(error=exc, step=ROLLBACK_STEP))
        self._generated_files.clear()

    def _build_manifest(
        self, name: str, writer: TransactionalFileWriter, started: float
    ) -> GeneratedManifest:
        files = list(self._generated_files)
        directories = sorted(
            {
                writer.relative(a.absolute_path)
                for a in writer.ledger
                if a.kind is ArtifactKind.DIRECTORY
                and Path(a.absolute_path).is_relative_to(writer.base_path)
            }
            - {"."}
        )
        return GeneratedManifest(
            name=name or "unknown",
            output_path=str(writer.base_path),
            files=files,
            directories=directories,
            total_files=len(files),
            total_bytes=sum(byte_length(c) for c in self._generated_files.values()),
            duration_ms=int((time.monotonic() - started) * 1000),
            dry_run=writer.dry_run,
        )
