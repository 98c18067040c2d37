"""Pydantic v2 models for blueprints, profiles, and generation results.

Input models (``Blueprint``, ``BlueprintModule``, ``RequirementsProfile``)
accept both snake_case field names and the camelCase keys found in blueprint
JSON files (``dependsOn``, ``templateVars``, ``useDocker``...).  Ledger
entries are plain dataclasses since they never cross a serialisation
boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ConflictStrategy(str, Enum):
    """What to do when a generated path already exists."""
    SKIP = "skip"
    OVERWRITE = "overwrite"
    MERGE = "merge"


class ArtifactKind(str, Enum):
    """Kind of filesystem artifact recorded in the ledger."""
    FILE = "file"
    DIRECTORY = "directory"


class GenerationStatus(str, Enum):
    """Lifecycle state of a generation run."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


Language = Literal["javascript", "typescript", "python"]


# ---------------------------------------------------------------------------
# Blueprint
# ---------------------------------------------------------------------------

class _InputModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MethodSpec(_InputModel):
    """A method stub on a generated module class."""
    name: str = Field(..., description="Method name")
    description: str = Field(default="", description="What the method does")
    params: list[str] = Field(default_factory=list, description="Parameter names")
    is_async: bool = Field(default=False, alias="isAsync")
    returns: str = Field(default="", description="Return type hint")


class PropertySpec(_InputModel):
    """An instance attribute on a generated module class."""
    name: str = Field(..., description="Property name")
    type: str = Field(default="any", description="Type hint")
    default: Optional[Any] = Field(default=None, description="Initial value")
    description: str = Field(default="")


class BlueprintModule(_InputModel):
    """A named unit of generated source with same-blueprint dependencies."""
    name: str = Field(..., min_length=1, description="Unique module name (PascalCase)")
    description: str = Field(default="")
    depends_on: list[str] = Field(
        default_factory=list,
        alias="dependsOn",
        description="Names of modules that must be generated first",
    )
    imports: list[str] = Field(default_factory=list)
    exports: list[str] = Field(default_factory=list)
    methods: list[MethodSpec] = Field(default_factory=list)
    properties: list[PropertySpec] = Field(default_factory=list)
    is_entry_point: bool = Field(default=False, alias="isEntryPoint")
    has_tests: bool = Field(default=True, alias="hasTests")
    template: Optional[str] = Field(default=None, description="Named code template")
    template_vars: dict[str, Any] = Field(default_factory=dict, alias="templateVars")


class Blueprint(_InputModel):
    """The resolved description of what to generate for one project."""
    name: str = Field(default="", description="Framework name")
    description: str = Field(default="")
    archetype: Optional[str] = Field(default=None)
    domain: Optional[str] = Field(default=None)
    modules: list[BlueprintModule] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("modules")
    @classmethod
    def _unique_module_names(cls, modules: list[BlueprintModule]) -> list[BlueprintModule]:
        seen: set[str] = set()
        for mod in modules:
            if mod.name in seen:
                raise ValueError(f"Duplicate module name: {mod.name!r}")
            seen.add(mod.name)
        return modules


# ---------------------------------------------------------------------------
# Requirements profile
# ---------------------------------------------------------------------------

class RequirementsProfile(_InputModel):
    """Target settings for the generated project."""
    name: str = Field(..., min_length=1, description="Project name")
    description: str = Field(default="")
    version: str = Field(default="1.0.0")
    author: str = Field(default="")
    license: str = Field(default="MIT")
    domain: Optional[str] = Field(default=None, description="e.g. 'api', 'cli', 'plugin'")
    archetype: Optional[str] = Field(default=None)
    language: Language = Field(default="javascript")
    features: list[str] = Field(default_factory=list)
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    node_version: str = Field(default="20", alias="nodeVersion")
    python_version: str = Field(default="3.12", alias="pythonVersion")
    use_docker: bool = Field(default=False, alias="useDocker")
    use_github_actions: bool = Field(default=False, alias="useGitHubActions")
    use_typescript: bool = Field(default=False, alias="useTypescript")
    use_prettier: bool = Field(default=False, alias="usePrettier")
    use_eslint: bool = Field(default=False, alias="useEslint")
    env_vars: list[str] = Field(default_factory=list, alias="envVars")

    @property
    def effective_language(self) -> Language:
        """Language after applying the ``use_typescript`` switch."""
        if self.use_typescript and self.language == "javascript":
            return "typescript"
        return self.language


# ---------------------------------------------------------------------------
# Generation records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CreatedArtifact:
    """One ledger entry: a directory or file touched by a writer."""

    absolute_path: str
    kind: ArtifactKind
    byte_size: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class RenderedFile:
    """A relative path and its rendered content."""

    path: str
    content: str


class GenerationProgress(BaseModel):
    """Progress snapshot of the current run."""
    total_steps: int = Field(default=0, ge=0)
    completed_steps: int = Field(default=0, ge=0)
    current_step_label: str = Field(default="")
    percentage: int = Field(default=0, ge=0, le=100)
    status: GenerationStatus = Field(default=GenerationStatus.IDLE)


class GeneratedManifest(BaseModel):
    """Summary of a finished (or dry) run."""
    model_config = ConfigDict(frozen=True)

    name: str
    output_path: str
    files: list[str] = Field(default_factory=list)
    directories: list[str] = Field(default_factory=list)
    total_files: int = Field(default=0, ge=0)
    total_bytes: int = Field(default=0, ge=0)
    duration_ms: int = Field(default=0, ge=0)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    dry_run: bool = False


class DryRunResult(BaseModel):
    """Virtual file map plus manifest returned by a dry run."""
    file_map: dict[str, str] = Field(default_factory=dict)
    manifest: GeneratedManifest
