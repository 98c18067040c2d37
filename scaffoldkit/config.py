"""scaffoldkit configuration.

Typed run settings for the CLI and for callers that prefer one object over
constructor keywords.  Uses Pydantic v2 so settings validate at construction
time and round-trip through JSON or environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

from scaffoldkit.events import EventEmitter
from scaffoldkit.generator.content import TemplateContentProducer
from scaffoldkit.generator.engine import GenerationOrchestrator
from scaffoldkit.generator.templates import TemplateRenderer
from scaffoldkit.models import ConflictStrategy, Language, RequirementsProfile

DEFAULT_CONFIG_FILE = Path("scaffoldkit.json")

_TRUTHY = {"1", "true", "yes", "on"}


class GeneratorConfig(BaseModel):
    """Settings for one generation run.

    ``language`` overrides the profile's language when set; ``template_dir``
    replaces the bundled templates entirely.
    """

    output_dir: Path = Field(default=Path("./output"))
    conflict_strategy: ConflictStrategy = Field(default=ConflictStrategy.OVERWRITE)
    language: Language | None = Field(default=None)
    template_dir: Path | None = Field(default=None)
    dry_run: bool = Field(default=False)

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def build_orchestrator(self, emitter: EventEmitter | None = None) -> GenerationOrchestrator:
        """Construct an orchestrator wired according to this config."""
        producer = TemplateContentProducer(TemplateRenderer(self.template_dir))
        return GenerationOrchestrator(
            producer,
            conflict_strategy=self.conflict_strategy,
            emitter=emitter,
        )

    def apply_to(self, profile: RequirementsProfile) -> RequirementsProfile:
        """Return *profile* with this config's overrides applied."""
        if self.language is None:
            return profile
        return profile.model_copy(update={"language": self.language})

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to ``./scaffoldkit.json``.

        Returns:
            The path where the file was written.
        """
        target = Path(path or DEFAULT_CONFIG_FILE)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "GeneratorConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Build a ``GeneratorConfig`` from environment variables.

        Recognised variables (all optional):
            SCAFFOLD_OUTPUT_DIR, SCAFFOLD_CONFLICT_STRATEGY, SCAFFOLD_LANGUAGE,
            SCAFFOLD_TEMPLATE_DIR, SCAFFOLD_DRY_RUN.
        """
        template_dir = os.environ.get("SCAFFOLD_TEMPLATE_DIR")
        return cls(
            output_dir=Path(os.environ.get("SCAFFOLD_OUTPUT_DIR", "./output")),
            conflict_strategy=os.environ.get("SCAFFOLD_CONFLICT_STRATEGY", "overwrite"),
            language=os.environ.get("SCAFFOLD_LANGUAGE") or None,
            template_dir=Path(template_dir) if template_dir else None,
            dry_run=os.environ.get("SCAFFOLD_DRY_RUN", "").strip().lower() in _TRUTHY,
        )
