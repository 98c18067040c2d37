"""scaffoldkit generator -- materialises a project tree from a blueprint.

Takes a ``Blueprint`` plus a ``RequirementsProfile`` and writes the project
in dependency order, with rollback on failure and a run-wide policy for
files that already exist.

Quick usage::

    from scaffoldkit.generator import GenerationOrchestrator
    from scaffoldkit.models import Blueprint, RequirementsProfile

    orchestrator = GenerationOrchestrator(conflict_strategy="skip")
    orchestrator.on("file:created", lambda e: print(e.path))
    manifest = await orchestrator.generate(blueprint, profile, "/tmp/output")

    preview = await orchestrator.dry_run(blueprint, profile)
    print(sorted(preview.file_map))
"""

from scaffoldkit.generator.conflicts import ConflictResolver, Resolution, merge_marker
from scaffoldkit.generator.content import ContentProducer, TemplateContentProducer
from scaffoldkit.generator.engine import GenerationOrchestrator
from scaffoldkit.generator.ordering import DependencyOrderer, order_modules
from scaffoldkit.generator.progress import StepTracker, compute_percentage
from scaffoldkit.generator.templates import TemplateRenderer
from scaffoldkit.generator.writer import TransactionalFileWriter

__all__ = [
    "ConflictResolver",
    "ContentProducer",
    "DependencyOrderer",
    "GenerationOrchestrator",
    "Resolution",
    "StepTracker",
    "TemplateContentProducer",
    "TemplateRenderer",
    "TransactionalFileWriter",
    "compute_percentage",
    "merge_marker",
    "order_modules",
]
