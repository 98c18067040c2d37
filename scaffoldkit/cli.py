"""Command-line entry point.

Usage::

    python -m scaffoldkit blueprint.json --output ./my-project
    python -m scaffoldkit blueprint.json --profile profile.json --dry-run
    python -m scaffoldkit blueprint.json --conflict skip
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from scaffoldkit.config import GeneratorConfig
from scaffoldkit.errors import ScaffoldError
from scaffoldkit.models import Blueprint, ConflictStrategy, RequirementsProfile
from scaffoldkit.reporter import ConsoleReporter
from scaffoldkit.utils import (
    byte_length,
    console,
    format_bytes,
    load_json,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)


def load_inputs(
    blueprint_path: str | Path, profile_path: str | Path | None = None
) -> tuple[Blueprint, RequirementsProfile]:
    """Read a blueprint and its requirements profile from JSON.

    Without *profile_path* the blueprint file must hold both, as
    ``{"blueprint": {...}, "profile": {...}}``.

    Raises:
        ValueError: If no profile can be found.
        pydantic.ValidationError: If either document is malformed.
    """
    data = load_json(blueprint_path)
    blueprint_data = data.get("blueprint", data)

    if profile_path is not None:
        profile_data = load_json(profile_path)
        profile_data = profile_data.get("profile", profile_data)
    elif "profile" in data:
        profile_data = data["profile"]
    else:
        raise ValueError(
            f"{blueprint_path} has no 'profile' section; pass --profile profile.json"
        )

    return (
        Blueprint.model_validate(blueprint_data),
        RequirementsProfile.model_validate(profile_data),
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scaffoldkit",
        description="scaffoldkit -- generate a project tree from a blueprint",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m scaffoldkit blueprint.json\n"
            "  python -m scaffoldkit blueprint.json -o ./my-project --conflict skip\n"
            "  python -m scaffoldkit blueprint.json --profile profile.json --dry-run\n"
        ),
    )
    parser.add_argument("blueprint", help="Path to the blueprint JSON file")
    parser.add_argument(
        "--profile", "-p",
        default=None,
        help="Requirements profile JSON (default: the 'profile' key of the blueprint file)",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output directory (default: $SCAFFOLD_OUTPUT_DIR or ./output)",
    )
    parser.add_argument(
        "--conflict",
        choices=[s.value for s in ConflictStrategy],
        default=None,
        help="What to do with files that already exist (default: overwrite)",
    )
    parser.add_argument(
        "--language",
        choices=["javascript", "typescript", "python"],
        default=None,
        help="Override the profile's language",
    )
    parser.add_argument(
        "--template-dir",
        default=None,
        help="Use templates from this directory instead of the bundled ones",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Render everything in memory and list the files without writing",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print every created file",
    )
    return parser


def _config_from_args(args: argparse.Namespace) -> GeneratorConfig:
    config = GeneratorConfig.from_env()
    if args.output:
        config.output_dir = Path(args.output)
    if args.conflict:
        config.conflict_strategy = ConflictStrategy(args.conflict)
    if args.language:
        config.language = args.language
    if args.template_dir:
        config.template_dir = Path(args.template_dir)
    if args.dry_run:
        config.dry_run = True
    return config


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``python -m scaffoldkit``."""
    args = _build_parser().parse_args(argv)

    bp_path = Path(args.blueprint)
    if not bp_path.exists():
        console.print(f"[bold red]Error:[/bold red] Blueprint file not found: {bp_path}")
        sys.exit(1)

    try:
        blueprint, profile = load_inputs(bp_path, args.profile)
        config = _config_from_args(args)
    except (OSError, ValueError, json.JSONDecodeError, ValidationError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)

    profile = config.apply_to(profile)
    orchestrator = config.build_orchestrator()
    ConsoleReporter(console, verbose=args.verbose).attach(orchestrator)

    console.print(f"[bold]Generating[/bold] {profile.name} ({profile.effective_language})")
    try:
        if config.dry_run:
            result = asyncio.run(orchestrator.dry_run(blueprint, profile))
        else:
            asyncio.run(orchestrator.generate(blueprint, profile, config.output_dir))
    except ScaffoldError as exc:
        print_error(f"Generation failed: {exc}")
        sys.exit(1)

    if config.dry_run:
        print_summary_table(
            {path: format_bytes(byte_length(content)) for path, content in result.file_map.items()},
            title="Files (dry run)",
        )
        print_warning("Dry run: nothing was written to disk.")
    else:
        print_success(f"Project generated in {config.output_dir}")


if __name__ == "__main__":
    main()
