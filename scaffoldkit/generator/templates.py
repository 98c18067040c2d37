"""Jinja2 template rendering for generated project content.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``scaffoldkit/generator/templates/`` directory and renders them to strings.
Rendering is pure: writing is the job of ``TransactionalFileWriter``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from scaffoldkit.utils import slugify, to_camel, to_kebab, to_pascal, to_snake


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for generated projects.

    The renderer discovers ``.j2`` template files under a configurable
    template directory.  Undefined variables raise instead of rendering as
    empty strings.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["slugify"] = slugify
        self.env.filters["kebab_case"] = to_kebab
        self.env.filters["pascal_case"] = to_pascal
        self.env.filters["snake_case"] = to_snake
        self.env.filters["camel_case"] = to_camel

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"javascript/module.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def has_template(self, template_path: str) -> bool:
        """Whether *template_path* exists under the template directory."""
        return (self.template_dir / template_path).is_file()

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` template paths under *prefix*.

        Paths are relative to the template root directory and use forward
        slashes.
        """
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*.j2")
        )
