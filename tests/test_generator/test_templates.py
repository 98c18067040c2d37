"""Tests for the Jinja2 TemplateRenderer."""

from __future__ import annotations

from pathlib import Path

import jinja2
import pytest

from scaffoldkit.generator.templates import TemplateRenderer


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    root = tmp_path / "templates"
    (root / "lang").mkdir(parents=True)
    (root / "hello.j2").write_text("Hello {{ name }}!\n", encoding="utf-8")
    (root / "lang" / "module.j2").write_text("{{ name | kebab_case }}", encoding="utf-8")
    (root / "lang" / "notes.txt").write_text("not a template", encoding="utf-8")
    return root


class TestTemplateRenderer:
    @pytest.mark.unit
    def test_render_keeps_trailing_newline(self, template_dir):
        renderer = TemplateRenderer(template_dir)
        assert renderer.render("hello.j2", {"name": "EventBus"}) == "Hello EventBus!\n"

    @pytest.mark.unit
    def test_undefined_variable_raises(self, template_dir):
        renderer = TemplateRenderer(template_dir)
        with pytest.raises(jinja2.UndefinedError):
            renderer.render("hello.j2", {})

    @pytest.mark.unit
    def test_missing_template_raises(self, template_dir):
        with pytest.raises(jinja2.TemplateNotFound):
            TemplateRenderer(template_dir).render("nope.j2", {})

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("expr", "expected"),
        [
            ("{{ 'HTTPServer' | kebab_case }}", "http-server"),
            ("{{ 'EventBus' | snake_case }}", "event_bus"),
            ("{{ 'event-bus' | pascal_case }}", "EventBus"),
            ("{{ 'EventBus' | camel_case }}", "eventBus"),
            ("{{ 'My Cool App!' | slugify }}", "my-cool-app"),
        ],
    )
    def test_name_filters(self, expr, expected):
        assert TemplateRenderer().env.from_string(expr).render() == expected

    @pytest.mark.unit
    def test_has_and_list_templates(self, template_dir):
        renderer = TemplateRenderer(template_dir)
        assert renderer.has_template("lang/module.j2")
        assert not renderer.has_template("lang/other.j2")
        assert renderer.list_templates() == ["hello.j2", "lang/module.j2"]
        assert renderer.list_templates("lang") == ["lang/module.j2"]
        assert renderer.list_templates("missing") == []

    @pytest.mark.unit
    def test_bundled_templates_are_found(self):
        templates = TemplateRenderer().list_templates()
        assert "javascript/module.j2" in templates
        assert "python/module.j2" in templates
        assert "CLAUDE.md.j2" in templates
