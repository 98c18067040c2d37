"""Content producers: what goes inside each generated file.

The orchestrator only ever talks to the ``ContentProducer`` protocol.  All
methods are synchronous and pure functions of their inputs.
``TemplateContentProducer`` is the default implementation, backed by the
Jinja2 templates shipped in ``scaffoldkit/generator/templates/``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

import yaml

from scaffoldkit.errors import ContentGenerationError
from scaffoldkit.generator.templates import TemplateRenderer
from scaffoldkit.models import Blueprint, BlueprintModule, RenderedFile, RequirementsProfile
from scaffoldkit.utils import to_camel, to_kebab, to_snake


class ContentProducer(Protocol):
    """Everything the orchestrator needs to know about file contents and layout."""

    def module_path(self, module: BlueprintModule, profile: RequirementsProfile) -> str: ...

    def entry_point_path(self, profile: RequirementsProfile) -> str: ...

    def manifest_path(self, profile: RequirementsProfile) -> str: ...

    def render_module(self, module: BlueprintModule, profile: RequirementsProfile) -> str: ...

    def render_entry_point(
        self, ordered_modules: Sequence[BlueprintModule], profile: RequirementsProfile
    ) -> str: ...

    def render_manifest_file(
        self, profile: RequirementsProfile, ordered_modules: Sequence[BlueprintModule]
    ) -> str: ...

    def render_readme(
        self, profile: RequirementsProfile, ordered_modules: Sequence[BlueprintModule]
    ) -> str: ...

    def render_config_files(self, profile: RequirementsProfile) -> list[RenderedFile]: ...

    def render_test_files(
        self, ordered_modules: Sequence[BlueprintModule], profile: RequirementsProfile
    ) -> list[RenderedFile]: ...

    def render_context_stub(self, blueprint: Blueprint, profile: RequirementsProfile) -> str: ...


# ---------------------------------------------------------------------------
# Language layouts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LanguageLayout:
    """File naming and template family for one target language."""

    language: str
    family: str  # template directory: "javascript" or "python"
    extension: str
    entry_point: str
    manifest: str

    def module_file(self, module_name: str) -> str:
        if self.family == "python":
            return f"src/core/{to_snake(module_name)}{self.extension}"
        return f"src/core/{to_kebab(module_name)}{self.extension}"

    def test_file(self, module_name: str) -> str:
        if self.family == "python":
            return f"tests/test_{to_snake(module_name)}{self.extension}"
        return f"tests/{to_kebab(module_name)}.test{self.extension}"


LAYOUTS: dict[str, LanguageLayout] = {
    "javascript": LanguageLayout("javascript", "javascript", ".js", "src/index.js", "package.json"),
    "typescript": LanguageLayout("typescript", "javascript", ".ts", "src/index.ts", "package.json"),
    "python": LanguageLayout("python", "python", ".py", "src/main.py", "pyproject.toml"),
}


def layout_for(profile: RequirementsProfile) -> LanguageLayout:
    """Layout for the profile's effective language."""
    return LAYOUTS[profile.effective_language]


# ---------------------------------------------------------------------------
# Template-backed producer
# ---------------------------------------------------------------------------

class TemplateContentProducer:
    """Default ``ContentProducer`` rendering Jinja2 templates.

    Args:
        renderer: Template renderer to use.  A renderer over the bundled
            templates is created when omitted.
    """

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.renderer.env.filters.setdefault("pyrepr", repr)
        self.renderer.env.filters.setdefault("tojson_compact", _json_compact)

    # -- Layout ------------------------------------------------------------

    def module_path(self, module: BlueprintModule, profile: RequirementsProfile) -> str:
        return layout_for(profile).module_file(module.name)

    def entry_point_path(self, profile: RequirementsProfile) -> str:
        return layout_for(profile).entry_point

    def manifest_path(self, profile: RequirementsProfile) -> str:
        return layout_for(profile).manifest

    # -- Source files ------------------------------------------------------

    def render_module(self, module: BlueprintModule, profile: RequirementsProfile) -> str:
        layout = layout_for(profile)
        if module.template:
            return self._render_named(module, profile, layout)

        return self.renderer.render(
            f"{layout.family}/module.j2",
            {
                **self._base_context(profile, layout),
                "module": module,
                "imports": [_import_binding(spec) for spec in module.imports],
            },
        )

    def render_entry_point(
        self, ordered_modules: Sequence[BlueprintModule], profile: RequirementsProfile
    ) -> str:
        layout = layout_for(profile)
        return self.renderer.render(
            f"{layout.family}/entry.j2",
            {**self._base_context(profile, layout), "modules": list(ordered_modules)},
        )

    def render_manifest_file(
        self, profile: RequirementsProfile, ordered_modules: Sequence[BlueprintModule]
    ) -> str:
        layout = layout_for(profile)
        if layout.family == "python":
            return self.renderer.render(
                "python/pyproject.toml.j2",
                {**self._base_context(profile, layout), "modules": list(ordered_modules)},
            )
        return _package_json(profile, layout)

    def render_readme(
        self, profile: RequirementsProfile, ordered_modules: Sequence[BlueprintModule]
    ) -> str:
        layout = layout_for(profile)
        return self.renderer.render(
            "README.md.j2",
            {**self._base_context(profile, layout), "modules": list(ordered_modules)},
        )

    def render_test_files(
        self, ordered_modules: Sequence[BlueprintModule], profile: RequirementsProfile
    ) -> list[RenderedFile]:
        layout = layout_for(profile)
        base = self._base_context(profile, layout)
        files: list[RenderedFile] = []
        for module in ordered_modules:
            if not module.has_tests:
                continue
            content = self.renderer.render(
                f"{layout.family}/test.j2", {**base, "module": module}
            )
            files.append(RenderedFile(layout.test_file(module.name), content))
        return files

    def render_context_stub(self, blueprint: Blueprint, profile: RequirementsProfile) -> str:
        layout = layout_for(profile)
        return self.renderer.render(
            "CLAUDE.md.j2",
            {
                **self._base_context(profile, layout),
                "blueprint": blueprint,
                "title": blueprint.name or profile.name,
            },
        )

    # -- Config files ------------------------------------------------------

    def render_config_files(self, profile: RequirementsProfile) -> list[RenderedFile]:
        """Return every configuration file the profile asks for, in write order."""
        layout = layout_for(profile)
        ctx = self._base_context(profile, layout)
        js = layout.family == "javascript"

        configs = [
            RenderedFile(".gitignore", self.renderer.render("config/gitignore.j2", ctx)),
            RenderedFile(".env", self.renderer.render("config/env.j2", {**ctx, "example": False})),
            RenderedFile(
                ".env.example", self.renderer.render("config/env.j2", {**ctx, "example": True})
            ),
            RenderedFile(".editorconfig", self.renderer.render("config/editorconfig.j2", ctx)),
            RenderedFile(".vscode/settings.json", _dump_json(_vscode_settings(profile, layout))),
        ]

        if layout.language == "typescript":
            configs.append(RenderedFile("tsconfig.json", _dump_json(_TSCONFIG)))
        elif layout.language == "javascript":
            configs.append(RenderedFile("jsconfig.json", _dump_json(_JSCONFIG)))

        if js and profile.use_eslint:
            configs.append(RenderedFile(".eslintrc.json", _dump_json(_eslint_config(layout))))
        if js and profile.use_prettier:
            configs.append(RenderedFile(".prettierrc", _dump_json(_PRETTIER)))

        if profile.use_docker:
            configs.append(RenderedFile("Dockerfile", self.renderer.render("config/Dockerfile.j2", ctx)))
            configs.append(RenderedFile("docker-compose.yml", _dump_yaml(_compose(profile))))

        if profile.use_github_actions:
            configs.append(
                RenderedFile(".github/workflows/ci.yml", _dump_yaml(_ci_workflow(profile, layout)))
            )

        return configs

    # -- Internals ---------------------------------------------------------

    def _base_context(self, profile: RequirementsProfile, layout: LanguageLayout) -> dict[str, Any]:
        return {
            "profile": profile,
            "language": layout.language,
            "typescript": layout.language == "typescript",
            "ext": layout.extension,
            "entry_point": layout.entry_point,
            "manifest": layout.manifest,
            "project_slug": to_kebab(profile.name),
            "package_name": to_snake(profile.name),
            "port": profile.port or 3000,
        }

    def _render_named(
        self, module: BlueprintModule, profile: RequirementsProfile, layout: LanguageLayout
    ) -> str:
        template_path = f"named/{module.template}/{layout.family}.j2"
        if not self.renderer.has_template(template_path):
            available = ", ".join(self.available_templates(profile)) or "none"
            raise ContentGenerationError(
                module.name,
                f"Unknown code template {module.template!r} for {layout.language}. "
                f"Available: {available}",
            )
        context = {
            **self._base_context(profile, layout),
            "name": module.name,
            "description": module.description,
            "version": profile.version,
            **module.template_vars,
        }
        return self.renderer.render(template_path, context)

    def available_templates(self, profile: RequirementsProfile) -> list[str]:
        """Names of the named module templates usable with *profile*'s language."""
        family = layout_for(profile).family
        suffix = f"/{family}.j2"
        return sorted(
            t[len("named/"):-len(suffix)]
            for t in self.renderer.list_templates("named")
            if t.endswith(suffix)
        )


# ---------------------------------------------------------------------------
# Structured config builders
# ---------------------------------------------------------------------------

_JSCONFIG: dict[str, Any] = {
    "compilerOptions": {
        "module": "ESNext",
        "moduleResolution": "node",
        "target": "ES2022",
        "checkJs": True,
        "baseUrl": ".",
    },
    "include": ["src/**/*", "tests/**/*"],
    "exclude": ["node_modules", "dist"],
}

_TSCONFIG: dict[str, Any] = {
    "compilerOptions": {
        "target": "ES2022",
        "module": "NodeNext",
        "moduleResolution": "NodeNext",
        "outDir": "dist",
        "rootDir": "src",
        "strict": True,
        "esModuleInterop": True,
        "skipLibCheck": True,
        "declaration": True,
    },
    "include": ["src/**/*"],
    "exclude": ["node_modules", "dist", "tests"],
}

_PRETTIER: dict[str, Any] = {
    "semi": True,
    "singleQuote": True,
    "trailingComma": "all",
    "printWidth": 100,
    "tabWidth": 2,
}


def _eslint_config(layout: LanguageLayout) -> dict[str, Any]:
    config: dict[str, Any] = {
        "root": True,
        "env": {"node": True, "es2022": True},
        "parserOptions": {"ecmaVersion": "latest", "sourceType": "module"},
        "extends": ["eslint:recommended"],
        "rules": {"no-unused-vars": "warn"},
    }
    if layout.language == "typescript":
        config["parser"] = "@typescript-eslint/parser"
        config["plugins"] = ["@typescript-eslint"]
        config["extends"] = ["eslint:recommended", "plugin:@typescript-eslint/recommended"]
    return config


def _vscode_settings(profile: RequirementsProfile, layout: LanguageLayout) -> dict[str, Any]:
    settings: dict[str, Any] = {
        "editor.formatOnSave": True,
        "editor.tabSize": 4 if layout.family == "python" else 2,
        "editor.insertSpaces": True,
    }
    if profile.use_prettier and layout.family == "javascript":
        settings["editor.defaultFormatter"] = "esbenp.prettier-vscode"
    settings["files.trimTrailingWhitespace"] = True
    settings["files.insertFinalNewline"] = True
    if layout.family == "python":
        settings["files.exclude"] = {"**/__pycache__": True, ".pytest_cache": True}
        settings["python.testing.pytestEnabled"] = True
    else:
        settings["files.exclude"] = {"node_modules/": True, "dist/": True, "coverage/": True}
    return settings


def _package_json(profile: RequirementsProfile, layout: LanguageLayout) -> str:
    slug = to_kebab(profile.name)
    main = "dist/index.js" if layout.language == "typescript" else "src/index.js"
    scripts: dict[str, str] = {
        "start": f"node {main}",
        "test": "node --test tests/",
        "lint": "eslint src tests" if profile.use_eslint else 'echo "No linter configured"',
    }
    if layout.language == "typescript":
        scripts["build"] = "tsc"
    if profile.domain == "api":
        scripts["dev"] = f"node --watch {main}"

    pkg: dict[str, Any] = {
        "name": slug,
        "version": profile.version,
        "description": profile.description,
        "author": profile.author,
        "license": profile.license,
        "type": "module",
        "main": main,
        "exports": {".": f"./{main}"},
        "engines": {"node": f">={profile.node_version}.0.0"},
        "scripts": scripts,
        "keywords": list(profile.features),
        "dependencies": dict(profile.dependencies),
        "devDependencies": dict(profile.dev_dependencies),
    }
    if profile.domain == "cli":
        pkg["bin"] = {slug: f"./{main}"}
    return _dump_json(pkg)


def _compose(profile: RequirementsProfile) -> dict[str, Any]:
    port = profile.port or 3000
    return {
        "services": {
            to_kebab(profile.name): {
                "build": ".",
                "ports": [f"{port}:{port}"],
                "env_file": [".env"],
                "restart": "unless-stopped",
                "volumes": ["./src:/app/src:ro"],
            }
        }
    }


def _ci_workflow(profile: RequirementsProfile, layout: LanguageLayout) -> dict[str, Any]:
    if layout.family == "python":
        steps: list[dict[str, Any]] = [
            {"uses": "actions/checkout@v4"},
            {
                "name": "Set up Python",
                "uses": "actions/setup-python@v5",
                "with": {"python-version": profile.python_version},
            },
            {"name": "Install dependencies", "run": "pip install -e '.[test]'"},
            {"name": "Run tests", "run": "pytest"},
        ]
    else:
        steps = [
            {"uses": "actions/checkout@v4"},
            {
                "name": "Use Node.js",
                "uses": "actions/setup-node@v4",
                "with": {"node-version": f"{profile.node_version}.x"},
            },
            {"name": "Install dependencies", "run": "npm ci"},
        ]
        if layout.language == "typescript":
            steps.append({"name": "Build", "run": "npm run build"})
        steps.append({"name": "Run tests", "run": "npm test"})

    return {
        "name": f"{profile.name} CI",
        "on": {
            "push": {"branches": ["main"]},
            "pull_request": {"branches": ["main"]},
        },
        "jobs": {"test": {"runs-on": "ubuntu-latest", "steps": steps}},
    }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def _json_compact(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False)


def _dump_yaml(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)


def _import_binding(spec: str) -> dict[str, str]:
    """Derive a local binding name for an import specifier.

    ``"node:path"`` -> ``path``, ``"@scope/some-lib"`` -> ``someLib``.
    """
    tail = re.split(r"[:/]", spec.rstrip("/"))[-1]
    tail = re.sub(r"\.\w+$", "", tail)
    binding = to_camel(re.sub(r"[^A-Za-z0-9]+", "-", tail)) or "dep"
    if binding[0].isdigit():
        binding = f"_{binding}"
    return {"spec": spec, "binding": binding}
