"""Shared pytest fixtures for the scaffoldkit test suite.

Provides reusable fixtures for:
- Sample blueprints and requirements profiles
- An event recorder that captures every orchestrator event
- Output directories under ``tmp_path``
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from scaffoldkit.events import EVENT_TYPES
from scaffoldkit.generator import GenerationOrchestrator
from scaffoldkit.models import (
    Blueprint,
    BlueprintModule,
    MethodSpec,
    PropertySpec,
    RequirementsProfile,
)


# ---------------------------------------------------------------------------
# Event capture
# ---------------------------------------------------------------------------

class EventRecorder:
    """Callable listener that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[Any] = []

    def __call__(self, event: Any) -> None:
        self.events.append(event)

    def of(self, event_type: type) -> list[Any]:
        return [e for e in self.events if isinstance(e, event_type)]

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.events]

    def attach(self, orchestrator: GenerationOrchestrator) -> "EventRecorder":
        for name in EVENT_TYPES:
            orchestrator.on(name, self)
        return self


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Not-yet-existing output directory for a generated project."""
    return tmp_path / "generated"


# ---------------------------------------------------------------------------
# Blueprints & profiles
# ---------------------------------------------------------------------------

@pytest.fixture
def modules() -> list[BlueprintModule]:
    """Three modules listed in reverse dependency order."""
    return [
        BlueprintModule(
            name="App",
            description="Application shell",
            depends_on=["Logger", "EventBus"],
            has_tests=False,
            methods=[MethodSpec(name="start", is_async=True)],
        ),
        BlueprintModule(
            name="Logger",
            description="Structured logger",
            depends_on=["EventBus"],
            properties=[PropertySpec(name="level", type="string", default="info")],
        ),
        BlueprintModule(
            name="EventBus",
            description="Publish/subscribe bus",
            methods=[MethodSpec(name="emit", params=["event", "payload"])],
        ),
    ]


@pytest.fixture
def blueprint(modules: list[BlueprintModule]) -> Blueprint:
    return Blueprint(
        name="Demo Framework",
        description="A small framework for tests",
        archetype="library",
        domain="api",
        modules=modules,
        features=["events", "logging"],
    )


@pytest.fixture
def profile() -> RequirementsProfile:
    """JavaScript profile with no optional tooling."""
    return RequirementsProfile(
        name="demo-app",
        description="A demo application",
        author="Test Author",
        domain="api",
        port=4000,
        features=["events", "logging"],
        env_vars=["API_KEY"],
    )


@pytest.fixture
def python_profile() -> RequirementsProfile:
    return RequirementsProfile(
        name="demo-app",
        description="A demo application",
        language="python",
        domain="cli",
    )


@pytest.fixture
def full_profile() -> RequirementsProfile:
    """TypeScript profile with every optional config switched on."""
    return RequirementsProfile(
        name="full-app",
        description="Everything enabled",
        domain="plugin",
        port=8080,
        use_typescript=True,
        use_docker=True,
        use_github_actions=True,
        use_eslint=True,
        use_prettier=True,
    )


@pytest.fixture
def blueprint_json(blueprint: Blueprint, profile: RequirementsProfile) -> dict[str, Any]:
    """Camel-cased blueprint file content, as written by hand."""
    return {
        "blueprint": {
            "name": blueprint.name,
            "description": blueprint.description,
            "modules": [
                {"name": "Core", "description": "Core module"},
                {"name": "Api", "dependsOn": ["Core"], "hasTests": False},
            ],
        },
        "profile": {
            "name": profile.name,
            "description": profile.description,
            "useGitHubActions": True,
        },
    }
