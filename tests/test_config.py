"""Unit tests for GeneratorConfig (scaffoldkit.config).

Tests cover:
- Defaults
- save/load round trip
- from_env parsing
- Orchestrator wiring and profile overrides
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from scaffoldkit.config import GeneratorConfig
from scaffoldkit.generator import GenerationOrchestrator, TemplateContentProducer
from scaffoldkit.models import ConflictStrategy


class TestDefaults:
    @pytest.mark.unit
    def test_defaults(self):
        config = GeneratorConfig()
        assert config.output_dir == Path("./output")
        assert config.conflict_strategy is ConflictStrategy.OVERWRITE
        assert config.language is None
        assert config.template_dir is None
        assert config.dry_run is False

    @pytest.mark.unit
    def test_invalid_strategy(self):
        with pytest.raises(ValidationError):
            GeneratorConfig(conflict_strategy="rename")


class TestSerialisation:
    @pytest.mark.unit
    def test_save_and_load(self, tmp_path: Path):
        config = GeneratorConfig(
            output_dir=tmp_path / "out",
            conflict_strategy="merge",
            language="python",
            dry_run=True,
        )
        target = config.save(tmp_path / "nested" / "scaffoldkit.json")

        assert target.exists()
        loaded = GeneratorConfig.load(target)
        assert loaded == config
        assert loaded.conflict_strategy is ConflictStrategy.MERGE

    @pytest.mark.unit
    def test_save_default_location(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        target = GeneratorConfig().save()
        assert target == Path("scaffoldkit.json")
        assert (tmp_path / "scaffoldkit.json").exists()


class TestFromEnv:
    @pytest.mark.unit
    def test_empty_environment(self):
        with patch.dict(os.environ, {}, clear=True):
            config = GeneratorConfig.from_env()
        assert config == GeneratorConfig()

    @pytest.mark.unit
    def test_all_variables(self, tmp_path: Path):
        env = {
            "SCAFFOLD_OUTPUT_DIR": str(tmp_path / "gen"),
            "SCAFFOLD_CONFLICT_STRATEGY": "skip",
            "SCAFFOLD_LANGUAGE": "typescript",
            "SCAFFOLD_TEMPLATE_DIR": str(tmp_path / "tpl"),
            "SCAFFOLD_DRY_RUN": "yes",
        }
        with patch.dict(os.environ, env, clear=True):
            config = GeneratorConfig.from_env()

        assert config.output_dir == tmp_path / "gen"
        assert config.conflict_strategy is ConflictStrategy.SKIP
        assert config.language == "typescript"
        assert config.template_dir == tmp_path / "tpl"
        assert config.dry_run is True

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["0", "false", "no", ""])
    def test_dry_run_falsy(self, value):
        with patch.dict(os.environ, {"SCAFFOLD_DRY_RUN": value}, clear=True):
            assert GeneratorConfig.from_env().dry_run is False


class TestWiring:
    @pytest.mark.unit
    def test_build_orchestrator(self):
        orchestrator = GeneratorConfig(conflict_strategy="skip").build_orchestrator()
        assert isinstance(orchestrator, GenerationOrchestrator)
        assert isinstance(orchestrator.producer, TemplateContentProducer)
        assert orchestrator.conflict_strategy is ConflictStrategy.SKIP

    @pytest.mark.unit
    def test_custom_template_dir(self, tmp_path: Path):
        orchestrator = GeneratorConfig(template_dir=tmp_path).build_orchestrator()
        assert orchestrator.producer.renderer.template_dir == tmp_path

    @pytest.mark.unit
    def test_apply_language_override(self, profile):
        assert GeneratorConfig().apply_to(profile) is profile
        overridden = GeneratorConfig(language="python").apply_to(profile)
        assert overridden.language == "python"
        assert profile.language == "javascript"
