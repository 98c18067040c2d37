"""Tests for the command-line entry point (scaffoldkit.cli)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from scaffoldkit.cli import load_inputs, main

ENV_VARS = (
    "SCAFFOLD_OUTPUT_DIR",
    "SCAFFOLD_CONFLICT_STRATEGY",
    "SCAFFOLD_LANGUAGE",
    "SCAFFOLD_TEMPLATE_DIR",
    "SCAFFOLD_DRY_RUN",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def blueprint_file(tmp_path: Path, blueprint_json) -> Path:
    path = tmp_path / "blueprint.json"
    path.write_text(json.dumps(blueprint_json), encoding="utf-8")
    return path


class TestLoadInputs:
    @pytest.mark.unit
    def test_combined_file(self, blueprint_file):
        blueprint, profile = load_inputs(blueprint_file)
        assert [m.name for m in blueprint.modules] == ["Core", "Api"]
        assert blueprint.modules[1].depends_on == ["Core"]
        assert profile.name == "demo-app"
        assert profile.use_github_actions

    @pytest.mark.unit
    def test_separate_profile(self, tmp_path, blueprint_json):
        bp = tmp_path / "bp.json"
        bp.write_text(json.dumps(blueprint_json["blueprint"]), encoding="utf-8")
        prof = tmp_path / "profile.json"
        prof.write_text(json.dumps(blueprint_json["profile"]), encoding="utf-8")

        blueprint, profile = load_inputs(bp, prof)
        assert blueprint.name == "Demo Framework"
        assert profile.name == "demo-app"

    @pytest.mark.unit
    def test_missing_profile(self, tmp_path, blueprint_json):
        bp = tmp_path / "bp.json"
        bp.write_text(json.dumps(blueprint_json["blueprint"]), encoding="utf-8")
        with pytest.raises(ValueError, match="no 'profile' section"):
            load_inputs(bp)


class TestMain:
    @pytest.mark.unit
    def test_generates_project(self, blueprint_file, tmp_path, capsys):
        out = tmp_path / "project"
        main([str(blueprint_file), "--output", str(out)])

        assert (out / "package.json").exists()
        assert (out / "src" / "core" / "api.js").exists()
        assert (out / ".github" / "workflows" / "ci.yml").exists()
        assert "Project generated" in capsys.readouterr().out

    @pytest.mark.unit
    def test_dry_run_writes_nothing(self, blueprint_file, tmp_path, capsys):
        out = tmp_path / "project"
        main([str(blueprint_file), "--output", str(out), "--dry-run"])

        assert not out.exists()
        assert not (tmp_path / "demo-app").exists()
        assert "nothing was written" in capsys.readouterr().out

    @pytest.mark.unit
    def test_language_override(self, blueprint_file, tmp_path):
        out = tmp_path / "project"
        main([str(blueprint_file), "-o", str(out), "--language", "python"])
        assert (out / "pyproject.toml").exists()
        assert (out / "src" / "core" / "core.py").exists()

    @pytest.mark.unit
    def test_skip_conflicts(self, blueprint_file, tmp_path):
        out = tmp_path / "project"
        out.mkdir()
        (out / "README.md").write_text("mine\n", encoding="utf-8")

        main([str(blueprint_file), "-o", str(out), "--conflict", "skip"])
        assert (out / "README.md").read_text(encoding="utf-8") == "mine\n"

    @pytest.mark.unit
    def test_output_from_environment(self, blueprint_file, tmp_path, monkeypatch):
        monkeypatch.setenv("SCAFFOLD_OUTPUT_DIR", str(tmp_path / "from-env"))
        main([str(blueprint_file)])
        assert (tmp_path / "from-env" / "CLAUDE.md").exists()

    @pytest.mark.unit
    def test_missing_blueprint_file(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "nope.json")])
        assert exc_info.value.code == 1

    @pytest.mark.unit
    def test_invalid_blueprint(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(
            json.dumps({"blueprint": {"modules": [{"name": "A"}, {"name": "A"}]}, "profile": {"name": "x"}}),
            encoding="utf-8",
        )
        with pytest.raises(SystemExit) as exc_info:
            main([str(path)])
        assert exc_info.value.code == 1

    @pytest.mark.unit
    def test_cycle_exits_with_error(self, tmp_path, capsys):
        path = tmp_path / "cyclic.json"
        path.write_text(
            json.dumps(
                {
                    "blueprint": {
                        "modules": [
                            {"name": "A", "dependsOn": ["B"]},
                            {"name": "B", "dependsOn": ["A"]},
                        ]
                    },
                    "profile": {"name": "cyclic"},
                }
            ),
            encoding="utf-8",
        )
        out = tmp_path / "project"
        with pytest.raises(SystemExit) as exc_info:
            main([str(path), "-o", str(out)])

        assert exc_info.value.code == 1
        assert not out.exists()
        assert "Generation failed" in capsys.readouterr().out
