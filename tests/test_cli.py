"""Tests for the quadcalc Click CLI."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from cli.main import cli
from core.kv_store import JsonFileStore
from core.loader import PROJECT_ROOT
from core.persistence import DRAFTS_KEY, SavedBuildStore

EXAMPLE_BUILD = str(PROJECT_ROOT / "builds" / "example_5inch.json")


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def run(data_dir):
    runner = CliRunner()

    def _run(*args):
        return runner.invoke(cli, ["--data-dir", str(data_dir), *args])

    return _run


def _write_build(path, components):
    path.write_text(json.dumps({"name": "Test Build", "components": components}), encoding="utf-8")
    return str(path)


# ---------------------------------------------------------------------------
# Read-only commands
# ---------------------------------------------------------------------------

class TestReadOnlyCommands:
    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_categories(self, run):
        result = run("categories")
        assert result.exit_code == 0
        assert "Build slots (14)" in result.output
        assert "vtxAntenna" in result.output
        assert "Receiver (RX)" in result.output

    def test_presets_all(self, run):
        result = run("presets")
        assert result.exit_code == 0
        assert "motor-velox-2306" in result.output
        assert "goggles-dji-2" in result.output

    def test_presets_one_category(self, run):
        result = run("presets", "battery")
        assert result.exit_code == 0
        assert "battery-cnhl-1300-6s" in result.output
        assert "motor-velox-2306" not in result.output

    def test_presets_unknown_category(self, run):
        result = run("presets", "servo")
        assert result.exit_code != 0

    def test_check_compatible_build(self, run):
        result = run("check", EXAMPLE_BUILD)
        assert result.exit_code == 0
        assert "PASSED" in result.output
        assert "Compatibility score: 100%" in result.output

    def test_check_incompatible_build(self, run, tmp_path):
        path = _write_build(tmp_path / "bad.json", {
            "battery": {"name": "6S Pack", "specs": {"voltage": "6S"}},
            "esc": {"name": "Small ESC", "specs": {"voltage": "4-5S"}},
        })
        result = run("check", path)
        assert result.exit_code == 1
        assert "FAILED" in result.output
        assert "battery-esc-voltage" in result.output

    def test_check_malformed_file(self, run, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{nope", encoding="utf-8")
        result = run("check", str(path))
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_check_non_finite_cost(self, run, tmp_path):
        path = tmp_path / "huge.json"
        path.write_text('{"name": "Huge", "components": {"frame": {"name": "F", "cost": 1e400}}}', encoding="utf-8")
        result = run("check", str(path))
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_calc(self, run):
        result = run("calc", EXAMPLE_BUILD)
        assert result.exit_code == 0
        assert "=== Build Metrics ===" in result.output
        assert "539 g" in result.output
        assert "11 / 14" in result.output

    def test_context(self, run):
        result = run("context", EXAMPLE_BUILD)
        assert result.exit_code == 0
        assert "Current FPV Quadcopter Build:" in result.output
        assert "- VTX Antenna: (not selected)" in result.output
        assert "No compatibility issues detected." in result.output

    def test_help_says_which_commands_use_data_dir(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "check, calc and context read only their file" in " ".join(result.output.split())

    def test_read_only_commands_do_not_write_drafts(self, run, data_dir):
        run("check", EXAMPLE_BUILD)
        run("calc", EXAMPLE_BUILD)
        assert not (data_dir / f"{DRAFTS_KEY}.json").exists()


# ---------------------------------------------------------------------------
# Working build
# ---------------------------------------------------------------------------

class TestBuildCommands:
    def test_set_persists_through_draft(self, run):
        result = run("build", "set", "frame", "frame-apex-5")
        assert result.exit_code == 0
        assert 'Set Frame to ImpulseRC Apex 5"' in result.output

        result = run("build", "show")
        assert result.exit_code == 0
        assert "ImpulseRC Apex" in result.output
        assert "1 / 14 parts" in result.output

    def test_set_shows_related_alerts(self, run):
        run("build", "set", "frame", "frame-apex-5")
        result = run("build", "set", "propellers", "prop-hq-3x3")
        assert result.exit_code == 0
        assert "Frame ↔ Prop Size" in result.output

    def test_set_unknown_preset(self, run):
        result = run("build", "set", "frame", "frame-does-not-exist")
        assert result.exit_code == 1
        assert "no frame preset" in result.output

    def test_clear_one_and_all(self, run):
        run("build", "set", "frame", "frame-apex-5")
        run("build", "set", "battery", "battery-cnhl-1300-6s")
        result = run("build", "clear", "frame")
        assert "Removed ImpulseRC Apex" in result.output
        assert "1 / 14 parts" in run("build", "show").output

        result = run("build", "clear")
        assert result.exit_code == 0
        assert "0 / 14 parts" in run("build", "show").output

    def test_rename(self, run):
        run("build", "rename", "Night Ripper")
        assert "Night Ripper" in run("build", "show").output

    def test_import_and_export(self, run, tmp_path):
        result = run("build", "import", EXAMPLE_BUILD)
        assert result.exit_code == 0
        assert "Imported Example 5-inch Freestyle (11 parts)" in result.output

        out = tmp_path / "out.json"
        result = run("build", "export", str(out))
        assert result.exit_code == 0
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["name"] == "Example 5-inch Freestyle"
        assert data["components"]["motors"]["category"] == "motors"
        assert data["components"]["other"] is None

    def test_drafts(self, run):
        assert "No drafts." in run("drafts").output
        run("build", "set", "frame", "frame-apex-5")
        run("build", "set", "motors", "motor-velox-2306")
        result = run("drafts")
        assert "1. Untitled Build" in result.output
        assert "2. Untitled Build" in result.output


# ---------------------------------------------------------------------------
# Saved builds
# ---------------------------------------------------------------------------

class TestSavedCommands:
    def test_save_list_load_delete(self, run, data_dir):
        run("build", "import", EXAMPLE_BUILD)
        result = run("saved", "save", "--name", "Keeper")
        assert result.exit_code == 0
        assert "Saved Keeper as" in result.output

        saved = SavedBuildStore(JsonFileStore(data_dir)).list()
        assert len(saved) == 1
        build_id = saved[0].id

        result = run("saved", "list")
        assert build_id in result.output
        assert "Keeper" in result.output

        run("build", "clear")
        result = run("saved", "load", build_id)
        assert result.exit_code == 0
        assert "Loaded Keeper." in result.output
        assert "11 / 14 parts" in run("build", "show").output

        result = run("saved", "delete", build_id)
        assert result.exit_code == 0
        assert "No saved builds." in run("saved", "list").output

    def test_load_missing(self, run):
        result = run("saved", "load", "nope")
        assert result.exit_code == 1
        assert "no saved build" in result.output

    def test_delete_missing(self, run):
        result = run("saved", "delete", "nope")
        assert result.exit_code == 1
