"""Tests for core/loader.py and core/copying.py."""

from __future__ import annotations

import json

import pytest

from core.categories import CATEGORY_KEYS
from core.copying import copy_component, copy_slots
from core.loader import (
    LOADED_BUILD_NAME,
    PROJECT_ROOT,
    build_from_dict,
    build_to_dict,
    component_from_dict,
    component_to_dict,
    find_preset,
    load_build_file,
    load_presets,
    save_build_file,
)
from core.models import Build, BuildFormatError, Component


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

class TestComponentFromDict:
    def test_full_record(self):
        comp = component_from_dict({
            "id": "esc-1",
            "name": "BLS 50A",
            "description": "4-in-1",
            "cost": 5499,
            "weight": 15,
            "specs": {"voltage": "3-6S", "protocol": ("DShot300", "DShot600")},
        }, category="esc")
        assert comp.id == "esc-1"
        assert comp.cost == 5499
        assert comp.specs["protocol"] == ["DShot300", "DShot600"]
        assert comp.category == "esc"

    def test_defaults(self):
        comp = component_from_dict({"name": "Bare"})
        assert comp.id == "Bare"
        assert comp.description == ""
        assert comp.cost is None
        assert comp.weight is None
        assert comp.specs == {}

    def test_numeric_strings_are_rounded(self):
        comp = component_from_dict({"name": "x", "cost": "12.6", "weight": 3.4})
        assert comp.cost == 13
        assert comp.weight == 3

    @pytest.mark.parametrize("raw", [
        None,
        "frame",
        {"cost": 10},
        {"name": "x", "cost": "cheap"},
        {"name": "x", "weight": True},
        {"name": "x", "specs": ["size"]},
        {"name": "x", "cost": float("inf")},
        {"name": "x", "weight": float("-inf")},
        {"name": "x", "cost": float("nan")},
        {"name": "x", "cost": "1e400"},
    ])
    def test_malformed(self, raw):
        with pytest.raises(BuildFormatError):
            component_from_dict(raw)

    def test_component_passes_through(self):
        comp = Component(id="a", name="A")
        assert component_from_dict(comp) is comp

    def test_to_dict(self):
        comp = Component(id="a", name="A", cost=1, weight=2, specs={"p": ["x"]}, category="fc")
        assert component_to_dict(comp) == {
            "id": "a", "name": "A", "description": "", "cost": 1, "weight": 2,
            "specs": {"p": ["x"]}, "category": "fc",
        }

    def test_empty_spec_values_read_as_absent(self):
        comp = Component(id="a", name="A", specs={"size": "", "protocol": [], "aio": False})
        assert comp.spec("size") is None
        assert comp.spec("protocol") is None
        assert comp.spec("aio") is False


# ---------------------------------------------------------------------------
# Builds
# ---------------------------------------------------------------------------

class TestBuildDocuments:
    def test_from_dict(self):
        build = build_from_dict({
            "name": "Mine",
            "timestamp": 1718000000000,
            "components": {"frame": {"name": "Apex"}, "motors": None},
        })
        assert build.name == "Mine"
        assert build.timestamp == 1718000000000
        assert build.components["frame"].category == "frame"
        assert build.components["motors"] is None

    def test_missing_name_and_timestamp(self):
        build = build_from_dict({"components": {}})
        assert build.name == LOADED_BUILD_NAME
        assert build.timestamp > 0

    @pytest.mark.parametrize("timestamp", [float("nan"), float("inf"), True, "yesterday"])
    def test_unusable_timestamp_falls_back_to_now(self, timestamp):
        build = build_from_dict({"name": "T", "timestamp": timestamp, "components": {}})
        assert isinstance(build.timestamp, int)
        assert build.timestamp > 1

    @pytest.mark.parametrize("data", [[], "x", {"components": ["frame"]}])
    def test_malformed(self, data):
        with pytest.raises(BuildFormatError):
            build_from_dict(data)

    def test_to_dict_shape(self):
        doc = build_to_dict(Build(name="B", timestamp=5, components={"frame": None}))
        assert doc == {"name": "B", "timestamp": 5, "components": {"frame": None}}

    def test_file_round_trip(self, tmp_path):
        build = Build(name="Disk", timestamp=7, components={
            "frame": Component(id="f", name="Apex", specs={"size": "5"}, category="frame"),
            "vtx": None,
        })
        path = save_build_file(build, tmp_path / "build.json")
        loaded = load_build_file(path)
        assert loaded.name == "Disk"
        assert loaded.components["frame"].specs == {"size": "5"}
        assert json.loads(path.read_text(encoding="utf-8"))["components"]["vtx"] is None

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(BuildFormatError):
            load_build_file(path)

    def test_load_non_finite_cost(self, tmp_path):
        path = tmp_path / "huge.json"
        path.write_text('{"name": "Huge", "components": {"frame": {"name": "F", "cost": 1e400}}}', encoding="utf-8")
        with pytest.raises(BuildFormatError, match="cost"):
            load_build_file(path)

    def test_load_undecodable_file(self, tmp_path):
        path = tmp_path / "binary.json"
        path.write_bytes(b"\xff\xfe{}")
        with pytest.raises(BuildFormatError):
            load_build_file(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(BuildFormatError):
            load_build_file(tmp_path / "missing.json")

    def test_example_build_has_every_slot(self):
        build = load_build_file(PROJECT_ROOT / "builds" / "example_5inch.json")
        assert list(build.components) == list(CATEGORY_KEYS)


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

class TestPresets:
    def test_catalog_covers_every_slot(self):
        presets = load_presets()
        assert list(presets) == list(CATEGORY_KEYS)

    def test_preset_ids_unique_per_slot(self):
        for key, comps in load_presets().items():
            ids = [c.id for c in comps]
            assert len(ids) == len(set(ids)), key

    def test_presets_are_stamped(self):
        for key, comps in load_presets().items():
            assert all(c.category == key for c in comps)

    def test_filter_by_category(self):
        presets = load_presets("battery")
        assert list(presets) == ["battery"]

    def test_find_preset(self):
        motor = find_preset("motors", "motor-velox-2306")
        assert motor is not None
        assert motor.spec("thrust_grams") == 1450
        assert find_preset("motors", "frame-apex-5") is None

    def test_missing_catalog(self, tmp_path):
        assert load_presets(path=tmp_path / "none.yaml") == {}

    def test_malformed_entries_skipped(self, tmp_path):
        path = tmp_path / "components.yaml"
        path.write_text(
            "frame:\n"
            "  - id: ok\n"
            "    name: Good Frame\n"
            "  - id: bad\n"
            "    cost: 5\n",
            encoding="utf-8",
        )
        presets = load_presets(path=path)
        assert [c.id for c in presets["frame"]] == ["ok"]


# ---------------------------------------------------------------------------
# Copying
# ---------------------------------------------------------------------------

class TestCopying:
    def test_copy_is_deep_for_specs(self):
        comp = Component(id="a", name="A", specs={"protocol": ["DShot600"]})
        copy = copy_component(comp)
        copy.specs["protocol"].append("PWM")
        assert comp.specs["protocol"] == ["DShot600"]

    def test_copy_stamps_category(self):
        comp = Component(id="a", name="A", category="motors")
        assert copy_component(comp, category="frame").category == "frame"
        assert copy_component(comp).category == "motors"

    def test_copy_none(self):
        assert copy_component(None) is None

    def test_copy_slots(self):
        slots = {"frame": Component(id="a", name="A"), "esc": None}
        copied = copy_slots(slots)
        assert copied == slots
        assert copied["frame"] is not slots["frame"]
