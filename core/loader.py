"""Load and normalize components, build documents, and the preset catalog."""

from __future__ import annotations

import json
import logging
import math
import time
from pathlib import Path
from typing import Any, Optional

import yaml

from core.categories import CATEGORY_KEYS
from core.models import Build, BuildFormatError, Component

log = logging.getLogger("quadcalc.core.loader")

PROJECT_ROOT = Path(__file__).resolve().parent.parent
PRESETS_DIR = PROJECT_ROOT / "presets"
PRESETS_FILE = PRESETS_DIR / "components.yaml"

DEFAULT_BUILD_NAME = "Untitled Build"
LOADED_BUILD_NAME = "Loaded Build"


def now_ms() -> int:
    return int(time.time() * 1000)


def _is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _optional_int(raw: dict[str, Any], key: str) -> Optional[int]:
    """Read a nullable integer field (cents or grams)."""
    value = raw.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise BuildFormatError(f"{key} must be a number, got {value!r}")
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        raise BuildFormatError(f"{key} must be a number, got {value!r}")


def _normalize_specs(raw_specs: Any) -> dict[str, Any]:
    """Keep scalars as-is and coerce sequences to lists of strings."""
    if raw_specs is None:
        return {}
    if not isinstance(raw_specs, dict):
        raise BuildFormatError(f"specs must be a mapping, got {type(raw_specs).__name__}")
    specs: dict[str, Any] = {}
    for key, value in raw_specs.items():
        if isinstance(value, (list, tuple)):
            specs[str(key)] = [str(v) for v in value]
        else:
            specs[str(key)] = value
    return specs


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

def component_from_dict(raw: Any, category: Optional[str] = None) -> Component:
    """Build a Component from a plain dict (preset, import, or tool call).

    Raises BuildFormatError if *raw* is not a usable component mapping.
    """
    if isinstance(raw, Component):
        return raw
    if not isinstance(raw, dict):
        raise BuildFormatError(f"component must be a mapping, got {type(raw).__name__}")
    name = raw.get("name")
    if not name:
        raise BuildFormatError("component is missing a name")
    return Component(
        id=str(raw.get("id") or name),
        name=str(name),
        description=str(raw.get("description") or ""),
        cost=_optional_int(raw, "cost"),
        weight=_optional_int(raw, "weight"),
        specs=_normalize_specs(raw.get("specs")),
        category=raw.get("category", category),
    )


def component_to_dict(component: Component) -> dict[str, Any]:
    return {
        "id": component.id,
        "name": component.name,
        "description": component.description,
        "cost": component.cost,
        "weight": component.weight,
        "specs": {k: list(v) if isinstance(v, list) else v for k, v in component.specs.items()},
        "category": component.category,
    }


# ---------------------------------------------------------------------------
# Builds
# ---------------------------------------------------------------------------

def build_from_dict(data: Any) -> Build:
    """Create a Build from an exported/draft/saved document.

    Expected format:
    {
        "name": "My 5inch Build",
        "timestamp": 1718000000000,
        "components": {
            "frame": {"id": "...", "name": "...", "specs": {...}},
            "motors": null,
            ...
        }
    }
    """
    if not isinstance(data, dict):
        raise BuildFormatError("build document must be a JSON object")
    raw_components = data.get("components") or {}
    if not isinstance(raw_components, dict):
        raise BuildFormatError("build components must be a mapping of category to component")

    components: dict[str, Optional[Component]] = {}
    for key, value in raw_components.items():
        components[key] = component_from_dict(value, category=key) if value else None

    timestamp = data.get("timestamp")
    return Build(
        name=str(data.get("name") or LOADED_BUILD_NAME),
        timestamp=int(timestamp) if _is_finite_number(timestamp) else now_ms(),
        components=components,
    )


def build_to_dict(build: Build) -> dict[str, Any]:
    """Serialize a Build to the exported document shape (no id, no history)."""
    return {
        "name": build.name,
        "timestamp": build.timestamp,
        "components": {
            key: component_to_dict(comp) if comp else None
            for key, comp in build.components.items()
        },
    }


def load_build_file(path: str | Path) -> Build:
    """Read an exported build JSON file.

    Raises BuildFormatError for unreadable or malformed files.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise BuildFormatError(f"invalid build file {path}: {exc}") from exc
    return build_from_dict(data)


def save_build_file(build: Build, path: str | Path) -> Path:
    """Write a Build as pretty-printed JSON. Returns the path written."""
    path = Path(path)
    path.write_text(
        json.dumps(build_to_dict(build), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
    return path


# ---------------------------------------------------------------------------
# Preset catalog
# ---------------------------------------------------------------------------

def load_presets(
    category: Optional[str] = None,
    path: Path | None = None,
) -> dict[str, list[Component]]:
    """Load the preset catalog. Returns {category: [Component, ...]}.

    Presets are read-only templates; the store copies them on assignment.
    """
    filepath = path or PRESETS_FILE
    if not filepath.exists():
        return {}
    with open(filepath, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    result: dict[str, list[Component]] = {}
    for key in CATEGORY_KEYS:
        if category and key != category:
            continue
        entries = data.get(key) or []
        comps = []
        for raw in entries:
            try:
                comps.append(component_from_dict(raw, category=key))
            except BuildFormatError as exc:
                log.warning("Skipping malformed %s preset %r: %s", key, raw, exc)
        if comps:
            result[key] = comps
    return result


def find_preset(category: str, preset_id: str, path: Path | None = None) -> Component | None:
    """Look up one preset by id within its category (ids are unique per category)."""
    for comp in load_presets(category, path=path).get(category, []):
        if comp.id == preset_id:
            return comp
    return None
