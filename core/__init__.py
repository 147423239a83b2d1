"""QuadCalc core - slot registry, models, loading, and persistence.

The build store lives in core.build_store; import it from there.
"""

from core.categories import CATEGORIES, CATEGORY_KEYS, Category, get_label
from core.kv_store import JsonFileStore, KeyValueStore, MemoryStore
from core.loader import build_from_dict, build_to_dict, component_from_dict, load_presets
from core.models import (
    ActionResult,
    Alert,
    Build,
    BuildFormatError,
    CompatibilityRule,
    Component,
    MutationOrigin,
    QuadCalcError,
    Severity,
    StorageError,
)
from core.persistence import DraftStore, SavedBuildStore
from core.scheduler import Clock, Debouncer, ManualClock

__all__ = [
    "ActionResult",
    "Alert",
    "Build",
    "BuildFormatError",
    "CATEGORIES",
    "CATEGORY_KEYS",
    "Category",
    "Clock",
    "CompatibilityRule",
    "Component",
    "Debouncer",
    "DraftStore",
    "JsonFileStore",
    "KeyValueStore",
    "ManualClock",
    "MemoryStore",
    "MutationOrigin",
    "QuadCalcError",
    "SavedBuildStore",
    "Severity",
    "StorageError",
    "build_from_dict",
    "build_to_dict",
    "component_from_dict",
    "get_label",
    "load_presets",
]
