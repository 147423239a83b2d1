"""Draft ring and saved-build storage on top of a KeyValueStore.

Drafts are crash/reload recovery snapshots written by autosave, capped at
DRAFT_LIMIT (oldest dropped first).  Saved builds are explicit, user-named,
unbounded, and carry a generated id.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from core.kv_store import KeyValueStore
from core.loader import build_from_dict, build_to_dict
from core.models import Build, BuildFormatError, StorageError

if TYPE_CHECKING:
    from core.build_store import BuildStore

log = logging.getLogger("quadcalc.core.persistence")

DRAFTS_KEY = "quadcalc_drafts"
SAVED_BUILDS_KEY = "quadcalc_builds"
DRAFT_LIMIT = 5


def _read_list(storage: KeyValueStore, key: str) -> list[Any]:
    """Read a JSON list, degrading to [] on any storage failure."""
    try:
        value = storage.get(key)
    except StorageError as exc:
        log.warning("Could not read %s: %s", key, exc)
        return []
    return value if isinstance(value, list) else []


def _parse_records(records: list[Any]) -> list[tuple[dict, Build]]:
    parsed = []
    for record in records:
        try:
            parsed.append((record, build_from_dict(record)))
        except (BuildFormatError, TypeError, ValueError) as exc:
            log.warning("Skipping malformed build record: %s", exc)
    return parsed


def generate_id() -> str:
    return uuid.uuid4().hex[:12]


# ---------------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------------

class DraftStore:
    """Bounded ring of autosaved drafts, newest last."""

    def __init__(self, storage: KeyValueStore, limit: int = DRAFT_LIMIT):
        self.storage = storage
        self.limit = limit

    def list(self) -> list[Build]:
        """All readable drafts, oldest first."""
        return [build for _, build in _parse_records(_read_list(self.storage, DRAFTS_KEY))]

    def latest(self) -> Optional[Build]:
        drafts = self.list()
        return drafts[-1] if drafts else None

    def push(self, build: Build) -> bool:
        """Append a draft, evicting the oldest beyond the limit.

        Best effort: returns False (and logs) if the write is rejected.
        """
        records = _read_list(self.storage, DRAFTS_KEY)
        records.append(build_to_dict(build))
        records = records[-self.limit:]
        try:
            self.storage.set(DRAFTS_KEY, records)
        except StorageError as exc:
            log.warning("Draft autosave failed: %s", exc)
            return False
        return True


# ---------------------------------------------------------------------------
# Saved builds
# ---------------------------------------------------------------------------

@dataclass
class SavedBuild:
    id: str
    build: Build


class SavedBuildStore:
    """User-saved builds — save/list/load/delete."""

    def __init__(self, storage: KeyValueStore):
        self.storage = storage

    def list(self) -> list[SavedBuild]:
        saved = []
        for record, build in _parse_records(_read_list(self.storage, SAVED_BUILDS_KEY)):
            if record.get("id"):
                saved.append(SavedBuild(id=str(record["id"]), build=build))
        return saved

    def get(self, build_id: str) -> Optional[SavedBuild]:
        for saved in self.list():
            if saved.id == build_id:
                return saved
        return None

    def save(self, store: BuildStore, name: Optional[str] = None) -> Optional[SavedBuild]:
        """Export the store's current build and append it under a new id.

        Returns None if the write was rejected.
        """
        if name:
            store.rename(name)
        build = store.export_build()
        record = build_to_dict(build)
        record["id"] = generate_id()

        records = _read_list(self.storage, SAVED_BUILDS_KEY)
        records.append(record)
        try:
            self.storage.set(SAVED_BUILDS_KEY, records)
        except StorageError as exc:
            log.warning("Saving build %r failed: %s", build.name, exc)
            return None
        return SavedBuild(id=record["id"], build=build)

    def load_into(self, store: BuildStore, build_id: str) -> bool:
        """Load a saved build into *store*. Returns False if not found."""
        saved = self.get(build_id)
        if saved is None:
            return False
        store.load_build(saved.build)
        return True

    def delete(self, build_id: str) -> bool:
        """Delete a saved build. Returns True if deleted, False if not found."""
        records = _read_list(self.storage, SAVED_BUILDS_KEY)
        remaining = [r for r in records if not (isinstance(r, dict) and r.get("id") == build_id)]
        if len(remaining) == len(records):
            return False
        try:
            self.storage.set(SAVED_BUILDS_KEY, remaining)
        except StorageError as exc:
            log.warning("Deleting build %s failed: %s", build_id, exc)
            return False
        return True
