"""Key-value storage backends for drafts and saved builds.

Both operations are fallible: implementations raise StorageError when a
value cannot be read (missing backing store, corrupt JSON) or written
(quota, permissions).  Callers decide how to degrade.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from core.loader import PROJECT_ROOT
from core.models import StorageError

log = logging.getLogger("quadcalc.core.kv_store")

DATA_DIR = PROJECT_ROOT / "data"


class KeyValueStore(ABC):
    """Minimal JSON-value store interface."""

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the stored value, or None if the key is unset."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under *key*."""


class MemoryStore(KeyValueStore):
    """In-process store. Values are kept as JSON text so reads never alias writes."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self._data: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get(self, key: str) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageError(f"corrupt value for {key!r}: {exc}") from exc

    def set(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"value for {key!r} is not serializable: {exc}") from exc
        if self.quota_bytes is not None:
            used = sum(len(v) for k, v in self._data.items() if k != key)
            if used + len(raw) > self.quota_bytes:
                raise StorageError(f"quota exceeded writing {key!r}")
        self._data[key] = raw

    def set_raw(self, key: str, raw: str) -> None:
        """Store text verbatim, bypassing serialization."""
        self._data[key] = raw


class JsonFileStore(KeyValueStore):
    """One pretty-printed JSON file per key inside a directory."""

    def __init__(self, directory: Path | str = DATA_DIR):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Any:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (ValueError, OSError) as exc:
            raise StorageError(f"cannot read {path}: {exc}") from exc

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            text = json.dumps(value, indent=2, ensure_ascii=False)
            path.write_text(text + "\n", encoding="utf-8")
        except (TypeError, ValueError, OSError) as exc:
            raise StorageError(f"cannot write {path}: {exc}") from exc
        log.debug("Wrote %s (%d bytes)", path, len(text))
