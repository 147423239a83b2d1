"""Data models for QuadCalc."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

SpecValue = Union[str, int, float, bool, list]


class QuadCalcError(Exception):
    """Base class for errors raised by the QuadCalc core."""


class StorageError(QuadCalcError):
    """A key-value store could not read or write a value."""


class BuildFormatError(QuadCalcError):
    """An imported build or component document is malformed."""


class Severity(enum.Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class MutationOrigin(enum.Enum):
    """Where a slot-map change came from.

    USER changes are recorded in history and autosaved.  HISTORY changes
    are replays from the undo/redo stacks and are neither.
    """

    USER = "user"
    HISTORY = "history"


@dataclass
class Component:
    """A single part that can be assigned to one build slot."""

    id: str
    name: str
    description: str = ""
    cost: Optional[int] = None  # cents
    weight: Optional[int] = None  # grams
    specs: dict[str, SpecValue] = field(default_factory=dict)
    category: Optional[str] = None  # stamped by the store

    def spec(self, key: str, default: Any = None) -> Any:
        """Return a spec value, treating empty strings and lists as absent."""
        value = self.specs.get(key, default)
        if value == "" or value == []:
            return default
        return value


Slots = dict[str, Optional[Component]]


@dataclass
class Build:
    """A named snapshot of every slot — the export/draft document shape."""

    name: str
    timestamp: int  # ms since epoch
    components: Slots = field(default_factory=dict)


@dataclass(frozen=True)
class CompatibilityRule:
    """A static pairwise check between two categories."""

    id: str
    name: str
    description: str
    categories: tuple[str, str]
    severity: Severity
    check: Callable[[Component, Component], Optional[str]]
    explanation: str = ""


@dataclass
class Alert:
    """A rule whose check failed against the current slot map."""

    id: str
    name: str
    description: str
    severity: Severity
    message: str
    categories: tuple[str, str]
    explanation: str = ""

    def involves(self, category: str) -> bool:
        return category in self.categories


@dataclass
class ActionResult:
    """Outcome of a mutation requested by an outside collaborator."""

    ok: bool
    action: str  # set, clear
    category: str
    message: str
