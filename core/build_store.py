"""Build-state store — slot map, mutation API, undo/redo, draft autosave.

A BuildStore is constructed explicitly and passed to whatever needs it
(CLI commands, the chat-assistant bridge, tests).  Every change to the slot
map goes through ``_apply``, which replaces the whole map in one step and
decides from the MutationOrigin whether history and autosave are involved.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping, Optional, Union

from core.categories import CATEGORY_KEYS, empty_slots, get_label, is_registered
from core.copying import copy_component, copy_slots
from core.kv_store import KeyValueStore, MemoryStore
from core.loader import DEFAULT_BUILD_NAME, build_from_dict, component_from_dict
from core.models import (
    ActionResult,
    Alert,
    Build,
    BuildFormatError,
    Component,
    MutationOrigin,
    Slots,
)
from core.persistence import DRAFT_LIMIT, DraftStore
from core.scheduler import Clock, Debouncer
from engines import compatibility
from engines import metrics as build_metrics

log = logging.getLogger("quadcalc.core.build_store")

HISTORY_LIMIT = 50
AUTOSAVE_DELAY_MS = 1000


class BuildStore:
    """Owns the current build and its history."""

    def __init__(
        self,
        storage: Optional[KeyValueStore] = None,
        clock: Optional[Clock] = None,
        history_limit: int = HISTORY_LIMIT,
        autosave_delay_ms: int = AUTOSAVE_DELAY_MS,
        draft_limit: int = DRAFT_LIMIT,
        restore_draft: bool = True,
    ):
        self.storage = storage if storage is not None else MemoryStore()
        self.clock = clock or Clock()
        self.history_limit = history_limit
        self.drafts = DraftStore(self.storage, limit=draft_limit)

        self._components: Slots = empty_slots()
        self._name = DEFAULT_BUILD_NAME
        self._undo: list[Slots] = []
        self._redo: list[Slots] = []
        self._autosave = Debouncer(self._write_draft, autosave_delay_ms, self.clock)

        if restore_draft:
            self.restore_draft()

    # -- state ---------------------------------------------------------------

    @property
    def components(self) -> Mapping[str, Optional[Component]]:
        """Read-only view of the slot map."""
        return MappingProxyType(self._components)

    @property
    def name(self) -> str:
        return self._name

    @property
    def undo_stack(self) -> tuple[Slots, ...]:
        return tuple(self._undo)

    @property
    def redo_stack(self) -> tuple[Slots, ...]:
        return tuple(self._redo)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    # -- single mutation entry point -----------------------------------------

    def _push_undo(self, snapshot: Slots) -> None:
        self._undo.append(snapshot)
        if len(self._undo) > self.history_limit:
            del self._undo[0]

    def _apply(self, new_components: Slots, origin: MutationOrigin, name: Optional[str] = None) -> None:
        if origin is MutationOrigin.USER:
            self._push_undo(copy_slots(self._components))
            self._redo.clear()
        self._components = new_components
        if name is not None:
            self._name = name
        if origin is MutationOrigin.USER:
            self._autosave.schedule()

    # -- mutations -----------------------------------------------------------

    def set_component(self, category: str, component: Union[Component, dict, None]) -> ActionResult:
        """Assign a copy of *component* to a slot, stamped with that slot's key.

        Passing None clears the slot.  Unregistered keys are stored as-is
        and simply never show up in registry-driven readers.
        """
        if component is None:
            return self.clear_component(category)
        try:
            template = component_from_dict(component, category=category)
        except BuildFormatError as exc:
            return ActionResult(ok=False, action="set", category=category, message=f"Invalid component: {exc}")

        if not is_registered(category):
            log.debug("Assigning %r to unregistered slot %r", template.name, category)

        new_components = dict(self._components)
        new_components[category] = copy_component(template, category=category)
        self._apply(new_components, MutationOrigin.USER)
        log.debug("Set %s -> %s", category, template.name)
        return ActionResult(
            ok=True,
            action="set",
            category=category,
            message=f"Set {get_label(category)} to {template.name}",
        )

    def clear_component(self, category: str) -> ActionResult:
        previous = self._components.get(category)
        new_components = dict(self._components)
        new_components[category] = None
        self._apply(new_components, MutationOrigin.USER)
        log.debug("Cleared %s", category)
        if previous is None:
            message = f"{get_label(category)} was already empty"
        else:
            message = f"Removed {previous.name} from {get_label(category)}"
        return ActionResult(ok=True, action="clear", category=category, message=message)

    def clear_all(self) -> None:
        self._apply({key: None for key in self._components}, MutationOrigin.USER, name=DEFAULT_BUILD_NAME)
        log.debug("Cleared all slots")

    def load_build(self, build: Union[Build, dict]) -> None:
        """Replace every slot (and the name) from *build* as one mutation.

        Slots missing from the build's map become empty.
        """
        if not isinstance(build, Build):
            build = build_from_dict(build)
        source = build.components
        new_components = {key: copy_component(source.get(key), category=key) for key in self._components}
        self._apply(new_components, MutationOrigin.USER, name=build.name)
        log.debug("Loaded build %r", build.name)

    def rename(self, name: str) -> None:
        """Change the build name. Not a history entry, but autosaved."""
        self._name = name
        self._autosave.schedule()

    def undo(self) -> bool:
        """Step back one mutation. Returns False if there was nothing to undo."""
        if not self._undo:
            return False
        self._redo.append(copy_slots(self._components))
        snapshot = self._undo.pop()
        self._apply(copy_slots(snapshot), MutationOrigin.HISTORY)
        log.debug("Undo (%d left, %d redoable)", len(self._undo), len(self._redo))
        return True

    def redo(self) -> bool:
        """Re-apply the last undone mutation. Returns False if there was nothing to redo."""
        if not self._redo:
            return False
        self._push_undo(copy_slots(self._components))
        snapshot = self._redo.pop()
        self._apply(copy_slots(snapshot), MutationOrigin.HISTORY)
        log.debug("Redo (%d left)", len(self._redo))
        return True

    def export_build(self) -> Build:
        return Build(name=self._name, timestamp=self.clock.now_ms(), components=copy_slots(self._components))

    # -- drafts --------------------------------------------------------------

    def _write_draft(self) -> None:
        if self.drafts.push(self.export_build()):
            log.debug("Autosaved draft %r", self._name)

    @property
    def autosave_pending(self) -> bool:
        return self._autosave.pending

    def poll_autosave(self) -> bool:
        """Write the pending draft if the debounce window has elapsed."""
        return self._autosave.poll()

    def flush_autosave(self) -> bool:
        """Write the pending draft now, if there is one."""
        return self._autosave.flush()

    def restore_draft(self) -> bool:
        """Recover the latest draft into an all-empty store.

        Not a mutation: no history entry and no autosave.
        """
        if any(comp is not None for comp in self._components.values()):
            return False
        draft = self.drafts.latest()
        if draft is None:
            return False
        self._components = {key: copy_component(draft.components.get(key), category=key) for key in CATEGORY_KEYS}
        self._name = draft.name
        log.debug("Restored draft %r", draft.name)
        return True

    # -- derived -------------------------------------------------------------

    @property
    def filled_count(self) -> int:
        return build_metrics.filled_count(self._components)

    @property
    def total_cost(self) -> int:
        return build_metrics.total_cost(self._components)

    @property
    def total_weight(self) -> int:
        return build_metrics.total_weight(self._components)

    @property
    def weight_breakdown(self) -> dict[str, int]:
        return build_metrics.weight_breakdown(self._components)

    @property
    def thrust_to_weight_ratio(self) -> Optional[float]:
        return build_metrics.thrust_to_weight_ratio(self._components)

    @property
    def estimated_flight_time(self) -> Optional[float]:
        return build_metrics.estimated_flight_time(self._components)

    def metrics(self) -> build_metrics.BuildMetrics:
        return build_metrics.calculate_metrics(self._components, slot_count=len(CATEGORY_KEYS))

    @property
    def alerts(self) -> list[Alert]:
        return compatibility.evaluate_alerts(self._components)

    @property
    def compatibility_score(self) -> int:
        return compatibility.compatibility_score(self._components)

    def category_status(self, category: str) -> str:
        return compatibility.category_status(self._components, category)

    def report(self) -> compatibility.CompatibilityReport:
        return compatibility.check_build(self._name, self._components)

    def __repr__(self) -> str:
        return f"BuildStore(name={self._name!r}, filled={self.filled_count}/{len(CATEGORY_KEYS)})"
