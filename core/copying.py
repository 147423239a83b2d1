"""Structural copies of components and slot maps.

Snapshots in history, drafts and exports must never share mutable state
with the live slot map.  The only mutable parts of a Component are its
``specs`` dict and any list values inside it, so those are what get copied.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from core.models import Component, Slots


def copy_specs(specs: dict) -> dict:
    return {key: list(value) if isinstance(value, list) else value for key, value in specs.items()}


def copy_component(component: Optional[Component], category: Optional[str] = None) -> Optional[Component]:
    """Return an independent copy of *component*.

    If *category* is given the copy is stamped with it, overriding whatever
    tag the source carried.
    """
    if component is None:
        return None
    return replace(
        component,
        specs=copy_specs(component.specs),
        category=category if category is not None else component.category,
    )


def copy_slots(slots: Slots) -> Slots:
    return {key: copy_component(comp) for key, comp in slots.items()}
