"""Slot registry for a quadcopter build.

Every build has exactly these fourteen slots, each holding at most one
component.  The order here is the display order used everywhere else.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Category:
    """A single build slot."""

    key: str  # dict key in the slot map (e.g., "motors", "vtxAntenna")
    label: str


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

CATEGORIES: tuple[Category, ...] = (
    Category("frame", "Frame"),
    Category("motors", "Motors"),
    Category("propellers", "Propellers"),
    Category("battery", "Battery"),
    Category("fc", "Flight Controller"),
    Category("esc", "ESC"),
    Category("vtx", "VTX"),
    Category("vtxAntenna", "VTX Antenna"),
    Category("camera", "Camera"),
    Category("rx", "Receiver (RX)"),
    Category("rxAntenna", "RX Antenna"),
    Category("tx", "Transmitter (TX)"),
    Category("goggles", "Goggles"),
    Category("other", "Other"),
)

CATEGORY_KEYS: tuple[str, ...] = tuple(c.key for c in CATEGORIES)

CATEGORY_MAP: dict[str, Category] = {c.key: c for c in CATEGORIES}

# ---------------------------------------------------------------------------
# Quantity rules — one listed motor/prop stands for a set of four
# ---------------------------------------------------------------------------

COST_MULTIPLIERS: dict[str, int] = {"motors": 4}

WEIGHT_MULTIPLIERS: dict[str, int] = {"motors": 4, "propellers": 4}

# Stays on the ground with the pilot, never counted in flying weight.
GROUND_EQUIPMENT: frozenset[str] = frozenset({"tx", "goggles"})


def is_registered(key: str) -> bool:
    return key in CATEGORY_MAP


def get_label(key: str) -> str:
    """Return the display label for a slot key.

    Falls back to the key itself for unregistered keys.
    """
    category = CATEGORY_MAP.get(key)
    return category.label if category else key


def empty_slots() -> dict[str, None]:
    """Return a slot map with every registered slot empty."""
    return {key: None for key in CATEGORY_KEYS}
