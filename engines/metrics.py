"""Derived build metrics: cost, flying weight, thrust-to-weight, flight time.

All functions are pure over a slot map and are recomputed on every read.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.categories import COST_MULTIPLIERS, GROUND_EQUIPMENT, WEIGHT_MULTIPLIERS
from core.formatting import format_currency, format_flight_time, format_twr, format_weight
from core.models import Slots
from engines.rules import parse_s_count, to_number

MOTOR_COUNT = 4
# Sustained thrust as a fraction of peak static thrust.
SUSTAINED_THRUST_FACTOR = 0.8
CELL_NOMINAL_V = 3.7
# Average cruise power per kg of flying weight.
WATTS_PER_KG = 200.0
USABLE_CAPACITY = 0.8


def filled_count(components: Slots) -> int:
    return sum(1 for comp in components.values() if comp is not None)


def total_cost(components: Slots) -> int:
    """Total cost in cents; one listed motor is priced as a set of four."""
    total = 0
    for key, comp in components.items():
        if comp is None or not comp.cost:
            continue
        total += comp.cost * COST_MULTIPLIERS.get(key, 1)
    return total


def _flying_weight(key: str, comp) -> int:
    if comp is None or key in GROUND_EQUIPMENT or not comp.weight:
        return 0
    return comp.weight * WEIGHT_MULTIPLIERS.get(key, 1)


def weight_breakdown(components: Slots) -> dict[str, int]:
    """Per-slot contribution to flying weight plus a ``total`` entry.

    Ground equipment is left out entirely; empty slots are left out too.
    """
    breakdown: dict[str, int] = {}
    for key, comp in components.items():
        if comp is None or key in GROUND_EQUIPMENT:
            continue
        breakdown[key] = _flying_weight(key, comp)
    breakdown["total"] = sum(breakdown.values())
    return breakdown


def total_weight(components: Slots) -> int:
    """Flying weight in grams (motors and props x4, tx/goggles excluded)."""
    return sum(_flying_weight(key, comp) for key, comp in components.items())


def thrust_to_weight_ratio(components: Slots) -> Optional[float]:
    motor = components.get("motors")
    if motor is None:
        return None
    thrust_g = to_number(motor.spec("thrust_grams"))
    weight = total_weight(components)
    if not thrust_g or weight <= 0:
        return None
    return (thrust_g * MOTOR_COUNT * SUSTAINED_THRUST_FACTOR) / weight


def estimated_flight_time(components: Slots) -> Optional[float]:
    """Rough hover-ish flight time in minutes, or None without enough data."""
    battery = components.get("battery")
    if battery is None:
        return None
    capacity_mah = to_number(battery.spec("capacity"))
    cells = parse_s_count(battery.spec("voltage"))
    weight = total_weight(components)
    if not capacity_mah or not cells or weight <= 0:
        return None

    nominal_v = cells * CELL_NOMINAL_V
    avg_power_w = (weight / 1000.0) * WATTS_PER_KG
    avg_current_a = avg_power_w / nominal_v
    return (capacity_mah * USABLE_CAPACITY) / (avg_current_a * 1000.0) * 60.0


# ---------------------------------------------------------------------------
# BuildMetrics
# ---------------------------------------------------------------------------

@dataclass
class BuildMetrics:
    """All derived metrics for one slot map."""

    filled_count: int
    slot_count: int
    total_cost: int
    total_weight: int
    weight_breakdown: dict[str, int]
    thrust_to_weight_ratio: Optional[float]
    estimated_flight_time: Optional[float]

    def summary(self) -> str:
        lines = [
            "=== Build Metrics ===",
            "",
            f"  Parts selected         : {self.filled_count} / {self.slot_count}",
            f"  Total cost             : {format_currency(self.total_cost)}",
            f"  Flying weight          : {format_weight(self.total_weight)}",
            f"  Thrust-to-weight ratio : {format_twr(self.thrust_to_weight_ratio)}",
            f"  Est. flight time       : {format_flight_time(self.estimated_flight_time)}",
            "",
            "=====================",
        ]
        return "\n".join(lines)


def calculate_metrics(components: Slots, slot_count: int) -> BuildMetrics:
    return BuildMetrics(
        filled_count=filled_count(components),
        slot_count=slot_count,
        total_cost=total_cost(components),
        total_weight=total_weight(components),
        weight_breakdown=weight_breakdown(components),
        thrust_to_weight_ratio=thrust_to_weight_ratio(components),
        estimated_flight_time=estimated_flight_time(components),
    )
