"""Display helpers for money, weight and ratios."""

from __future__ import annotations

from typing import Optional

MISSING = "—"


def format_currency(cents: Optional[int]) -> str:
    """Whole-dollar display, e.g. 12345 -> '$123'."""
    if cents is None:
        return MISSING
    dollars = int(cents / 100 + (0.5 if cents >= 0 else -0.5))
    sign = "-" if dollars < 0 else ""
    return f"{sign}${abs(dollars):,}"


def format_weight(grams: Optional[int]) -> str:
    if grams is None:
        return MISSING
    if grams >= 1000:
        return f"{grams / 1000:.2f} kg"
    return f"{grams} g"


def format_twr(ratio: Optional[float]) -> str:
    if ratio is None:
        return MISSING
    return f"{ratio:.1f}:1"


def format_flight_time(minutes: Optional[float]) -> str:
    if minutes is None:
        return MISSING
    return f"{minutes:.1f} min"


def format_spec_value(value) -> str:
    if isinstance(value, (list, tuple)):
        return "/".join(str(v) for v in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_specs(specs: dict) -> str:
    """'key: value, key: a/b' as shown in exports and assistant context."""
    return ", ".join(f"{key}: {format_spec_value(value)}" for key, value in specs.items())
