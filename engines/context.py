"""Plain-text build summary for the chat assistant, plus its tool bridge.

The assistant reads the build through ``build_context`` and changes it only
through ``apply_tool_call``, which maps its two tools onto the store's
mutation API and returns the note shown to the user.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.build_store import BuildStore
from core.categories import CATEGORIES, CATEGORY_KEYS, get_label
from core.formatting import flatten_specs
from core.models import ActionResult

TOOL_SET_COMPONENT = "set_component"
TOOL_CLEAR_COMPONENT = "clear_component"


def build_context(store: BuildStore) -> str:
    components = store.components
    parts = ["Current FPV Quadcopter Build:"]
    for cat in CATEGORIES:
        comp = components.get(cat.key)
        if comp is None:
            parts.append(f"- {cat.label}: (not selected)")
            continue
        parts.append(f"- {cat.label}: {comp.name} ({comp.description or 'no description'})")
        if comp.specs:
            parts.append(f"  Specs: {flatten_specs(comp.specs)}")

    parts.append(f"\nCompatibility Score: {store.compatibility_score}%")

    alerts = store.alerts
    if alerts:
        parts.append("\nCompatibility Issues:")
        for alert in alerts:
            parts.append(f"- [{alert.severity.value.upper()}] {alert.name}: {alert.message}")
    else:
        parts.append("\nNo compatibility issues detected.")

    return "\n".join(parts)


def tool_categories() -> list[str]:
    """Category keys the assistant may name in tool arguments."""
    return list(CATEGORY_KEYS)


def apply_tool_call(store: BuildStore, tool: str, arguments: Mapping[str, Any]) -> ActionResult:
    """Run one assistant tool call against the store.

    Arguments naming a category outside the registry are refused here, at
    the assistant boundary; the store itself stays permissive.
    """
    category = str(arguments.get("category", ""))
    action = "set" if tool == TOOL_SET_COMPONENT else "clear"
    if tool not in (TOOL_SET_COMPONENT, TOOL_CLEAR_COMPONENT):
        return ActionResult(ok=False, action=tool, category=category, message=f"Unknown tool: {tool}")
    if category not in CATEGORY_KEYS:
        return ActionResult(ok=False, action=action, category=category, message=f"Unknown category: {category!r}")

    if tool == TOOL_CLEAR_COMPONENT:
        return store.clear_component(category)
    component = arguments.get("component")
    if not component:
        return ActionResult(
            ok=False,
            action=action,
            category=category,
            message=f"No component given for {get_label(category)}",
        )
    return store.set_component(category, component)
