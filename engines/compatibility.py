"""Compatibility engine — evaluates the rule table against a slot map."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Optional

from core.models import Alert, CompatibilityRule, Severity, Slots
from engines.rules import RULES

log = logging.getLogger("quadcalc.engines.compatibility")


# ---------------------------------------------------------------------------
# ANSI color codes
# ---------------------------------------------------------------------------
_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RESET = "\033[0m"


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _run_check(rule: CompatibilityRule, components: Slots) -> tuple[bool, Optional[str]]:
    """Return (applicable, message) for one rule.

    A rule is applicable only when both of its slots are filled.
    """
    cat_a, cat_b = rule.categories
    comp_a = components.get(cat_a)
    comp_b = components.get(cat_b)
    if comp_a is None or comp_b is None:
        return False, None
    try:
        return True, rule.check(comp_a, comp_b) or None
    except Exception:  # noqa: BLE001
        log.exception("Rule %s raised; treating as passing", rule.id)
        return True, None


def evaluate_alerts(components: Slots, rules: Iterable[CompatibilityRule] = RULES) -> list[Alert]:
    """Run every applicable rule and return alerts in rule-table order."""
    alerts: list[Alert] = []
    for rule in rules:
        applicable, message = _run_check(rule, components)
        if applicable and message:
            alerts.append(
                Alert(
                    id=rule.id,
                    name=rule.name,
                    description=rule.description,
                    severity=rule.severity,
                    message=message,
                    categories=rule.categories,
                    explanation=rule.explanation,
                )
            )
    return alerts


def compatibility_score(components: Slots, rules: Iterable[CompatibilityRule] = RULES) -> int:
    """Percentage of applicable rules that pass.

    100 when no rule has both of its slots filled.
    """
    applicable = 0
    passing = 0
    for rule in rules:
        is_applicable, message = _run_check(rule, components)
        if not is_applicable:
            continue
        applicable += 1
        if message is None:
            passing += 1
    if applicable == 0:
        return 100
    # Round half up, not Python's banker's rounding.
    return int(math.floor(passing / applicable * 100 + 0.5))


def category_status(
    components: Slots,
    category: str,
    alerts: Optional[list[Alert]] = None,
) -> str:
    """Return 'empty', 'error', 'warning' or 'ok' for one slot."""
    if components.get(category) is None:
        return "empty"
    if alerts is None:
        alerts = evaluate_alerts(components)
    related = [a for a in alerts if a.involves(category)]
    if any(a.severity == Severity.ERROR for a in related):
        return "error"
    if any(a.severity == Severity.WARNING for a in related):
        return "warning"
    return "ok"


# ---------------------------------------------------------------------------
# CompatibilityReport
# ---------------------------------------------------------------------------

@dataclass
class CompatibilityReport:
    """Alerts plus score for one build, with a printable summary."""

    build_name: str
    score: int
    alerts: list[Alert] = field(default_factory=list)

    # -- properties ----------------------------------------------------------

    @property
    def passed(self) -> bool:
        """True only if there are zero errors."""
        return len(self.errors) == 0

    @property
    def errors(self) -> list[Alert]:
        return [a for a in self.alerts if a.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Alert]:
        return [a for a in self.alerts if a.severity == Severity.WARNING]

    @property
    def infos(self) -> list[Alert]:
        return [a for a in self.alerts if a.severity == Severity.INFO]

    # -- summary -------------------------------------------------------------

    def summary(self) -> str:
        """Return a human-readable, ANSI-colored summary of the report."""
        lines: list[str] = []

        status = f"{_GREEN}PASSED{_RESET}" if self.passed else f"{_RED}FAILED{_RESET}"
        lines.append(f"{_BOLD}Compatibility Report: {self.build_name}{_RESET}  [{status}]")
        lines.append(f"{_DIM}{'=' * 60}{_RESET}")
        lines.append(f"  Compatibility score: {_BOLD}{self.score}%{_RESET}")
        lines.append(
            f"  Errors: {_RED}{len(self.errors)}{_RESET}  |  "
            f"Warnings: {_YELLOW}{len(self.warnings)}{_RESET}  |  "
            f"Info: {_CYAN}{len(self.infos)}{_RESET}"
        )
        lines.append("")

        sections = (
            ("ERRORS:", "[FAIL]", _RED, self.errors),
            ("WARNINGS:", "[WARN]", _YELLOW, self.warnings),
            ("INFO:", "[INFO]", _CYAN, self.infos),
        )
        for title, tag, color, alerts in sections:
            if not alerts:
                continue
            lines.append(f"{color}{_BOLD}{title}{_RESET}")
            for a in alerts:
                lines.append(f"  {color}{tag}{_RESET} {a.id}: {a.name}")
                lines.append(f"         {a.message}")
            lines.append("")

        lines.append(f"{_DIM}{'=' * 60}{_RESET}")
        if self.passed:
            lines.append(f"{_GREEN}{_BOLD}Build is compatible.{_RESET} No errors found.")
        else:
            lines.append(
                f"{_RED}{_BOLD}Build has {len(self.errors)} error(s).{_RESET} "
                f"Resolve before building."
            )
        return "\n".join(lines)


def check_build(build_name: str, components: Slots) -> CompatibilityReport:
    """Evaluate alerts and score for a slot map in one report."""
    return CompatibilityReport(
        build_name=build_name,
        score=compatibility_score(components),
        alerts=evaluate_alerts(components),
    )
