"""Tests for engines/compatibility.py — alerts, score, slot status, report."""

from __future__ import annotations

import logging

from core.categories import empty_slots
from core.models import CompatibilityRule, Component, Severity
from engines.compatibility import (
    CompatibilityReport,
    category_status,
    check_build,
    compatibility_score,
    evaluate_alerts,
)


def _comp(category: str, **specs) -> Component:
    return Component(id=f"{category}-test", name=f"Test {category}", specs=specs, category=category)


def _slots(**components: Component) -> dict:
    slots = empty_slots()
    slots.update(components)
    return slots


def _clean_5inch() -> dict:
    """A 5" build with no rule violations."""
    return _slots(
        frame=_comp("frame", size="5", mountPattern="30.5x30.5"),
        motors=_comp("motors", size="2306", voltage="4-6S", shaftSize="M5"),
        propellers=_comp("propellers", size="5", shaftSize="M5"),
        battery=_comp("battery", voltage="6S", connector="XT60"),
        fc=_comp("fc", voltage="3-6S", mountPattern="30.5x30.5", protocol=["DShot300", "DShot600"]),
        esc=_comp("esc", voltage="3-6S", mountPattern="30.5x30.5", current=50, protocol=["DShot600"]),
        vtx=_comp("vtx", system="DJI"),
        camera=_comp("camera", system="DJI"),
        rx=_comp("rx", protocol="ELRS", frequency="2.4GHz"),
        tx=_comp("tx", protocol="ELRS"),
        goggles=_comp("goggles", system="DJI"),
    )


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------

class TestEvaluateAlerts:
    def test_empty_build_has_no_alerts(self):
        assert evaluate_alerts(empty_slots()) == []

    def test_single_component_has_no_alerts(self):
        assert evaluate_alerts(_slots(frame=_comp("frame", size="5"))) == []

    def test_clean_build_has_no_alerts(self):
        assert evaluate_alerts(_clean_5inch()) == []

    def test_frame_prop_mismatch(self):
        slots = _slots(frame=_comp("frame", size="5"), propellers=_comp("propellers", size="3"))
        alerts = evaluate_alerts(slots)
        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.id == "frame-prop-size"
        assert alert.severity == Severity.ERROR
        assert alert.categories == ("frame", "propellers")
        assert '5"' in alert.message and '3"' in alert.message
        assert alert.explanation

    def test_alerts_follow_rule_table_order(self):
        slots = _clean_5inch()
        slots["battery"] = _comp("battery", voltage="6S", connector="XT30")
        slots["esc"] = _comp("esc", voltage="4-5S", mountPattern="30.5x30.5", current=50, protocol=["DShot600"])
        slots["propellers"] = _comp("propellers", size="3", shaftSize="M5")
        ids = [a.id for a in evaluate_alerts(slots)]
        assert ids == ["frame-prop-size", "battery-esc-voltage", "battery-frame-size"]

    def test_alert_needs_both_slots(self):
        slots = _slots(battery=_comp("battery", voltage="6S"))
        assert evaluate_alerts(slots) == []
        slots["esc"] = _comp("esc", voltage="4-5S")
        assert [a.id for a in evaluate_alerts(slots)] == ["battery-esc-voltage"]

    def test_raising_rule_is_treated_as_passing(self, caplog):
        def boom(a, b):
            raise RuntimeError("bad data")

        rule = CompatibilityRule(
            id="boom", name="Boom", description="", categories=("frame", "propellers"),
            severity=Severity.ERROR, check=boom,
        )
        slots = _slots(frame=_comp("frame"), propellers=_comp("propellers"))
        with caplog.at_level(logging.ERROR, logger="quadcalc.engines.compatibility"):
            assert evaluate_alerts(slots, rules=[rule]) == []
        assert "boom" in caplog.text
        assert compatibility_score(slots, rules=[rule]) == 100


# ---------------------------------------------------------------------------
# Score
# ---------------------------------------------------------------------------

class TestScore:
    def test_empty_build_scores_100(self):
        assert compatibility_score(empty_slots()) == 100

    def test_single_component_scores_100(self):
        assert compatibility_score(_slots(battery=_comp("battery", voltage="6S"))) == 100

    def test_clean_build_scores_100(self):
        assert compatibility_score(_clean_5inch()) == 100

    def test_one_of_one_failing_scores_0(self):
        slots = _slots(frame=_comp("frame", size="5"), propellers=_comp("propellers", size="3"))
        assert compatibility_score(slots) == 0

    def test_partial_score(self):
        slots = _slots(
            frame=_comp("frame", size="5"),
            propellers=_comp("propellers", size="3", shaftSize="M5"),
            motors=_comp("motors", size="2306", shaftSize="M5"),
        )
        # Applicable: frame-prop-size (fail), motor-prop-shaft (pass), motor-frame-size (pass)
        assert compatibility_score(slots) == 67

    def test_score_rounds_half_up(self):
        passing = CompatibilityRule(
            id="ok", name="", description="", categories=("frame", "propellers"),
            severity=Severity.INFO, check=lambda a, b: None,
        )
        failing = CompatibilityRule(
            id="bad", name="", description="", categories=("frame", "propellers"),
            severity=Severity.INFO, check=lambda a, b: "bad",
        )
        slots = _slots(frame=_comp("frame"), propellers=_comp("propellers"))
        # 1 of 8 passing = 12.5% -> 13
        assert compatibility_score(slots, rules=[passing] + [failing] * 7) == 13
        # 5 of 8 passing = 62.5% -> 63
        assert compatibility_score(slots, rules=[passing] * 5 + [failing] * 3) == 63


# ---------------------------------------------------------------------------
# Category status
# ---------------------------------------------------------------------------

class TestCategoryStatus:
    def test_empty(self):
        assert category_status(empty_slots(), "frame") == "empty"

    def test_ok(self):
        assert category_status(_clean_5inch(), "frame") == "ok"

    def test_error_dominates_warning(self):
        slots = _slots(
            frame=_comp("frame", size="5", mountPattern="30.5x30.5"),
            propellers=_comp("propellers", size="3"),
            motors=_comp("motors", size="1404"),
        )
        assert category_status(slots, "frame") == "error"
        assert category_status(slots, "motors") == "warning"

    def test_info_only_is_ok(self):
        slots = _slots(
            battery=_comp("battery", connector="XT60"),
            frame=_comp("frame", size="3"),
        )
        assert [a.severity for a in evaluate_alerts(slots)] == [Severity.INFO]
        assert category_status(slots, "battery") == "ok"

    def test_precomputed_alerts(self):
        slots = _slots(frame=_comp("frame", size="5"), propellers=_comp("propellers", size="3"))
        assert category_status(slots, "propellers", alerts=[]) == "ok"


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

class TestCompatibilityReport:
    def test_empty_report_passes(self):
        report = CompatibilityReport(build_name="x", score=100)
        assert report.passed
        assert report.errors == []

    def test_check_build_failed(self):
        slots = _slots(battery=_comp("battery", voltage="6S"), esc=_comp("esc", voltage="4-5S"))
        report = check_build("My Quad", slots)
        assert not report.passed
        assert report.score == 0
        assert len(report.errors) == 1
        summary = report.summary()
        assert "My Quad" in summary
        assert "FAILED" in summary
        assert "Compatibility score: " in summary
        assert "ERRORS:" in summary
        assert "battery-esc-voltage" in summary

    def test_warnings_do_not_fail(self):
        slots = _slots(battery=_comp("battery", voltage="6S"), motors=_comp("motors", voltage="3-4S"))
        report = check_build("Warn", slots)
        assert report.passed
        assert len(report.warnings) == 1
        assert "PASSED" in report.summary()

    def test_infos(self):
        slots = _slots(battery=_comp("battery", connector="XT60"), frame=_comp("frame", size="3"))
        report = check_build("Info", slots)
        assert len(report.infos) == 1
        assert "INFO:" in report.summary()
