"""Pairwise compatibility rules for FPV quadcopter components.

Each rule names two slots and a check.  ``check(a, b)`` receives the
components in those slots, in that order, and returns a message when the
pair is incompatible or None when it is fine.  A check whose spec fields
are missing on either side returns None (not applicable); checks never
raise.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from core.models import CompatibilityRule, Component, Severity


# ---------------------------------------------------------------------------
# Spec parsing helpers
# ---------------------------------------------------------------------------

_VOLTAGE_RANGE_RE = re.compile(r"(\d+)-?(\d+)?S")
_S_COUNT_RE = re.compile(r"(\d+)S")
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


def parse_voltage(value: Any) -> Optional[tuple[int, int]]:
    """Parse voltage strings like '4-6S' or '6S' into (min_cells, max_cells)."""
    if not value:
        return None
    m = _VOLTAGE_RANGE_RE.search(str(value))
    if not m:
        return None
    lo = int(m.group(1))
    hi = int(m.group(2)) if m.group(2) else lo
    return lo, hi


def parse_s_count(value: Any) -> Optional[int]:
    """Parse a battery cell count like '6S' -> 6."""
    if not value:
        return None
    m = _S_COUNT_RE.search(str(value))
    return int(m.group(1)) if m else None


def voltage_overlap(a: Optional[tuple[int, int]], b: Optional[tuple[int, int]]) -> bool:
    """True if two inclusive cell-count ranges overlap (unknown counts as overlap)."""
    if not a or not b:
        return True
    return a[1] >= b[0] and b[1] >= a[0]


def leading_int(value: Any) -> Optional[int]:
    """Integer prefix of a value ('2207' -> 2207, '2306.5' -> 2306), else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    m = _LEADING_INT_RE.match(str(value))
    return int(m.group(1)) if m else None


def to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def as_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def _mismatch(a: Component, b: Component, key: str) -> Optional[tuple[str, str]]:
    """Return both values when both sides carry *key* and they differ."""
    va, vb = a.spec(key), b.spec(key)
    if va is None or vb is None:
        return None
    if str(va) == str(vb):
        return None
    return str(va), str(vb)


def _cells_outside(battery: Component, other: Component) -> bool:
    cells = parse_s_count(battery.spec("voltage"))
    supported = parse_voltage(other.spec("voltage"))
    if not cells or not supported:
        return False
    return cells < supported[0] or cells > supported[1]


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

def _frame_prop_size(frame: Component, prop: Component) -> Optional[str]:
    diff = _mismatch(frame, prop, "size")
    if diff:
        f, p = diff
        return (
            f'Frame is {f}" but props are {p}". They must match: '
            f'a {f}" frame needs {f}" propellers.'
        )
    return None


def _motor_prop_shaft(motor: Component, prop: Component) -> Optional[str]:
    diff = _mismatch(motor, prop, "shaftSize")
    if diff:
        return f"Motor has {diff[0]} shaft but props need {diff[1]} shaft. Props won't mount on motors."
    return None


# Typical stator ranges per frame size.
_STATOR_RANGES: dict[str, tuple[int, int, str]] = {
    "3": (1103, 1507, "1103-1507"),
    "5": (2205, 2407, "2205-2407"),
    "7": (2505, 2908, "2505-2908"),
}


def _motor_frame_size(motor: Component, frame: Component) -> Optional[str]:
    motor_size, frame_size = motor.spec("size"), frame.spec("size")
    if motor_size is None or frame_size is None:
        return None
    stator = leading_int(motor_size)
    limits = _STATOR_RANGES.get(str(frame_size))
    if stator is None or limits is None:
        return None
    lo, hi, label = limits
    if stator < lo or stator > hi:
        return (
            f'Motor {motor_size} is unusual for a {frame_size}" frame. '
            f'Typical motors for {frame_size}" are {label} stator size.'
        )
    return None


def _fc_frame_mount(fc: Component, frame: Component) -> Optional[str]:
    diff = _mismatch(fc, frame, "mountPattern")
    if diff:
        return (
            f"FC mount is {diff[0]}mm but frame takes {diff[1]}mm. "
            f"FC won't fit in the frame without an adapter."
        )
    return None


def _esc_frame_mount(esc: Component, frame: Component) -> Optional[str]:
    diff = _mismatch(esc, frame, "mountPattern")
    if diff:
        return f"ESC mount is {diff[0]}mm but frame takes {diff[1]}mm. ESC won't fit in the frame stack."
    return None


def _battery_esc_voltage(battery: Component, esc: Component) -> Optional[str]:
    if _cells_outside(battery, esc):
        return (
            f"Battery is {battery.spec('voltage')} but ESC supports {esc.spec('voltage')}. "
            f"This will damage the ESC!"
        )
    return None


def _battery_fc_voltage(battery: Component, fc: Component) -> Optional[str]:
    if _cells_outside(battery, fc):
        return (
            f"Battery is {battery.spec('voltage')} but FC supports {fc.spec('voltage')}. "
            f"Voltage mismatch, risk of damage!"
        )
    return None


def _battery_motor_voltage(battery: Component, motor: Component) -> Optional[str]:
    if _cells_outside(battery, motor):
        return (
            f"Battery is {battery.spec('voltage')} but motors are rated for {motor.spec('voltage')}. "
            f"Motors may not perform correctly."
        )
    return None


def _vtx_camera_system(vtx: Component, camera: Component) -> Optional[str]:
    diff = _mismatch(vtx, camera, "system")
    if diff:
        v, c = diff
        return (
            f"VTX is {v} but camera is {c}. They must use the same video system: "
            f"a {v} VTX needs a {v} camera."
        )
    return None


def _vtx_goggles_system(vtx: Component, goggles: Component) -> Optional[str]:
    diff = _mismatch(vtx, goggles, "system")
    if diff:
        return f"VTX is {diff[0]} but goggles are {diff[1]}. You won't get video! VTX and goggles must match."
    return None


def _camera_goggles_system(camera: Component, goggles: Component) -> Optional[str]:
    diff = _mismatch(camera, goggles, "system")
    if diff:
        return (
            f"Camera is {diff[0]} but goggles are {diff[1]}. The entire video chain "
            f"(Camera -> VTX -> Goggles) must use the same system."
        )
    return None


def _rx_tx_protocol(rx: Component, tx: Component) -> Optional[str]:
    diff = _mismatch(rx, tx, "protocol")
    if diff:
        return (
            f"Receiver is {diff[0]} but transmitter is {diff[1]}. They can't communicate; "
            f"both must use the same protocol (e.g., both ELRS or both Crossfire)."
        )
    return None


def _esc_fc_protocol(esc: Component, fc: Component) -> Optional[str]:
    esc_raw, fc_raw = esc.spec("protocol"), fc.spec("protocol")
    if esc_raw is None or fc_raw is None:
        return None
    esc_protocols, fc_protocols = as_list(esc_raw), as_list(fc_raw)
    if set(esc_protocols) & set(fc_protocols):
        return None
    return (
        f"ESC supports {'/'.join(esc_protocols)} but FC supports {'/'.join(fc_protocols)}. "
        f"No shared motor protocol, ESC may not respond to FC commands."
    )


def _esc_fc_mount(esc: Component, fc: Component) -> Optional[str]:
    diff = _mismatch(esc, fc, "mountPattern")
    if diff:
        return f"ESC mount is {diff[0]}mm but FC is {diff[1]}mm. They won't stack together neatly."
    return None


def _battery_frame_size(battery: Component, frame: Component) -> Optional[str]:
    frame_size = frame.spec("size")
    connector = battery.spec("connector")
    frame_size = str(frame_size) if frame_size is not None else None
    if frame_size == "3" and connector == "XT60":
        return (
            'XT60 batteries are quite large for a 3" build. '
            "Consider an XT30 connector battery for better fit and less weight."
        )
    if frame_size in ("5", "7") and connector == "XT30":
        return (
            f'XT30 batteries are typically underpowered for {frame_size}" builds. '
            f'Most {frame_size}" quads use XT60 connector batteries.'
        )
    return None


def _motor_esc_current(motor: Component, esc: Component) -> Optional[str]:
    size = motor.spec("size")
    esc_amps = to_number(esc.spec("current"))
    if size is None or esc_amps is None:
        return None
    stator = leading_int(size)
    if stator is not None and stator >= 2205 and esc_amps < 30:
        return (
            f"Motors ({size}) are full-size but ESC is only {esc.spec('current')}A per motor. "
            f"Consider 35A+ for safety margin."
        )
    return None


def _fc_esc_aio(fc: Component, esc: Component) -> Optional[str]:
    # aioVirtual marks the ESC half of an AIO board placed in the ESC slot.
    if fc.spec("aio") and not esc.spec("aioVirtual"):
        return "Your AIO FC already includes an ESC. The standalone ESC is redundant unless you need higher current."
    return None


_SMA_FAMILY = frozenset({"SMA", "RP-SMA"})


def _vtx_antenna_connector(vtx: Component, antenna: Component) -> Optional[str]:
    vtx_conn, ant_conn = vtx.spec("connector"), antenna.spec("connector")
    if vtx_conn is None or ant_conn is None:
        return None
    vtx_conn, ant_conn = str(vtx_conn), str(ant_conn)
    if vtx_conn == ant_conn:
        return None
    if vtx_conn in _SMA_FAMILY and ant_conn in _SMA_FAMILY:
        return (
            f"VTX has {vtx_conn} but VTX antenna is {ant_conn}. You'll need a simple "
            f"SMA/RP-SMA adapter, cheap and with minimal signal loss."
        )
    return (
        f"VTX has {vtx_conn} but VTX antenna is {ant_conn}. You'll need a {vtx_conn} to {ant_conn} "
        f"adapter pigtail, which adds weight and signal loss."
    )


def _frequency_bands(value: Any) -> set[str]:
    """Split dual-band notation ('868/915MHz') and strip whitespace."""
    return {re.sub(r"\s", "", part) for part in str(value).split("/")}


def _rx_antenna_frequency(rx: Component, antenna: Component) -> Optional[str]:
    rx_freq, ant_freq = rx.spec("frequency"), antenna.spec("frequency")
    if rx_freq is None or ant_freq is None:
        return None
    if _frequency_bands(rx_freq) & _frequency_bands(ant_freq):
        return None
    return (
        f"Receiver operates on {rx_freq} but RX antenna is {ant_freq}. "
        f"The antenna must match the receiver's frequency band."
    )


# ---------------------------------------------------------------------------
# Rule table (evaluation order is table order)
# ---------------------------------------------------------------------------

RULES: tuple[CompatibilityRule, ...] = (
    CompatibilityRule(
        id="frame-prop-size",
        name="Frame ↔ Prop Size",
        description='Frame size must match propeller size. A 5" frame fits 5" props, 3" frame fits 3" props, etc.',
        categories=("frame", "propellers"),
        severity=Severity.ERROR,
        check=_frame_prop_size,
        explanation=(
            "Propellers must physically fit within the frame arms. Frame sizes "
            '(3", 5", 7") define the maximum propeller diameter.'
        ),
    ),
    CompatibilityRule(
        id="motor-prop-shaft",
        name="Motor ↔ Prop Shaft",
        description='Motor shaft diameter must match prop mounting hole. Most 5" use M5 shafts, 3" use M2 or T-mount.',
        categories=("motors", "propellers"),
        severity=Severity.ERROR,
        check=_motor_prop_shaft,
        explanation=(
            "The propeller center hole must match the motor shaft. M5 (5mm) is standard "
            'for 5"+ quads, M2 (2mm) for tiny whoops and 3" builds.'
        ),
    ),
    CompatibilityRule(
        id="motor-frame-size",
        name="Motor ↔ Frame Size",
        description=(
            'Motor stator size should match frame size class. 5" frames typically use '
            '2205-2307 motors, 3" use 1303-1507, 7" use 2806+.'
        ),
        categories=("motors", "frame"),
        severity=Severity.WARNING,
        check=_motor_frame_size,
        explanation=(
            "Larger frames carry heavier loads and need larger motors for enough thrust. "
            "Using the wrong motor size causes poor performance or even danger."
        ),
    ),
    CompatibilityRule(
        id="fc-frame-mount",
        name="FC ↔ Frame Mount Pattern",
        description=(
            "Flight controller mounting holes must match the frame. Standard sizes: "
            '30.5x30.5mm (5"+) or 25.5x25.5mm (3"/mini).'
        ),
        categories=("fc", "frame"),
        severity=Severity.ERROR,
        check=_fc_frame_mount,
        explanation=(
            "Flight controllers mount to the frame via standard hole patterns. The two common "
            'sizes are 30.5x30.5mm (full-size, 5"+) and 25.5x25.5mm (mini, 3").'
        ),
    ),
    CompatibilityRule(
        id="esc-frame-mount",
        name="ESC ↔ Frame Mount Pattern",
        description="ESC mounting holes must match the frame stack. Typically same as FC mount pattern.",
        categories=("esc", "frame"),
        severity=Severity.ERROR,
        check=_esc_frame_mount,
        explanation="ESCs stack under/over the flight controller using the same mounting pattern as the frame.",
    ),
    CompatibilityRule(
        id="battery-esc-voltage",
        name="Battery ↔ ESC Voltage",
        description="Battery cell count must be within the ESC voltage rating. Exceeding it can destroy the ESC.",
        categories=("battery", "esc"),
        severity=Severity.ERROR,
        check=_battery_esc_voltage,
        explanation=(
            "LiPo batteries are rated in cell count (S). Each cell is ~3.7V. If you use a battery "
            "with more cells than the ESC supports, you'll fry the ESC."
        ),
    ),
    CompatibilityRule(
        id="battery-fc-voltage",
        name="Battery ↔ FC Voltage",
        description="Battery cell count must be within the FC voltage rating. Too many cells can fry the FC.",
        categories=("battery", "fc"),
        severity=Severity.ERROR,
        check=_battery_fc_voltage,
        explanation="Same as ESC: the flight controller has a maximum voltage. Exceeding it destroys the FC.",
    ),
    CompatibilityRule(
        id="battery-motor-voltage",
        name="Battery ↔ Motor Voltage",
        description=(
            "Battery cell count should be within motor voltage rating. Running motors outside "
            "rated voltage affects performance and lifespan."
        ),
        categories=("battery", "motors"),
        severity=Severity.WARNING,
        check=_battery_motor_voltage,
        explanation=(
            "Motors have a recommended voltage range. Too low = not enough power. "
            "Too high = overheating and reduced lifespan."
        ),
    ),
    CompatibilityRule(
        id="vtx-camera-system",
        name="VTX ↔ Camera System",
        description=(
            "VTX and camera must use the same video system (Analog, DJI, HDZero, or Walksnail). "
            "They are not cross-compatible."
        ),
        categories=("vtx", "camera"),
        severity=Severity.ERROR,
        check=_vtx_camera_system,
        explanation=(
            "FPV video systems (Analog, DJI, HDZero, Walksnail) are closed ecosystems. "
            "The camera, VTX and goggles MUST all be the same system."
        ),
    ),
    CompatibilityRule(
        id="vtx-goggles-system",
        name="VTX ↔ Goggles System",
        description=(
            "VTX and goggles must use the same video system. DJI VTX -> DJI Goggles, "
            "Analog VTX -> Analog Goggles, etc."
        ),
        categories=("vtx", "goggles"),
        severity=Severity.ERROR,
        check=_vtx_goggles_system,
        explanation=(
            "Your goggles receive the video signal from the VTX. "
            "Different systems use incompatible transmission methods."
        ),
    ),
    CompatibilityRule(
        id="camera-goggles-system",
        name="Camera ↔ Goggles System",
        description="Camera and goggles must use the same video system for the whole video chain to work.",
        categories=("camera", "goggles"),
        severity=Severity.ERROR,
        check=_camera_goggles_system,
        explanation="The camera feeds into the VTX which transmits to goggles. All three must match.",
    ),
    CompatibilityRule(
        id="rx-tx-protocol",
        name="RX ↔ TX Protocol",
        description=(
            "Receiver and transmitter must use the same radio protocol (ELRS, Crossfire, FrSky, FlySky). "
            "They cannot communicate otherwise."
        ),
        categories=("rx", "tx"),
        severity=Severity.ERROR,
        check=_rx_tx_protocol,
        explanation=(
            "Your transmitter (controller) talks to the receiver on the quad via a specific radio "
            "protocol. Both must use the same protocol (ELRS, Crossfire, FrSky, etc.)."
        ),
    ),
    CompatibilityRule(
        id="esc-fc-protocol",
        name="ESC ↔ FC Protocol",
        description="ESC and FC must share at least one compatible motor protocol (DShot600, DShot300, etc.).",
        categories=("esc", "fc"),
        severity=Severity.WARNING,
        check=_esc_fc_protocol,
        explanation=(
            "The FC tells the ESC how fast to spin each motor using a digital protocol like DShot. "
            "Both must support at least one common protocol."
        ),
    ),
    CompatibilityRule(
        id="esc-fc-mount",
        name="ESC ↔ FC Stack Mount",
        description="ESC and FC should have the same mount pattern so they stack together cleanly.",
        categories=("esc", "fc"),
        severity=Severity.WARNING,
        check=_esc_fc_mount,
        explanation="The ESC and FC are typically stacked together. Matching mount patterns make assembly much easier.",
    ),
    CompatibilityRule(
        id="battery-frame-size",
        name="Battery ↔ Frame Size",
        description=(
            'Small batteries (XT30/3-4S low capacity) suit 3" builds; '
            'larger batteries (XT60/5-6S) suit 5"+ builds.'
        ),
        categories=("battery", "frame"),
        severity=Severity.INFO,
        check=_battery_frame_size,
        explanation=(
            "Small frames need small, light batteries. "
            "Large frames need powerful batteries for adequate flight time."
        ),
    ),
    CompatibilityRule(
        id="motor-esc-current",
        name="Motor ↔ ESC Current",
        description=(
            "ESC per-motor current rating should handle the motors. "
            "Rule of thumb: ESC should handle more than the motor peak draw."
        ),
        categories=("motors", "esc"),
        severity=Severity.INFO,
        check=_motor_esc_current,
        explanation=(
            "The ESC current rating must exceed the motor's peak current draw. "
            "Underpowered ESCs can overheat and fail mid-flight."
        ),
    ),
    CompatibilityRule(
        id="fc-esc-aio",
        name="AIO FC ↔ Standalone ESC",
        description="AIO flight controllers include an integrated ESC. Adding a standalone ESC is usually redundant.",
        categories=("fc", "esc"),
        severity=Severity.WARNING,
        check=_fc_esc_aio,
        explanation=(
            "AIO (All-in-One) flight controllers have the ESC built onto the same board. "
            "Adding a separate standalone ESC is redundant unless you specifically need higher "
            "current capacity than the integrated one provides."
        ),
    ),
    CompatibilityRule(
        id="vtx-vtxAntenna-connector",
        name="VTX ↔ VTX Antenna Connector",
        description=(
            "VTX and VTX antenna RF connectors must match (SMA, MMCX, UFL, RP-SMA). "
            "Mismatched connectors need adapters that add weight and signal loss."
        ),
        categories=("vtx", "vtxAntenna"),
        severity=Severity.WARNING,
        check=_vtx_antenna_connector,
        explanation=(
            "VTX and its antenna connect via an RF connector. Common types are SMA, RP-SMA, MMCX "
            "and UFL. Mismatched connectors require adapter pigtails that add weight, bulk and "
            "signal loss. SMA/RP-SMA adapters are simple screw-on and cause minimal loss."
        ),
    ),
    CompatibilityRule(
        id="rx-rxAntenna-frequency",
        name="RX ↔ RX Antenna Frequency",
        description=(
            "Receiver and RX antenna must operate on the same frequency band (2.4GHz, 900MHz, 868MHz). "
            "Mismatched frequencies mean no signal."
        ),
        categories=("rx", "rxAntenna"),
        severity=Severity.ERROR,
        check=_rx_antenna_frequency,
        explanation=(
            "The receiver antenna must operate on the same frequency band as the receiver. "
            "ELRS 2.4GHz receivers need a 2.4GHz antenna, 900MHz receivers need a 900MHz antenna. "
            "Using the wrong frequency band means no signal reception."
        ),
    ),
)

RULES_BY_ID: dict[str, CompatibilityRule] = {rule.id: rule for rule in RULES}
