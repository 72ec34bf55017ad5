"""
Pure formatter that renders a BatteryRecord as a Telegram status report.

Coded attributes are translated through one mapping per enum.  The mappings
are checked for exhaustiveness at import time, so adding an enum member
without a display phrase fails fast instead of rendering a silent fallback.

This module is pure: no side effects, no I/O, no clock.

CHANGELOG:
- 2026-10-19: Add critical alert template (STORY-006)
- 2026-10-19: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

from enum import Enum

from agent.src.models import BatteryHealth, BatteryRecord, BatteryStatus, ChargeType

UNKNOWN_PHRASE = "Unknown"

# ---------------------------------------------------------------------------
# Display mappings
# ---------------------------------------------------------------------------

CHARGE_TYPE_PHRASES: dict[ChargeType, str] = {
    ChargeType.AC: "Connected to charger",
    ChargeType.USB: "Connected via USB",
    ChargeType.WIRELESS: "Wireless charging",
    ChargeType.FAST: "Fast charging",
    ChargeType.NOT_CONNECTED: "Not connected",
    ChargeType.UNKNOWN: UNKNOWN_PHRASE,
}

STATUS_PHRASES: dict[BatteryStatus, str] = {
    BatteryStatus.CHARGING: "Charging",
    BatteryStatus.DISCHARGING: "Discharging",
    BatteryStatus.FULL: "Full",
    BatteryStatus.NOT_CHARGING: "Not charging",
    BatteryStatus.UNKNOWN: UNKNOWN_PHRASE,
}

HEALTH_PHRASES: dict[BatteryHealth, str] = {
    BatteryHealth.GOOD: "Good condition",
    BatteryHealth.OVERHEAT: "Overheating",
    BatteryHealth.DEAD: "Battery dead",
    BatteryHealth.UNSPECIFIED: "Unspecified",
    BatteryHealth.UNKNOWN: UNKNOWN_PHRASE,
}


def _check_exhaustive(enum_cls: type[Enum], mapping: dict) -> None:
    missing = [member.name for member in enum_cls if member not in mapping]
    if missing:
        raise ValueError(f"No display phrase for {enum_cls.__name__} members: {missing}")


_check_exhaustive(ChargeType, CHARGE_TYPE_PHRASES)
_check_exhaustive(BatteryStatus, STATUS_PHRASES)
_check_exhaustive(BatteryHealth, HEALTH_PHRASES)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def format_temperature(value: float | str) -> str:
    """Render a temperature with one decimal; raw text passes through."""
    if isinstance(value, str):
        return value
    rounded = round(float(value), 1)
    # Whole degrees render without a trailing ".0".
    return str(int(rounded)) if rounded.is_integer() else str(rounded)


def format_message(record: BatteryRecord) -> str:
    """Render the multi-line battery status report.

    Field order is fixed: charge level, charging state, status, temperature,
    health, current.
    """
    percentage = UNKNOWN_PHRASE if record.percentage is None else str(record.percentage)
    return (
        "🔋 Battery Status:\n"
        f"• Charge Level: {percentage}%\n"
        f"• Charging State: {CHARGE_TYPE_PHRASES[record.charge_type]}\n"
        f"• Status: {STATUS_PHRASES[record.status]}\n"
        f"• Temperature: {format_temperature(record.temperature_c)}°C\n"
        f"• Health: {HEALTH_PHRASES[record.health]}\n"
        f"• Current: {record.current_ua} µA\n"
    )


def format_critical_alert(percentage: int) -> str:
    """Render the HTML critical battery alert."""
    return (
        "⚠️ <b>Critical Battery Warning</b> ⚠️\n"
        f"Battery level is critically low at {percentage}%.\n"
        "Please connect the charger immediately!"
    )
