"""
Pydantic models for battery readings and Telegram Bot API updates.

Defines the closed enums for the coded sysfs attributes (status, charge type,
health), the immutable BatteryRecord built on every poll, and the subset of
the Bot API Update object the monitor consumes.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict

NOT_AVAILABLE = "N/A"
"""Placeholder stored for a sysfs attribute that could not be read."""


# ---------------------------------------------------------------------------
# Coded battery attributes
# ---------------------------------------------------------------------------


class _CodedAttribute(str, Enum):
    """Base for enums parsed from a raw sysfs value.

    Unlisted raw values parse to the ``UNKNOWN`` member instead of raising.
    """

    @classmethod
    def from_raw(cls, raw: str | None) -> Self:
        """Parse a raw sysfs string, falling back to ``UNKNOWN``."""
        if raw is None:
            return cls["UNKNOWN"]
        try:
            return cls(raw)
        except ValueError:
            return cls["UNKNOWN"]


class BatteryStatus(_CodedAttribute):
    """Values of ``/sys/class/power_supply/<psy>/status``."""

    CHARGING = "Charging"
    DISCHARGING = "Discharging"
    FULL = "Full"
    NOT_CHARGING = "Not charging"
    UNKNOWN = "Unknown"


class ChargeType(_CodedAttribute):
    """Values of ``charge_type`` used as a proxy for the power source.

    ``NOT_CONNECTED`` is the ``N/A`` placeholder stored when the attribute is
    missing; any other unlisted driver value (Trickle, Standard, ...) is
    ``UNKNOWN``.
    """

    AC = "AC"
    USB = "USB"
    WIRELESS = "Wireless"
    FAST = "Fast"
    NOT_CONNECTED = NOT_AVAILABLE
    UNKNOWN = "Unknown"


class BatteryHealth(_CodedAttribute):
    """Values of ``/sys/class/power_supply/<psy>/health``."""

    GOOD = "Good"
    OVERHEAT = "Overheat"
    DEAD = "Dead"
    UNSPECIFIED = "Unspecified"
    UNKNOWN = "Unknown"


# ---------------------------------------------------------------------------
# Battery record
# ---------------------------------------------------------------------------


class BatteryRecord(BaseModel):
    """A single battery snapshot read from sysfs.

    Built fresh on every poll and never mutated afterwards.

    Attributes:
        percentage: Charge level 0-100, or ``None`` when unknown.
        status: Charging state reported by the driver.
        temperature_c: Temperature in Celsius (raw deci-Celsius / 10), or the
            raw text when the driver returned something non-numeric.
        charge_type: Power source derived from ``charge_type``.
        health: Battery health reported by the driver.
        current_ua: Raw ``current_now`` text in microamps, or ``"N/A"``.
    """

    model_config = ConfigDict(frozen=True)

    percentage: int | None
    status: BatteryStatus
    temperature_c: float | str
    charge_type: ChargeType
    health: BatteryHealth
    current_ua: str


# ---------------------------------------------------------------------------
# Telegram updates
# ---------------------------------------------------------------------------


class CallbackQuery(BaseModel):
    """Inline keyboard button press (Bot API ``CallbackQuery`` subset)."""

    id: str
    data: str | None = None


class Update(BaseModel):
    """Incoming Bot API update (only the fields the monitor needs)."""

    update_id: int
    callback_query: CallbackQuery | None = None
