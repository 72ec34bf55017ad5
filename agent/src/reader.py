"""
Battery reader for the power_supply sysfs node.

Reads the fixed set of battery attribute files (capacity, status, temp,
charge_type, health, current_now) from the configured battery directory and
builds an immutable BatteryRecord.  Designed to be robust:

- Each attribute read is retried a bounded number of times with a fixed delay.
- A missing, empty or unreadable attribute never fails the whole record; a
  per-field default is substituted and a single warning is logged.
- Temperature is converted from deci-Celsius only when the raw value is
  numeric.

CHANGELOG:
- 2026-10-19: Default empty attribute files like missing ones (STORY-014)
- 2026-10-19: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

import logging
import math
from pathlib import Path

from agent.src.models import (
    NOT_AVAILABLE,
    BatteryHealth,
    BatteryRecord,
    BatteryStatus,
    ChargeType,
)
from agent.src.retry import TransientError, with_retry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_BATTERY_PATH = "/sys/class/power_supply/battery"
"""Standard sysfs node of the main battery on Android/Linux handsets."""

ATTRIBUTES: dict[str, str] = {
    "percentage": "capacity",
    "status": "status",
    "temperature": "temp",
    "charge_type": "charge_type",
    "health": "health",
    "current": "current_now",
}
"""Maps BatteryRecord concept -> sysfs attribute file name."""


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def _parse_number(raw: str) -> float | None:
    """Return *raw* as a finite float, or ``None`` if it is not numeric."""
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def convert_temperature(raw: str) -> float | str:
    """Convert a deci-Celsius sysfs value to Celsius with one decimal.

    Non-numeric input is returned unchanged.
    """
    value = _parse_number(raw)
    if value is None:
        return raw
    return round(value / 10, 1)


def parse_percentage(raw: str | None) -> int | None:
    """Parse the ``capacity`` attribute into an integer percentage."""
    if raw is None:
        return None
    value = _parse_number(raw)
    if value is None:
        return None
    return int(value)


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


class BatteryReader:
    """Reads battery attributes from a sysfs directory.

    Args:
        battery_path: Directory holding the attribute files.
        max_attempts: Attempts per attribute read.
        retry_delay_s: Fixed delay between attempts.
    """

    def __init__(
        self,
        *,
        battery_path: str | Path = DEFAULT_BATTERY_PATH,
        max_attempts: int = 3,
        retry_delay_s: float = 5.0,
    ) -> None:
        self._battery_path = Path(battery_path)
        self._max_attempts = max_attempts
        self._retry_delay_s = retry_delay_s

    @property
    def battery_path(self) -> Path:
        return self._battery_path

    async def read_attribute(self, name: str) -> str | None:
        """Read and trim one attribute file.

        Args:
            name: Attribute file name, e.g. ``"capacity"``.

        Returns:
            The trimmed file content, or ``None`` if every attempt failed.
        """
        path = self._battery_path / name

        async def _read_once() -> str:
            try:
                return path.read_text(encoding="utf-8").strip()
            except (OSError, UnicodeDecodeError) as exc:
                raise TransientError(f"Unable to read {name} from {path}: {exc}") from exc

        return await with_retry(
            _read_once,
            description=f"Reading battery attribute {name}",
            attempts=self._max_attempts,
            delay_s=self._retry_delay_s,
        )

    async def get_battery_status(self) -> BatteryRecord:
        """Read all battery attributes and build a BatteryRecord.

        Missing or empty attributes fall back to defaults: percentage becomes
        unknown, temperature becomes 0, and the remaining fields become ``"N/A"``.
        """
        raw: dict[str, str | None] = {}
        for key, attribute in ATTRIBUTES.items():
            # An empty file carries no value; default it like a missing one.
            raw[key] = await self.read_attribute(attribute) or None

        missing = [ATTRIBUTES[key] for key, value in raw.items() if value is None]
        if missing:
            logger.warning(
                "Some battery information is missing, using defaults for: %s",
                ", ".join(missing),
            )

        temperature = raw["temperature"]
        return BatteryRecord(
            percentage=parse_percentage(raw["percentage"]),
            status=BatteryStatus.from_raw(raw["status"] or NOT_AVAILABLE),
            temperature_c=convert_temperature(temperature) if temperature is not None else 0.0,
            charge_type=ChargeType.from_raw(raw["charge_type"] or NOT_AVAILABLE),
            health=BatteryHealth.from_raw(raw["health"] or NOT_AVAILABLE),
            current_ua=raw["current"] or NOT_AVAILABLE,
        )
