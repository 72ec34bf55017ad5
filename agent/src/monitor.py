"""
Battery monitor: report, refresh-callback, and scheduled-report logic.

BatteryMonitor owns the two pieces of loop state:
- last_update_id: highest Telegram update id seen.  Only ever increases, and
  getUpdates is always asked for ``last_update_id + 1`` onwards, so every
  button press is handled at most once.
- last_report_hour: hour of the last scheduled report.  Set once per
  calendar hour, so a report minute polled many times yields one report.

Each public coroutine performs one unit of work and returns; the endless
loop, sleeps, and error cooldown live in main.run_loop().

CHANGELOG:
- 2026-10-19: Skip the health poll stamp when getUpdates failed (STORY-013)
- 2026-10-19: Warn when the critical check is slow (STORY-010)
- 2026-10-19: Initial creation (STORY-008)

TODO:
- None
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from agent.src.formatter import format_critical_alert, format_message
from agent.src.telegram import REFRESH_CALLBACK_DATA

if TYPE_CHECKING:
    from agent.src.health import HealthWriter
    from agent.src.models import BatteryRecord, Update
    from agent.src.reader import BatteryReader
    from agent.src.telegram import TelegramClient

logger = logging.getLogger(__name__)

SLOW_CRITICAL_CHECK_S: float = 5.0
"""Critical checks slower than this are logged as a warning."""

REFRESH_OK_TEXT = "Data refreshed!"
REFRESH_SEND_FAILED_TEXT = "Error sending data!"


class BatteryMonitor:
    """Coordinates the reader and the Telegram client.

    Args:
        reader: Battery sysfs reader.
        telegram: Telegram Bot API client.
        report_minute: Minute of the hour for the scheduled report.
        critical_threshold: Alert when the charge is at or below this level.
        updates_poll_interval_s: Minimum seconds between getUpdates calls.
        hourly_check_interval_s: Minimum seconds between scheduled reports.
        health: HealthWriter instance, or None to skip health writes.
        clock: Wall-clock source (local time), injectable for tests.
        monotonic: Monotonic seconds source, injectable for tests.
    """

    def __init__(
        self,
        *,
        reader: BatteryReader,
        telegram: TelegramClient,
        report_minute: int = 0,
        critical_threshold: int = 15,
        updates_poll_interval_s: float = 1.0,
        hourly_check_interval_s: float = 55.0,
        health: HealthWriter | None = None,
        clock: Callable[[], datetime] = datetime.now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._reader = reader
        self._telegram = telegram
        self._report_minute = report_minute
        self._critical_threshold = critical_threshold
        self._updates_poll_interval_s = updates_poll_interval_s
        self._hourly_check_interval_s = hourly_check_interval_s
        self._health = health
        self._clock = clock
        self._monotonic = monotonic

        self._last_update_id: int = 0
        self._last_report_hour: int | None = None
        self._last_hourly_check: float | None = None
        self._last_updates_poll: float | None = None

    @property
    def last_update_id(self) -> int:
        return self._last_update_id

    @property
    def last_report_hour(self) -> int | None:
        return self._last_report_hour

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def deliver_report(self) -> BatteryRecord | None:
        """Read the battery and send the formatted report.

        Returns:
            The record that was reported, or ``None`` if sending failed.
        """
        record = await self._reader.get_battery_status()
        if not await self._telegram.send_report(format_message(record)):
            return None

        self._record_health_report()
        return record

    async def send_report(self) -> BatteryRecord | None:
        """Deliver a report and, if it went out, run the critical check."""
        record = await self.deliver_report()
        if record is not None:
            await self.check_critical(record)
        return record

    async def check_critical(self, record: BatteryRecord) -> bool:
        """Send a critical alert if the charge is at or below the threshold.

        Returns:
            True if an alert was sent.
        """
        started = self._monotonic()
        sent = False

        if record.percentage is not None and record.percentage <= self._critical_threshold:
            sent = await self._telegram.send_alert(format_critical_alert(record.percentage))
            logger.info("Critical battery level reached: %d%%", record.percentage)

        elapsed = self._monotonic() - started
        if elapsed > SLOW_CRITICAL_CHECK_S:
            logger.warning("Critical battery check took %.1fs", elapsed)
        return sent

    async def startup(self) -> None:
        """Send the initial report once at process start."""
        if await self.send_report() is not None:
            logger.info("Initial battery status sent to Telegram")
        else:
            logger.error("Could not send initial battery status")

    # ------------------------------------------------------------------
    # Refresh callbacks
    # ------------------------------------------------------------------

    async def poll_updates(self) -> int:
        """Fetch and handle pending updates.

        The high-water mark advances to the maximum ``update_id`` observed,
        whether or not the update was a refresh request, and never moves
        backwards even if updates arrive out of order.

        Returns:
            Number of updates received (0 when the call failed).
        """
        self._last_updates_poll = self._monotonic()
        updates = await self._telegram.get_updates(self._last_update_id + 1)
        if updates is None:
            # Unreachable API: leave the health poll timestamp stale.
            return 0

        for update in updates:
            self._last_update_id = max(self._last_update_id, update.update_id)
            await self.handle_update(update)

        self._record_health_poll()
        return len(updates)

    async def handle_update(self, update: Update) -> None:
        """Handle one update; only refresh button presses trigger work."""
        callback = update.callback_query
        if callback is None or callback.data != REFRESH_CALLBACK_DATA:
            logger.debug("Ignoring update %d", update.update_id)
            return

        record = await self.deliver_report()
        if record is not None:
            await self._telegram.answer_callback_query(callback.id, REFRESH_OK_TEXT)
            logger.info("Battery status refreshed and sent to Telegram")
            await self.check_critical(record)
        else:
            await self._telegram.answer_callback_query(callback.id, REFRESH_SEND_FAILED_TEXT)
            logger.error("Failed to send battery status for refresh")

    # ------------------------------------------------------------------
    # Scheduled report
    # ------------------------------------------------------------------

    def hourly_report_due(self, now: datetime) -> bool:
        """True when *now* is the report minute of a not-yet-reported hour."""
        if now.minute != self._report_minute or now.hour == self._last_report_hour:
            return False
        if self._last_hourly_check is None:
            return True
        return self._monotonic() - self._last_hourly_check >= self._hourly_check_interval_s

    async def maybe_send_hourly(self) -> bool:
        """Send the scheduled report if due.

        The hour is recorded even when sending fails, so a failing endpoint
        is not retried for the rest of the report minute.

        Returns:
            True if a scheduled report was attempted.
        """
        now = self._clock()
        if not self.hourly_report_due(now):
            return False

        hour = now.hour
        if await self.send_report() is not None:
            logger.info("Scheduled battery status for hour %d sent successfully", hour)
        else:
            logger.error("Failed to send scheduled battery status for hour %d", hour)

        self._last_report_hour = hour
        self._last_hourly_check = self._monotonic()
        return True

    # ------------------------------------------------------------------
    # Steady-state iteration
    # ------------------------------------------------------------------

    async def step(self) -> None:
        """Run one steady-state iteration (updates poll, then schedule check)."""
        if (
            self._last_updates_poll is None
            or self._monotonic() - self._last_updates_poll >= self._updates_poll_interval_s
        ):
            await self.poll_updates()

        await self.maybe_send_hourly()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _record_health_report(self) -> None:
        if self._health is None:
            return
        try:
            self._health.record_report()
        except Exception:
            logger.warning("Failed to write health file", exc_info=True)

    def _record_health_poll(self) -> None:
        if self._health is None:
            return
        try:
            self._health.record_updates_poll(self._last_update_id)
        except Exception:
            logger.warning("Failed to write health file", exc_info=True)
