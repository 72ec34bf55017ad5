"""
Battery agent main loop.

Runs a single asyncio loop of control:
1. **Startup**: send one battery report immediately (plus critical check).
2. **Steady poll**: every iteration, poll Telegram for refresh button presses
   (at most once per UPDATES_POLL_INTERVAL_S) and send the scheduled report
   when the configured minute of a new hour is reached, then sleep
   LOOP_SLEEP_MS.
3. **Error backoff**: an exception escaping an iteration is logged and the
   loop sleeps ERROR_SLEEP_S before resuming the steady poll.

Graceful shutdown on SIGTERM/SIGINT sets a shared asyncio.Event, letting the
loop finish its current iteration and exit.  A failure before the loop starts
(invalid configuration, unexpected error) exits with status 1.

Structured JSON logging is written to stderr and appended to LOG_FILE.

CHANGELOG:
- 2026-10-19: Mirror JSON log lines into an append-only log file (STORY-012)
- 2026-10-19: Initial creation (STORY-008)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import json
import logging
import signal
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from agent.src.health import HealthWriter

if TYPE_CHECKING:
    from agent.src.monitor import BatteryMonitor

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


class _JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def configure_logging(log_file: str | None = None) -> None:
    """Configure structured JSON logging for the battery agent.

    Sets up the root logger with a JSON-formatted handler writing to stderr
    and, when *log_file* is given, an append-mode file handler using the same
    format.  If the log file cannot be opened, logging continues on stderr.

    Args:
        log_file: Path of the append-only log file, or None/empty to skip.
    """
    formatter = _JsonFormatter()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.INFO)

    if not log_file:
        return
    try:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    except OSError as exc:
        logger.error("Cannot write to log file %s: %s", log_file, exc)
        return
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)


def _masked_token(value: str | None) -> str:
    """Return a short non-reversible token fingerprint for diagnostics."""
    if not value:
        return "empty"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"len={len(value)} sha256={digest}"


# ---------------------------------------------------------------------------
# Startup config logging
# ---------------------------------------------------------------------------


def log_config_summary(settings: object) -> None:
    """Log a config summary at startup, excluding secrets.

    The bot token is replaced by a length + hash fingerprint.

    Args:
        settings: An AgentSettings instance (or any object with the same attrs).
    """
    logger.info(
        "Battery agent starting with config: "
        "battery_path=%s, chat_id=%s, api_base_url=%s, report_minute=%s, "
        "updates_poll_interval_s=%s, updates_timeout_s=%s, "
        "hourly_check_interval_s=%s, loop_sleep_ms=%s, "
        "max_retry_attempts=%s, retry_delay_s=%s, error_sleep_s=%s, "
        "critical_battery_threshold=%s, log_file=%s, health_path=%s, "
        "bot_token_masked=%s",
        settings.battery_path,  # type: ignore[attr-defined]
        settings.telegram_chat_id,  # type: ignore[attr-defined]
        settings.telegram_api_base_url,  # type: ignore[attr-defined]
        settings.report_minute,  # type: ignore[attr-defined]
        settings.updates_poll_interval_s,  # type: ignore[attr-defined]
        settings.updates_timeout_s,  # type: ignore[attr-defined]
        settings.hourly_check_interval_s,  # type: ignore[attr-defined]
        settings.loop_sleep_ms,  # type: ignore[attr-defined]
        settings.max_retry_attempts,  # type: ignore[attr-defined]
        settings.retry_delay_s,  # type: ignore[attr-defined]
        settings.error_sleep_s,  # type: ignore[attr-defined]
        settings.critical_battery_threshold,  # type: ignore[attr-defined]
        settings.log_file,  # type: ignore[attr-defined]
        settings.health_path,  # type: ignore[attr-defined]
        _masked_token(settings.telegram_bot_token),  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Loop runner
# ---------------------------------------------------------------------------


async def _sleep_or_shutdown(shutdown_event: asyncio.Event, seconds: float) -> None:
    """Sleep up to *seconds*, returning early if shutdown is requested."""
    with contextlib.suppress(TimeoutError):
        await asyncio.wait_for(shutdown_event.wait(), timeout=seconds)


async def run_loop(
    *,
    monitor: BatteryMonitor,
    loop_sleep_s: float,
    error_sleep_s: float,
    shutdown_event: asyncio.Event,
) -> None:
    """Run startup once, then steady-state iterations until shutdown.

    Args:
        monitor: The battery monitor.
        loop_sleep_s: Seconds between steady-state iterations.
        error_sleep_s: Cooldown after an iteration raised.
        shutdown_event: Event to signal graceful shutdown.
    """
    logger.info("Battery monitoring started")
    await monitor.startup()

    while not shutdown_event.is_set():
        try:
            await monitor.step()
        except Exception:
            logger.error("Error in main loop, cooling down %.0fs", error_sleep_s, exc_info=True)
            await _sleep_or_shutdown(shutdown_event, error_sleep_s)
            continue
        await _sleep_or_shutdown(shutdown_event, loop_sleep_s)

    logger.info("Shutdown complete")


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> None:
    """Async entrypoint: load config, build components, run the loop.

    Sets up SIGTERM/SIGINT handlers to trigger graceful shutdown.
    """
    from agent.src.config import AgentSettings
    from agent.src.monitor import BatteryMonitor
    from agent.src.reader import BatteryReader
    from agent.src.telegram import TelegramClient

    settings = AgentSettings()
    configure_logging(settings.log_file)
    log_config_summary(settings)

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: _handle_signal(shutdown_event),
        )

    reader = BatteryReader(
        battery_path=settings.battery_path,
        max_attempts=settings.max_retry_attempts,
        retry_delay_s=settings.retry_delay_s,
    )

    telegram = TelegramClient(
        bot_token=settings.telegram_bot_token,
        chat_id=settings.telegram_chat_id,
        api_base_url=settings.telegram_api_base_url,
        max_attempts=settings.max_retry_attempts,
        retry_delay_s=settings.retry_delay_s,
        connect_timeout_s=settings.connect_timeout_s,
        request_timeout_s=settings.request_timeout_s,
        updates_timeout_s=settings.updates_timeout_s,
    )

    health = HealthWriter(settings.health_path) if settings.health_path else None

    monitor = BatteryMonitor(
        reader=reader,
        telegram=telegram,
        report_minute=settings.report_minute,
        critical_threshold=settings.critical_battery_threshold,
        updates_poll_interval_s=settings.updates_poll_interval_s,
        hourly_check_interval_s=settings.hourly_check_interval_s,
        health=health,
    )

    await run_loop(
        monitor=monitor,
        loop_sleep_s=settings.loop_sleep_ms / 1000.0,
        error_sleep_s=settings.error_sleep_s,
        shutdown_event=shutdown_event,
    )


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event.

    Args:
        shutdown_event: The event to set for graceful shutdown.
    """
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def main() -> None:
    """Synchronous entrypoint for the battery agent.

    Exits with status 1 if anything escapes the async entrypoint.
    """
    try:
        asyncio.run(async_main())
    except Exception:
        if not logging.getLogger().handlers:
            configure_logging()
        logger.critical("Critical error, battery agent exiting", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
