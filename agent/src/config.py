"""
Battery agent configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
The settings object is frozen after load and passed explicitly into every
component; nothing reads module-level constants at runtime.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


class AgentSettings(BaseSettings):
    """Battery agent configuration.

    All values are loaded from environment variables (or a ``.env`` file).
    The Telegram token and chat id are required; everything else has a
    default matching the stock deployment on an Android/Linux handset.

    Attributes:
        telegram_bot_token: Bot API token issued by BotFather.
        telegram_chat_id: Destination chat for reports and alerts.
        telegram_api_base_url: Bot API base URL (must be HTTPS).
        battery_path: sysfs directory holding the battery attribute files.
        log_file: Append-only log file path. Empty string disables the
            file handler (stderr logging stays on).
        health_path: JSON health file path. Empty string disables it.
        report_minute: Minute of the hour at which the scheduled report is
            sent (0-59).
        updates_poll_interval_s: Minimum seconds between getUpdates calls.
        updates_timeout_s: Server-side long-poll wait for getUpdates.
        hourly_check_interval_s: Minimum seconds between two scheduled
            report checks, so one report minute yields one report.
        loop_sleep_ms: Sleep between steady-state loop iterations.
        max_retry_attempts: Attempts per sysfs read or Bot API call.
        retry_delay_s: Fixed delay between retry attempts.
        error_sleep_s: Cooldown after an unexpected error in the loop.
        critical_battery_threshold: Charge percentage at or below which a
            critical alert is sent after each report.
        connect_timeout_s: HTTP connect timeout.
        request_timeout_s: Hard overall deadline for one HTTP request.
    """

    telegram_bot_token: str
    telegram_chat_id: str
    telegram_api_base_url: str = "https://api.telegram.org"
    battery_path: str = "/sys/class/power_supply/battery"
    log_file: str = "battery-agent.log"
    health_path: str = ""
    report_minute: int = 0
    updates_poll_interval_s: float = 1.0
    updates_timeout_s: int = 10
    hourly_check_interval_s: float = 55.0
    loop_sleep_ms: int = 200
    max_retry_attempts: int = 3
    retry_delay_s: float = 5.0
    error_sleep_s: float = 30.0
    critical_battery_threshold: int = 15
    connect_timeout_s: float = 10.0
    request_timeout_s: float = 30.0

    @field_validator("telegram_bot_token", "telegram_chat_id")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        """Reject empty or whitespace-only credentials."""
        if not v.strip():
            raise ValueError("TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID must not be empty")
        return v.strip()

    @field_validator("telegram_api_base_url")
    @classmethod
    def api_base_url_must_be_https(cls, v: str) -> str:
        """Validate that the Bot API base URL uses HTTPS.

        The bot token travels in the URL path, so plain HTTP is rejected at
        startup.
        """
        if not v.lower().startswith("https://"):
            raise ValueError(f"TELEGRAM_API_BASE_URL must use HTTPS (got: '{v[:20]}...')")
        return v.rstrip("/")

    @field_validator("report_minute")
    @classmethod
    def report_minute_must_be_valid(cls, v: int) -> int:
        """Validate report minute is a minute of the hour."""
        if v < 0 or v > 59:
            raise ValueError("REPORT_MINUTE must be between 0 and 59")
        return v

    @field_validator("updates_poll_interval_s")
    @classmethod
    def updates_poll_interval_must_be_positive(cls, v: float) -> float:
        """Validate the getUpdates cadence is positive."""
        if v <= 0:
            raise ValueError("UPDATES_POLL_INTERVAL_S must be > 0")
        return v

    @field_validator("updates_timeout_s")
    @classmethod
    def updates_timeout_must_be_valid(cls, v: int) -> int:
        """Validate the long-poll wait (Bot API accepts 0-50 seconds)."""
        if v < 0 or v > 50:
            raise ValueError("UPDATES_TIMEOUT_S must be between 0 and 50")
        return v

    @field_validator("hourly_check_interval_s")
    @classmethod
    def hourly_check_interval_must_be_valid(cls, v: float) -> float:
        """Validate the scheduled-report guard fits inside one hour."""
        if v < 0 or v >= 3600:
            raise ValueError("HOURLY_CHECK_INTERVAL_S must be >= 0 and < 3600")
        return v

    @field_validator("loop_sleep_ms")
    @classmethod
    def loop_sleep_must_be_valid(cls, v: int) -> int:
        """Validate loop sleep bounds CPU usage without starving the loop."""
        if v < 10 or v > 5000:
            raise ValueError("LOOP_SLEEP_MS must be between 10 and 5000")
        return v

    @field_validator("max_retry_attempts")
    @classmethod
    def max_retry_attempts_must_be_positive(cls, v: int) -> int:
        """Validate at least one attempt is made."""
        if v < 1:
            raise ValueError("MAX_RETRY_ATTEMPTS must be >= 1")
        return v

    @field_validator("retry_delay_s", "error_sleep_s")
    @classmethod
    def delays_must_be_non_negative(cls, v: float) -> float:
        """Validate sleep durations are non-negative."""
        if v < 0:
            raise ValueError("RETRY_DELAY_S and ERROR_SLEEP_S must be >= 0")
        return v

    @field_validator("critical_battery_threshold")
    @classmethod
    def critical_threshold_must_be_percentage(cls, v: int) -> int:
        """Validate the critical threshold is a percentage."""
        if v < 0 or v > 100:
            raise ValueError("CRITICAL_BATTERY_THRESHOLD must be between 0 and 100")
        return v

    @model_validator(mode="after")
    def _timeouts_must_be_consistent(self) -> "AgentSettings":
        """Connect timeout fits in the request deadline, which outlasts a long poll."""
        if self.connect_timeout_s <= 0:
            raise ValueError("CONNECT_TIMEOUT_S must be > 0")
        if self.connect_timeout_s > self.request_timeout_s:
            raise ValueError("CONNECT_TIMEOUT_S must be <= REQUEST_TIMEOUT_S")
        if self.request_timeout_s <= self.updates_timeout_s:
            raise ValueError("REQUEST_TIMEOUT_S must be > UPDATES_TIMEOUT_S")
        return self

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "frozen": True}
