"""
Shared test fixtures for battery agent tests.

Provides environment variable fixtures for AgentSettings configuration tests
and a fake power_supply sysfs directory.  All agent env vars are cleaned
before each test to ensure isolation.

CHANGELOG:
- 2026-10-19: Add fake sysfs battery fixture (STORY-004)
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

from pathlib import Path

import pytest

# All AgentSettings environment variable names, used for cleanup.
_ALL_AGENT_ENV_VARS = (
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
    "TELEGRAM_API_BASE_URL",
    "BATTERY_PATH",
    "LOG_FILE",
    "HEALTH_PATH",
    "REPORT_MINUTE",
    "UPDATES_POLL_INTERVAL_S",
    "UPDATES_TIMEOUT_S",
    "HOURLY_CHECK_INTERVAL_S",
    "LOOP_SLEEP_MS",
    "MAX_RETRY_ATTEMPTS",
    "RETRY_DELAY_S",
    "ERROR_SLEEP_S",
    "CRITICAL_BATTERY_THRESHOLD",
    "CONNECT_TIMEOUT_S",
    "REQUEST_TIMEOUT_S",
)

SYSFS_VALUES: dict[str, str] = {
    "capacity": "87\n",
    "status": "Discharging\n",
    "temp": "312\n",
    "charge_type": "N/A\n",
    "health": "Good\n",
    "current_now": "-421000\n",
}
"""Plausible contents of a handset's battery power_supply node."""


@pytest.fixture(autouse=True)
def _clean_agent_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Remove all agent env vars and isolate from .env files before each test.

    This runs automatically for every test in the agent test suite.
    Individual tests or fixtures then set only the vars they need.
    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_AGENT_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required and optional environment variables for AgentSettings.

    Returns the dict of env var names to values for assertion convenience.
    """
    env = {
        "TELEGRAM_BOT_TOKEN": "123456:test-bot-token",
        "TELEGRAM_CHAT_ID": "-1001234567890",
        "TELEGRAM_API_BASE_URL": "https://telegram.example.com",
        "BATTERY_PATH": "/tmp/fake-battery",
        "LOG_FILE": "/tmp/battery-agent-test.log",
        "HEALTH_PATH": "/tmp/battery-agent-health.json",
        "REPORT_MINUTE": "30",
        "UPDATES_POLL_INTERVAL_S": "2.5",
        "UPDATES_TIMEOUT_S": "5",
        "HOURLY_CHECK_INTERVAL_S": "50",
        "LOOP_SLEEP_MS": "100",
        "MAX_RETRY_ATTEMPTS": "4",
        "RETRY_DELAY_S": "1.5",
        "ERROR_SLEEP_S": "20",
        "CRITICAL_BATTERY_THRESHOLD": "10",
        "CONNECT_TIMEOUT_S": "5",
        "REQUEST_TIMEOUT_S": "20",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def env_vars_required_only(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set only the required environment variables for AgentSettings."""
    env = {
        "TELEGRAM_BOT_TOKEN": "123456:test-bot-token",
        "TELEGRAM_CHAT_ID": "42",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def battery_dir(tmp_path: Path) -> Path:
    """Create a fake battery sysfs directory populated with SYSFS_VALUES."""
    path = tmp_path / "power_supply" / "battery"
    path.mkdir(parents=True)
    for name, value in SYSFS_VALUES.items():
        (path / name).write_text(value)
    return path
