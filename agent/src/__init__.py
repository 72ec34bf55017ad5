"""
Battery agent package for the sysfs-to-Telegram battery monitor.

Reads battery telemetry from the device's power_supply sysfs node, formats a
status report, relays it to a Telegram chat over HTTPS, and answers inline
"refresh" button presses.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""
