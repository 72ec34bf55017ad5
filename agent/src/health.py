"""
Liveness file for the battery agent.

HealthWriter keeps three values and dumps them as one JSON object after
every successful report and every successful getUpdates poll:
- last_report_ts: ISO timestamp of the most recent delivered report.
- last_updates_poll_ts: ISO timestamp of the most recent answered poll.
- last_update_id: Highest Telegram update id handled so far.

A supervisor that finds last_updates_poll_ts going stale knows the agent
has lost contact with Telegram (or hung).  Each dump goes to a sibling
``.tmp`` file first and is then moved over the target with os.replace(),
so readers never see a half-written file.

CHANGELOG:
- 2026-10-19: Replace the file atomically (STORY-013)
- 2026-10-19: Initial creation (STORY-011)

TODO:
- None
"""

from __future__ import annotations

import json
import os
from datetime import UTC, datetime
from pathlib import Path


def _utc_now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


class HealthWriter:
    """Dumps the agent's liveness state to a JSON file.

    Args:
        path: Target file. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._state: dict[str, str | int | None] = {
            "last_report_ts": None,
            "last_updates_poll_ts": None,
            "last_update_id": 0,
        }

    def record_report(self) -> None:
        """Stamp a delivered report."""
        self._state["last_report_ts"] = _utc_now_iso()
        self._dump()

    def record_updates_poll(self, last_update_id: int) -> None:
        """Stamp an answered getUpdates poll and the update high-water mark."""
        self._state["last_updates_poll_ts"] = _utc_now_iso()
        self._state["last_update_id"] = last_update_id
        self._dump()

    def _dump(self) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(self._state), encoding="utf-8")
        os.replace(tmp_path, self.path)
