"""
Telegram Bot API client for battery reports, alerts, and refresh callbacks.

POSTs JSON bodies to ``{api_base_url}/bot{token}/{method}``.  Every call runs
under a hard overall deadline on top of the httpx connect/phase timeouts and
is retried a bounded number of times with a fixed delay.  HTTP status >= 400,
transport errors, deadline expiry, undecodable JSON, and ``ok: false``
envelopes all count as failed attempts.  Validates HTTPS at construction and
always uses TLS certificate verification.

Operations:
- send_request(method, payload): Raw Bot API call with retry.
- send_report(message): sendMessage with the inline "Refresh Data" button.
- send_alert(message): sendMessage without keyboard (critical alert).
- get_updates(offset): Long-poll for callback_query updates.
- answer_callback_query(callback_id, text): Acknowledge a button press.

CHANGELOG:
- 2026-10-19: Replace polled transfer loop with a deadline-bounded request (STORY-009)
- 2026-10-19: Initial creation (STORY-007)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from agent.src.models import Update
from agent.src.retry import TransientError, with_retry

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.telegram.org"

REFRESH_CALLBACK_DATA = "refresh_battery"
"""Callback payload carried by the inline refresh button."""

REFRESH_BUTTON_TEXT = "🔄 Refresh Data"

PARSE_MODE = "HTML"


class TelegramClient:
    """Async client for the subset of the Bot API the monitor uses.

    Args:
        bot_token: Bot API token.
        chat_id: Destination chat for reports and alerts.
        api_base_url: Bot API base URL. Must start with ``https://``.
        max_attempts: Attempts per Bot API call.
        retry_delay_s: Fixed delay between attempts.
        connect_timeout_s: TCP/TLS connect timeout.
        request_timeout_s: Hard deadline for one request, also used as the
            httpx read/write/pool timeout.
        updates_timeout_s: Server-side long-poll wait for getUpdates.

    Raises:
        ValueError: If *api_base_url* does not start with ``https://``.

    Usage::

        client = TelegramClient(bot_token="123:abc", chat_id="42")
        if await client.send_report(format_message(record)):
            ...
    """

    def __init__(
        self,
        *,
        bot_token: str,
        chat_id: str,
        api_base_url: str = DEFAULT_API_BASE_URL,
        max_attempts: int = 3,
        retry_delay_s: float = 5.0,
        connect_timeout_s: float = 10.0,
        request_timeout_s: float = 30.0,
        updates_timeout_s: int = 10,
    ) -> None:
        if not api_base_url.lower().startswith("https://"):
            raise ValueError(f"Telegram API base URL must use HTTPS (got: '{api_base_url}').")
        self._api_base_url = api_base_url.rstrip("/")
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._max_attempts = max_attempts
        self._retry_delay_s = retry_delay_s
        self._request_timeout_s = request_timeout_s
        self._updates_timeout_s = updates_timeout_s
        self._timeout = httpx.Timeout(request_timeout_s, connect=connect_timeout_s)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def send_request(self, method: str, payload: dict[str, Any]) -> dict[str, Any] | None:
        """Call a Bot API method with bounded retry.

        Args:
            method: Bot API method name, e.g. ``"sendMessage"``.
            payload: JSON-serialisable request body.

        Returns:
            The decoded response envelope (``{"ok": true, "result": ...}``),
            or ``None`` if every attempt failed.
        """
        return await with_retry(
            lambda: self._request_once(method, payload),
            description=f"Telegram {method} request",
            attempts=self._max_attempts,
            delay_s=self._retry_delay_s,
        )

    async def send_report(self, message: str) -> bool:
        """Send a battery report with the inline refresh button attached."""
        response = await self.send_request(
            "sendMessage",
            {
                "chat_id": self._chat_id,
                "text": message,
                "parse_mode": PARSE_MODE,
                "reply_markup": {
                    "inline_keyboard": [
                        [{"text": REFRESH_BUTTON_TEXT, "callback_data": REFRESH_CALLBACK_DATA}]
                    ]
                },
            },
        )
        if response is None:
            logger.error("Failed to send battery report to Telegram")
            return False
        return True

    async def send_alert(self, message: str) -> bool:
        """Send a standalone HTML message without a keyboard."""
        response = await self.send_request(
            "sendMessage",
            {"chat_id": self._chat_id, "text": message, "parse_mode": PARSE_MODE},
        )
        if response is None:
            logger.error("Failed to send alert to Telegram")
            return False
        return True

    async def get_updates(self, offset: int) -> list[Update] | None:
        """Long-poll for callback_query updates with ``update_id >= offset``.

        Returns:
            The parsed updates (possibly empty), or ``None`` if the call
            failed.  Entries that do not parse are skipped with a warning.
        """
        response = await self.send_request(
            "getUpdates",
            {
                "offset": offset,
                "timeout": self._updates_timeout_s,
                "allowed_updates": ["callback_query"],
            },
        )
        if response is None:
            return None

        raw_updates = response.get("result")
        if not isinstance(raw_updates, list):
            logger.warning("getUpdates returned no result list: %r", raw_updates)
            return None

        updates: list[Update] = []
        for raw in raw_updates:
            try:
                updates.append(Update.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Skipping malformed update %r: %s", raw, exc)
        return updates

    async def answer_callback_query(self, callback_id: str, text: str) -> bool:
        """Acknowledge an inline button press with a transient notice."""
        response = await self.send_request(
            "answerCallbackQuery",
            {"callback_query_id": callback_id, "text": text, "show_alert": False},
        )
        if response is None:
            logger.error("Failed to answer callback query %s", callback_id)
            return False
        return True

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _method_url(self, method: str) -> str:
        return f"{self._api_base_url}/bot{self._bot_token}/{method}"

    async def _request_once(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Perform a single Bot API call; raise TransientError on any failure."""
        try:
            async with asyncio.timeout(self._request_timeout_s):
                async with httpx.AsyncClient(verify=True, timeout=self._timeout) as client:
                    response = await client.post(self._method_url(method), json=payload)
        except TimeoutError as exc:
            raise TransientError(
                f"deadline of {self._request_timeout_s:.0f}s exceeded"
            ) from exc
        except httpx.HTTPError as exc:
            # Never log the request URL: it carries the bot token.
            raise TransientError(f"network error ({type(exc).__name__})") from exc

        if response.status_code >= 400:
            logger.error(
                "Telegram %s HTTP error %d, response: %s",
                method,
                response.status_code,
                response.text,
            )
            raise TransientError(f"HTTP error {response.status_code}")

        try:
            decoded = response.json()
        except ValueError as exc:
            raise TransientError(f"JSON decode error: {exc}") from exc

        if not isinstance(decoded, dict) or decoded.get("ok") is not True:
            description = (
                decoded.get("description", "Unknown error")
                if isinstance(decoded, dict)
                else "Unknown error"
            )
            raise TransientError(f"Telegram API error: {description}")

        return decoded
