"""
Bounded fixed-delay retry shared by the sysfs reader and the Telegram client.

An operation signals an expected, retriable failure by raising
TransientError.  with_retry() logs every failed attempt, sleeps a fixed delay
between attempts, and returns None once the attempts are exhausted.  Any
other exception is unexpected and propagates to the caller's loop boundary.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-003)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransientError(Exception):
    """Expected failure of a single attempt (missing file, HTTP error, ...)."""


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    description: str,
    attempts: int,
    delay_s: float,
) -> T | None:
    """Run *operation* up to *attempts* times.

    Args:
        operation: Zero-argument coroutine factory for one attempt.
        description: Human-readable action name used in log messages.
        attempts: Maximum number of attempts (>= 1).
        delay_s: Seconds to sleep between attempts.

    Returns:
        The operation result, or ``None`` when every attempt raised
        :class:`TransientError`.
    """
    last_error: TransientError | None = None
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except TransientError as exc:
            last_error = exc
            logger.warning(
                "%s failed (attempt %d/%d): %s", description, attempt, attempts, exc
            )
            if attempt < attempts and delay_s > 0:
                await asyncio.sleep(delay_s)

    logger.error("%s failed after %d attempts: %s", description, attempts, last_error)
    return None
