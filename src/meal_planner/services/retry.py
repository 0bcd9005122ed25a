"""Retry with exponential backoff for AI calls."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from meal_planner.domain.errors import (
    ConfigurationError,
    QuotaExceededError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRY_DELAYS_SECONDS: tuple[float, ...] = (2.0, 4.0, 8.0, 16.0, 32.0)
QUOTA_EXHAUSTED_MESSAGE = (
    "The AI service is overloaded (quota limit). "
    "Please wait about a minute and try again."
)
_QUOTA_MARKERS = ("429", "resource_exhausted", "quota", "rate limit", "rate_limit")
_RATE_LIMIT_STATUS = 429


def is_quota_error(error: BaseException) -> bool:
    """Return True for rate-limit or resource-exhaustion failures."""
    for attribute in ("status_code", "status", "code"):
        if getattr(error, attribute, None) == _RATE_LIMIT_STATUS:
            return True
    message = str(error).lower()
    return any(marker in message for marker in _QUOTA_MARKERS)


@dataclass
class RetryPolicy:
    """Retries every failure with the configured delays between attempts."""

    delays: tuple[float, ...] = RETRY_DELAYS_SECONDS
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    async def run(self, operation: Callable[[], Awaitable[T]], label: str) -> T:
        """Run the operation, retrying until the delay table is exhausted."""
        attempt = 0
        while True:
            try:
                return await operation()
            except ConfigurationError:
                raise
            except Exception as exc:
                quota = is_quota_error(exc)
                if attempt >= len(self.delays):
                    logger.error(
                        "%s failed after %d attempts: %s", label, attempt + 1, exc
                    )
                    if quota:
                        raise QuotaExceededError(QUOTA_EXHAUSTED_MESSAGE) from exc
                    raise UpstreamError(str(exc) or f"{label} failed") from exc
                delay = self.delays[attempt]
                attempt += 1
                logger.warning(
                    "%s failed (quota=%s), retrying in %.0fs (%d retries left): %.100s",
                    label,
                    quota,
                    delay,
                    len(self.delays) - attempt,
                    str(exc),
                )
                await self.sleep(delay)
