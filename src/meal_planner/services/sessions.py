"""Per-client planner sessions keyed by opaque tokens."""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from meal_planner.services.planner import PlannerService

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL_SECONDS = 12 * 60 * 60


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class _SessionEntry:
    planner: PlannerService
    expires_at: datetime


@dataclass
class SessionRegistry:
    """In-memory map from session tokens to their own planner.

    Each planner owns its auth client, so one caller's sign-in never
    leaks into another's. Entries expire after ``ttl_seconds`` without use.
    """

    factory: Callable[[], PlannerService]
    ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS
    clock: Callable[[], datetime] = _utcnow
    _entries: dict[str, _SessionEntry] = field(default_factory=dict)

    def create(self) -> PlannerService:
        """Build a planner that is not yet reachable by any token."""
        return self.factory()

    def add(self, planner: PlannerService) -> str:
        """Register a signed-in planner and return its new token."""
        self._evict_expired()
        token = secrets.token_urlsafe(32)
        self._entries[token] = _SessionEntry(planner, self._expiry())
        logger.info("Session opened (%d active)", len(self._entries))
        return token

    def get(self, token: str | None) -> PlannerService | None:
        """Return the planner for a live token and extend its lifetime."""
        if not token:
            return None
        entry = self._entries.get(token)
        if entry is None:
            return None
        if self.clock() >= entry.expires_at:
            self._entries.pop(token, None)
            return None
        entry.expires_at = self._expiry()
        return entry.planner

    def discard(self, token: str | None) -> None:
        """Forget a token; unknown tokens are ignored."""
        if token and self._entries.pop(token, None) is not None:
            logger.info("Session closed (%d active)", len(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def _expiry(self) -> datetime:
        return self.clock() + timedelta(seconds=self.ttl_seconds)

    def _evict_expired(self) -> None:
        now = self.clock()
        expired = [t for t, entry in self._entries.items() if now >= entry.expires_at]
        for token in expired:
            del self._entries[token]
