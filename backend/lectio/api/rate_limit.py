"""In-process fixed-window rate limiting.

Counters live in memory, so limits are per process. Requests are keyed by
user id, or by client IP when no user is known.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Depends, Request

from lectio.api.deps import CurrentUser
from lectio.db.models import User
from lectio.errors import RateLimitedError

logger = logging.getLogger(__name__)

# Expired windows are swept once the table grows past this
PRUNE_THRESHOLD = 10_000


@dataclass(frozen=True)
class RateLimitRule:
    limit: int
    window_seconds: int
    message: str


RATE_LIMIT_RULES: dict[str, RateLimitRule] = {
    "messages": RateLimitRule(
        10, 60, "Too many messages sent. Please wait before sending another message."
    ),
    "sessions": RateLimitRule(
        5, 3600, "Too many sessions created. Please wait before creating another session."
    ),
    "learning_profile": RateLimitRule(
        20, 3600, "Too many learning profile updates. Please wait before updating again."
    ),
    "general": RateLimitRule(
        30, 60, "Too many requests. Please wait before making another request."
    ),
}


class FixedWindowRateLimiter:
    """Counts hits per (group, key) in fixed windows."""

    def __init__(
        self,
        rules: dict[str, RateLimitRule] | None = None,
        *,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.rules = rules or RATE_LIMIT_RULES
        self.enabled = enabled
        self._clock = clock
        self._windows: dict[tuple[str, str], tuple[float, int]] = {}

    def hit(self, group: str, key: str) -> None:
        """
        Count one request.

        Raises:
            RateLimitedError: If the group's limit for this window is exceeded
        """
        if not self.enabled:
            return

        rule = self.rules[group]
        now = self._clock()
        if len(self._windows) > PRUNE_THRESHOLD:
            self._prune(now)

        window_start, count = self._windows.get((group, key), (now, 0))
        if now - window_start >= rule.window_seconds:
            window_start, count = now, 0
        count += 1
        self._windows[(group, key)] = (window_start, count)

        if count > rule.limit:
            logger.warning("Rate limit exceeded for %s (%s)", key, group)
            raise RateLimitedError(rule.message)

    def _prune(self, now: float) -> None:
        self._windows = {
            (group, key): window
            for (group, key), window in self._windows.items()
            if now - window[0] < self.rules[group].window_seconds
        }


def rate_limit_key(request: Request, user: User | None) -> str:
    if user is not None:
        return f"user:{user.id}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


def rate_limit(group: str):
    """Route dependency enforcing one rule group."""

    async def dependency(request: Request, current_user: CurrentUser) -> None:
        limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
        limiter.hit(group, rate_limit_key(request, current_user))

    return Depends(dependency)
