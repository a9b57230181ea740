"""
In-memory fixed-window rate limiter for login attempts.

Each identifier (the submitted email) gets MAX_ATTEMPTS permits per
window. The window opens on the first attempt and is not extended by later
attempts.

State lives in a dict owned by the limiter instance, so it is lost on
restart and is not shared between processes. Running several instances
behind a load balancer needs a shared store with atomic
increment-and-expire (e.g. Redis INCR + EXPIRE) instead.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5
WINDOW_SECONDS = 60.0


@dataclass
class RateLimitEntry:
    """Attempts recorded for one identifier in its current window."""
    attempts: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate-limit check."""
    allowed: bool
    remaining: int
    reset_at: float


class RateLimiter:
    """
    Counts attempts per identifier in fixed windows.

    The clock is injectable so tests can move time without sleeping.
    reset_at values are expressed on that clock.
    """

    def __init__(
        self,
        max_attempts: int = MAX_ATTEMPTS,
        window_seconds: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_attempts = max_attempts
        self._window_seconds = window_seconds
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def check(self, identifier: str) -> RateLimitResult:
        """
        Record an attempt for identifier and report whether it is allowed.

        Denied attempts are not counted, so the window still closes at the
        original reset_at.
        """
        with self._lock:
            now = self._clock()
            entry = self._entries.get(identifier)

            if entry is None or now > entry.reset_at:
                reset_at = now + self._window_seconds
                self._entries[identifier] = RateLimitEntry(attempts=1, reset_at=reset_at)
                return RateLimitResult(
                    allowed=True,
                    remaining=self._max_attempts - 1,
                    reset_at=reset_at,
                )

            if entry.attempts < self._max_attempts:
                entry.attempts += 1
                return RateLimitResult(
                    allowed=True,
                    remaining=self._max_attempts - entry.attempts,
                    reset_at=entry.reset_at,
                )

            reset_at = entry.reset_at

        logger.warning(
            "Rate limit exceeded",
            extra={"identifier": identifier, "limit_max": self._max_attempts},
        )
        return RateLimitResult(allowed=False, remaining=0, reset_at=reset_at)

    def reset(self, identifier: str) -> None:
        """Forget all attempts for identifier (used after a successful login)."""
        with self._lock:
            self._entries.pop(identifier, None)

    def cleanup_expired(self) -> int:
        """Drop entries whose window has closed. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if now > entry.reset_at]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug("Purged expired rate-limit entries", extra={"count": len(expired)})
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
