# riot/rate_limiter.py – Fixed-window quota with minimum spacing and a poison cooldown

import logging
from typing import Any, Dict, Optional

from lolarena.riot.clock import Clock, SYSTEM_CLOCK

log = logging.getLogger(__name__)


class RateLimiter:
    """
    Local admission control in front of the Riot API.

    The limits are deliberately below the advertised dev quota (100 req / 120 s):
    the upstream limiter is not trusted to behave exactly as documented.

    Not thread-safe: only the request queue's drain loop calls into it.
    """

    def __init__(
        self,
        max_calls: int = 80,
        window_seconds: float = 120.0,
        min_spacing: float = 3.0,
        poison_cooldown: float = 60.0,
        clock: Clock = SYSTEM_CLOCK,
    ):
        if max_calls < 1:
            raise ValueError("max_calls must be >= 1")
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self.min_spacing = min_spacing
        self.poison_cooldown = poison_cooldown
        self._clock = clock

        now = clock.monotonic()
        self.window_start = now
        self.call_count = 0
        self.last_call_at: Optional[float] = None
        self.poisoned_until: Optional[float] = None

    def _roll(self, now: float) -> None:
        if self.poisoned_until is not None:
            if now < self.poisoned_until:
                return
            log.info("Rate limiter cooldown over, resetting window")
            self.poisoned_until = None
            self.call_count = 0
            self.window_start = now
            return

        if now - self.window_start >= self.window_seconds:
            self.call_count = 0
            self.window_start = now

    def try_consume(self) -> bool:
        """Record one call and return True if both window and spacing allow it."""
        now = self._clock.monotonic()
        self._roll(now)

        if self.poisoned_until is not None:
            return False
        if self.call_count >= self.max_calls:
            return False
        if self.last_call_at is not None and now - self.last_call_at < self.min_spacing:
            return False

        self.call_count += 1
        self.last_call_at = now
        return True

    def poison(self, cooldown: Optional[float] = None) -> None:
        """
        Block every admission until the cooldown elapses.

        Used when the upstream answered 429 although we admitted the call:
        either our bookkeeping drifted or the upstream tightened its limits.
        A second poison while already poisoned only extends the deadline.
        """
        cooldown = self.poison_cooldown if cooldown is None else cooldown
        now = self._clock.monotonic()
        deadline = now + cooldown
        if self.poisoned_until is None or deadline > self.poisoned_until:
            self.poisoned_until = deadline
        self.call_count = self.max_calls
        log.warning(f"Rate limiter poisoned for {cooldown:.1f}s")

    @property
    def poisoned(self) -> bool:
        return self.poisoned_until is not None and self._clock.monotonic() < self.poisoned_until

    def stats(self) -> Dict[str, Any]:
        now = self._clock.monotonic()
        return {
            "call_count": self.call_count,
            "max_calls": self.max_calls,
            "window_seconds": self.window_seconds,
            "window_elapsed": round(now - self.window_start, 3),
            "min_spacing": self.min_spacing,
            "poisoned_for": round(self.poisoned_until - now, 3) if self.poisoned else 0.0,
        }
