"""Unit tests for the fixed-window RateLimiter."""

import pytest

from lolarena.riot.rate_limiter import RateLimiter


class TestRateLimiterWindow:
    """Window capacity and rollover."""

    def test_first_call_is_admitted(self, clock):
        limiter = RateLimiter(max_calls=80, window_seconds=120, min_spacing=3, clock=clock)

        assert limiter.try_consume() is True
        assert limiter.call_count == 1
        assert limiter.last_call_at == clock.monotonic()

    def test_window_rolls_over_between_distant_calls(self, clock):
        """Calls further apart than the window always start a fresh window."""
        limiter = RateLimiter(max_calls=5, window_seconds=120, min_spacing=3, clock=clock)

        for _ in range(6):
            assert limiter.try_consume() is True
            assert limiter.call_count == 1
            clock.advance(120.5)

    def test_capacity_exhausted_until_window_ends(self, clock):
        limiter = RateLimiter(max_calls=3, window_seconds=10, min_spacing=0, clock=clock)

        assert [limiter.try_consume() for _ in range(4)] == [True, True, True, False]

        clock.advance(9.9)
        assert limiter.try_consume() is False

        clock.advance(0.1)
        assert limiter.try_consume() is True
        assert limiter.call_count == 1

    def test_rejected_check_still_rolls_the_window(self, clock):
        """A long idle period is seen on the very next check."""
        limiter = RateLimiter(max_calls=2, window_seconds=10, min_spacing=0, clock=clock)
        limiter.try_consume()
        limiter.try_consume()
        assert limiter.try_consume() is False

        clock.advance(10)
        assert limiter.try_consume() is True
        assert limiter.window_start == clock.monotonic()

    def test_rejection_has_no_side_effects(self, clock):
        limiter = RateLimiter(max_calls=1, window_seconds=10, min_spacing=0, clock=clock)
        limiter.try_consume()
        before = (limiter.call_count, limiter.last_call_at, limiter.window_start)

        clock.advance(1)
        assert limiter.try_consume() is False
        assert (limiter.call_count, limiter.last_call_at, limiter.window_start) == before

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            RateLimiter(max_calls=0)


class TestRateLimiterSpacing:
    """Minimum spacing between two admitted calls."""

    def test_second_call_too_close_is_refused(self, clock):
        limiter = RateLimiter(max_calls=80, window_seconds=120, min_spacing=3, clock=clock)

        assert limiter.try_consume() is True
        clock.advance(2.9)
        assert limiter.try_consume() is False
        assert limiter.call_count == 1

        clock.advance(0.1)
        assert limiter.try_consume() is True
        assert limiter.call_count == 2


class TestRateLimiterPoison:
    """Hard stop after an upstream 429."""

    def test_poison_blocks_until_cooldown(self, clock):
        limiter = RateLimiter(max_calls=80, window_seconds=10, min_spacing=3, poison_cooldown=60, clock=clock)
        limiter.try_consume()

        limiter.poison()
        assert limiter.call_count == limiter.max_calls
        assert limiter.poisoned

        # Window rolls several times during the cooldown, admission stays closed
        for _ in range(5):
            clock.advance(11)
            assert limiter.try_consume() is False

        clock.advance(5)  # 60s elapsed
        assert limiter.try_consume() is True
        assert limiter.call_count == 1
        assert not limiter.poisoned

    def test_poison_with_explicit_cooldown(self, clock):
        limiter = RateLimiter(min_spacing=0, clock=clock)
        limiter.poison(cooldown=5)

        clock.advance(4.9)
        assert limiter.try_consume() is False
        clock.advance(0.1)
        assert limiter.try_consume() is True

    def test_repoison_only_extends(self, clock):
        limiter = RateLimiter(min_spacing=0, poison_cooldown=60, clock=clock)
        limiter.poison()
        clock.advance(30)
        limiter.poison(cooldown=5)  # shorter: must not shorten the running cooldown

        clock.advance(10)
        assert limiter.try_consume() is False
        clock.advance(20)
        assert limiter.try_consume() is True

    def test_stats(self, clock):
        limiter = RateLimiter(max_calls=10, window_seconds=120, min_spacing=0, clock=clock)
        limiter.try_consume()
        limiter.poison(cooldown=30)

        stats = limiter.stats()
        assert stats["call_count"] == 10
        assert stats["max_calls"] == 10
        assert stats["poisoned_for"] == 30
