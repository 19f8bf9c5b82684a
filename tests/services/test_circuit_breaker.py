"""Tests for the upstream circuit breaker."""

from __future__ import annotations

from tunevault.services.circuit_breaker import CircuitBreaker, CircuitState


class TestCircuitBreaker:
    """Time-based open/closed behaviour."""

    def test_starts_closed(self, clock) -> None:
        """Test that a new breaker is closed."""
        breaker = CircuitBreaker(cooldown=60, clock=clock)

        assert breaker.state is CircuitState.CLOSED
        assert breaker.retry_after() == 0.0

    def test_trip_opens_for_cooldown(self, clock) -> None:
        """Test that tripping opens the breaker for the cooldown."""
        # Given: a breaker with a 60s cooldown
        breaker = CircuitBreaker(cooldown=60, clock=clock)

        # When: it trips
        blocked_until = breaker.trip()

        # Then: it is open until now + cooldown
        assert blocked_until == clock.now + 60
        assert breaker.is_open()
        assert breaker.retry_after() == 60

    def test_closes_when_cooldown_elapses(self, clock) -> None:
        """Test that the breaker closes once the cooldown elapses."""
        breaker = CircuitBreaker(cooldown=60, clock=clock)
        breaker.trip()

        clock.advance(59.9)
        assert breaker.is_open()

        clock.advance(0.1)
        assert breaker.state is CircuitState.CLOSED

    def test_longer_retry_after_extends_block(self, clock) -> None:
        """Test that a longer Retry-After extends the open window."""
        breaker = CircuitBreaker(cooldown=60, clock=clock)

        breaker.trip(retry_after=120)

        assert breaker.retry_after() == 120

    def test_shorter_retry_after_keeps_cooldown(self, clock) -> None:
        """Test that a shorter Retry-After keeps the full cooldown."""
        breaker = CircuitBreaker(cooldown=60, clock=clock)

        breaker.trip(retry_after=5)

        assert breaker.retry_after() == 60

    def test_reset_and_stats(self, clock) -> None:
        """Test manual reset and breaker statistics."""
        breaker = CircuitBreaker(cooldown=60, clock=clock)
        breaker.trip()
        breaker.reset()

        stats = breaker.get_stats()
        assert stats["state"] == "closed"
        assert stats["trip_count"] == 1
