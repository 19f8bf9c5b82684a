"""Circuit breaker for the upstream catalog API.

A single 429 opens the circuit for a fixed cooldown. While open, every
upstream call fails fast without touching the network; once the cooldown
elapses the circuit closes again on its own.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable

from tunevault.shared.constants import UpstreamDefaults

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Operational states of the circuit breaker."""

    CLOSED = "closed"
    OPEN = "open"


class CircuitBreaker:
    """Time-based circuit breaker tripped by rate-limit responses.

    The only state is ``blocked_until``: calls are refused while the clock
    reads a value strictly lower than it.

    Args:
        cooldown: Seconds the circuit stays open after a trip (default: 60)
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        cooldown: float = UpstreamDefaults.CIRCUIT_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cooldown = cooldown
        self._clock = clock
        self._blocked_until = 0.0
        self._trip_count = 0

    @property
    def blocked_until(self) -> float:
        """Clock reading at which calls are allowed again."""
        return self._blocked_until

    @property
    def state(self) -> CircuitState:
        """Get the current state of the breaker."""
        if self._clock() < self._blocked_until:
            return CircuitState.OPEN
        return CircuitState.CLOSED

    def is_open(self) -> bool:
        return self.state is CircuitState.OPEN

    def retry_after(self) -> float:
        """Seconds until the circuit closes (0.0 when already closed)."""
        return max(0.0, self._blocked_until - self._clock())

    def trip(self, retry_after: float | None = None) -> float:
        """Open the circuit after a 429.

        The cooldown starts from the current clock reading. A Retry-After
        hint longer than the cooldown extends the block.

        Args:
            retry_after: Optional Retry-After header value in seconds

        Returns:
            The new ``blocked_until`` value
        """
        duration = self.cooldown
        if retry_after is not None and retry_after > duration:
            duration = retry_after

        self._blocked_until = self._clock() + duration
        self._trip_count += 1
        logger.warning(
            "Upstream circuit opened for %.1fs after rate limit",
            duration,
            extra={"operation": "circuit_trip", "context": {"trip_count": self._trip_count}},
        )
        return self._blocked_until

    def reset(self) -> None:
        """Close the circuit immediately."""
        self._blocked_until = 0.0

    def get_stats(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "retry_after": round(self.retry_after(), 3),
            "trip_count": self._trip_count,
        }


__all__ = ["CircuitBreaker", "CircuitState"]
