"""Circuit breaker guarding delivery to the aggregator."""
import logging
import time
from typing import Callable, Optional

from ..strategies import BaseStrategy, ExponentialBackoffStrategy

logger = logging.getLogger(__name__)

CLOSED = "closed"
OPEN = "open"
HALF_OPEN = "half-open"


class CircuitBreaker:
    """Circuit breaker with a growing cooldown.

    Opens after ``threshold`` consecutive failures. The cooldown comes from
    the strategy, indexed by how many times the circuit has opened since it
    was last closed. Once the cooldown elapses a single probe is allowed.
    """

    def __init__(
        self,
        threshold: int = 5,
        strategy: Optional[BaseStrategy] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.threshold = threshold
        self.strategy = strategy or ExponentialBackoffStrategy()
        self.clock = clock
        self.failure_count = 0
        self.open_count = 0
        self.opened_at: Optional[float] = None
        self.cooldown = 0.0
        self.state = CLOSED
        self._probe_in_flight = False

    def record_success(self):
        """Record a delivered batch."""
        if self.state != CLOSED:
            logger.info("Telemetry delivery recovered; circuit closed")
        self.failure_count = 0
        self.open_count = 0
        self.opened_at = None
        self.cooldown = 0.0
        self.state = CLOSED
        self._probe_in_flight = False

    def record_failure(self):
        """Record a failed batch."""
        self.failure_count += 1
        self._probe_in_flight = False

        if self.state == HALF_OPEN or self.failure_count >= self.threshold:
            self._open()

    def can_execute(self) -> tuple[bool, Optional[float]]:
        """Check if a send is allowed; returns (allowed, seconds remaining)."""
        if self.state == CLOSED:
            return True, None

        if self.state == OPEN:
            elapsed = self.clock() - self.opened_at
            if elapsed < self.cooldown:
                return False, self.cooldown - elapsed
            self.state = HALF_OPEN
            logger.info("Telemetry circuit half-open; sending one probe batch")

        # Half-open: exactly one probe until it reports back.
        if self._probe_in_flight:
            return False, None
        self._probe_in_flight = True
        return True, None

    def release_probe(self):
        """Give back a probe slot that was not used for a send."""
        self._probe_in_flight = False

    def _open(self):
        self.cooldown = self.strategy.calculate_delay(self.open_count)
        self.open_count += 1
        self.opened_at = self.clock()
        self.state = OPEN
        logger.warning(
            f"Telemetry circuit open after {self.failure_count} consecutive failure(s); "
            f"suppressing delivery for {self.cooldown:.1f}s ({self.strategy.name})"
        )

    @property
    def is_open(self) -> bool:
        return self.state == OPEN
