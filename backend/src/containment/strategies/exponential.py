"""
Exponential backoff strategy.
"""
import random

from .base import BaseStrategy


class ExponentialBackoffStrategy(BaseStrategy):
    """
    Exponential backoff strategy with optional jitter.

    delay = min(initial_delay * (backoff_factor ** attempt), max_delay)
    """

    def __init__(
        self,
        initial_delay: float = 10.0,
        backoff_factor: float = 2.0,
        max_delay: float = 600.0,
        jitter: bool = False,
        jitter_range: float = 0.1
    ):
        super().__init__(max_delay)
        self.initial_delay = initial_delay
        self.backoff_factor = backoff_factor
        self.jitter = jitter
        self.jitter_range = jitter_range

    def calculate_delay(self, attempt: int) -> float:
        """Calculate exponentially increasing delay with optional jitter."""
        # Bounded exponent keeps the power from overflowing.
        delay = min(self.initial_delay * (self.backoff_factor ** min(attempt, 64)), self.max_delay)

        if self.jitter and delay > 0:
            jitter_amount = delay * self.jitter_range
            delay += random.uniform(-jitter_amount, jitter_amount)
            delay = min(max(0.1, delay), self.max_delay)

        return delay

    @property
    def name(self) -> str:
        return f"ExponentialBackoff(initial={self.initial_delay}, factor={self.backoff_factor})"
