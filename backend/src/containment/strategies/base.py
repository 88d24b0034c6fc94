"""
Base class for cooldown strategies.
"""
from abc import ABC, abstractmethod


class BaseStrategy(ABC):
    """Base class for cooldown strategies."""

    def __init__(self, max_delay: float = 600.0):
        self.max_delay = max_delay

    @abstractmethod
    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate how long delivery stays suppressed.

        Args:
            attempt: How many times the circuit has opened in a row (0-indexed)

        Returns:
            Delay in seconds, never above ``max_delay``
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy name for logging."""
        pass
