"""
Exceptions for the containment system.
"""
from typing import Optional, Sequence


class ContainmentError(Exception):
    """Base exception for the containment system."""


class ConfigurationError(ContainmentError):
    """Raised when the session configuration is missing or invalid."""

    def __init__(self, problems: Sequence[str]):
        self.problems = list(problems)
        super().__init__("Invalid telemetry configuration: " + "; ".join(self.problems))


class DeliveryError(ContainmentError):
    """Raised when a batch could not be delivered to the aggregator."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class SpoolError(ContainmentError):
    """Raised when pending reports cannot be stored or restored."""
