"""Delivery of queued reports to the telemetry aggregator."""
from .circuit import CLOSED, HALF_OPEN, OPEN, CircuitBreaker
from .client import DeliveryClient
from .transport import HttpTransport

__all__ = [
    "CircuitBreaker",
    "DeliveryClient",
    "HttpTransport",
    "CLOSED",
    "OPEN",
    "HALF_OPEN",
]
