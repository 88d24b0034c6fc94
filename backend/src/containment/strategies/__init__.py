"""
Cooldown strategies for the delivery circuit breaker.
"""
from .base import BaseStrategy
from .exponential import ExponentialBackoffStrategy


__all__ = [
    'BaseStrategy',
    'ExponentialBackoffStrategy'
]
