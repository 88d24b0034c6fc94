"""Spools for reports still pending at shutdown."""
from .base import BaseSpool
from .memory import MemorySpool
from .sqlalchemy_persistence import SQLAlchemySpool

__all__ = [
    'BaseSpool',
    'MemorySpool',
    'SQLAlchemySpool'
]
