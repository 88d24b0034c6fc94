"""In-memory report spool."""
import asyncio
from typing import Sequence

from ..types import QueueEntry
from .base import BaseSpool


class MemorySpool(BaseSpool):
    """In-memory spool.

    Survives handle restarts within one process, which is what tests and
    embedded hosts without a database need.
    """

    def __init__(self):
        super().__init__()
        self._storage: dict[str, QueueEntry] = {}
        self._lock = asyncio.Lock()

    async def _setup(self) -> None:
        """No setup needed for memory spool."""
        pass

    async def save(self, entries: Sequence[QueueEntry]) -> None:
        async with self._lock:
            for entry in entries:
                existing = self._storage.get(entry.fingerprint)
                if existing is not None:
                    existing.merge(entry)
                else:
                    self._storage[entry.fingerprint] = entry.copy()

    async def load(self) -> list[QueueEntry]:
        async with self._lock:
            return [entry.copy() for entry in self._storage.values()]

    async def clear(self) -> None:
        async with self._lock:
            self._storage.clear()
