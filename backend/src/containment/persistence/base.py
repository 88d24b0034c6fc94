"""
Base implementation for report spools.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Sequence

from ..types import QueueEntry


logger = logging.getLogger(__name__)


class BaseSpool(ABC):
    """Base class for spool implementations."""

    def __init__(self):
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize the spool backend."""
        if not self._initialized:
            await self._setup()
            self._initialized = True

    @abstractmethod
    async def _setup(self) -> None:
        """Setup the spool backend. Override in subclasses."""
        pass

    @abstractmethod
    async def save(self, entries: Sequence[QueueEntry]) -> None:
        """Store entries, merging with anything already spooled."""
        pass

    @abstractmethod
    async def load(self) -> List[QueueEntry]:
        """Return every spooled entry."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every spooled entry."""
        pass

    async def take(self) -> List[QueueEntry]:
        """Load and clear in one step, used when a session starts."""
        await self.initialize()
        entries = await self.load()
        if entries:
            await self.clear()
            logger.info(f"Restored {len(entries)} spooled telemetry report(s)")
        return entries

    async def close(self) -> None:
        """Release backend resources."""
        pass
