"""SQLAlchemy-based report spool."""
import asyncio
import json
import logging
from pathlib import Path
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ..exceptions import SpoolError
from ..types import QueueEntry
from .base import BaseSpool
from .models import Base, PendingReportModel

logger = logging.getLogger(__name__)


class SQLAlchemySpool(BaseSpool):
    """SQLAlchemy-based spool implementation."""

    def __init__(self, database_url: str | None = None):
        """Initialize SQLAlchemy spool.

        Args:
            database_url: SQLAlchemy async database URL. Defaults to SQLite in
                the user data dir.

        """
        super().__init__()
        if database_url is None:
            data_dir = Path.home() / ".containment" / "data"
            data_dir.mkdir(parents=True, exist_ok=True)
            database_url = f"sqlite+aiosqlite:///{data_dir / 'telemetry_spool.db'}"

        self.database_url = database_url
        self.engine = create_async_engine(
            database_url,
            echo=False,
            pool_pre_ping=True,
        )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )
        self._init_lock = asyncio.Lock()

    async def initialize(self) -> None:
        async with self._init_lock:
            await super().initialize()

    async def _setup(self) -> None:
        """Create the spool table if it does not exist."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise SpoolError(f"Could not prepare spool at {self.database_url}: {e}") from e

    async def save(self, entries: Sequence[QueueEntry]) -> None:
        """Save entries, merging counts for fingerprints already spooled."""
        await self.initialize()

        async with self.session_factory() as session:
            try:
                for entry in entries:
                    entry = entry.copy()
                    existing = await session.get(PendingReportModel, entry.fingerprint)
                    if existing is not None:
                        entry.merge(QueueEntry.from_dict(json.loads(existing.entry)))
                        existing.count = entry.count
                        existing.last_seen = entry.last_seen
                        existing.entry = json.dumps(entry.to_dict())
                    else:
                        session.add(PendingReportModel(
                            fingerprint=entry.fingerprint,
                            count=entry.count,
                            last_seen=entry.last_seen,
                            entry=json.dumps(entry.to_dict())
                        ))
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise SpoolError(f"Failed to spool {len(entries)} report(s): {e}") from e

        logger.debug(f"Spooled {len(entries)} telemetry report(s)")

    async def load(self) -> list[QueueEntry]:
        """Load all spooled entries, least recently seen first."""
        await self.initialize()

        async with self.session_factory() as session:
            try:
                result = await session.execute(
                    select(PendingReportModel).order_by(PendingReportModel.last_seen)
                )
                models = result.scalars().all()
            except SQLAlchemyError as e:
                raise SpoolError(f"Failed to load spooled reports: {e}") from e

        return [QueueEntry.from_dict(json.loads(model.entry)) for model in models]

    async def clear(self) -> None:
        """Delete all spooled entries."""
        await self.initialize()

        async with self.session_factory() as session:
            try:
                await session.execute(delete(PendingReportModel))
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise SpoolError(f"Failed to clear spooled reports: {e}") from e

    async def close(self) -> None:
        """Dispose of the engine."""
        await self.engine.dispose()
