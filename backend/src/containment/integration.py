"""
Telemetry integration for a rendering host.

Nothing here happens on import. ``init()`` wires the classifier, queue,
delivery client and spool for one session and returns a handle that owns
the background delivery task until ``close()``::

    session = SessionContext.from_env()
    async with await init(session) as telemetry:
        page = telemetry.boundary("episodes", fallback=render_error)
        page.render(render_episodes)
"""
import logging
from typing import Callable, Optional

from .boundary import ContainmentBoundary, Fallback
from .classification import ErrorClassifier
from .delivery import DeliveryClient, HttpTransport
from .persistence import BaseSpool, SQLAlchemySpool
from .queue import ReportQueue
from .session import SessionContext
from .types import Transport

logger = logging.getLogger(__name__)


class TelemetryHandle:
    """Owns the reporting pipeline for one session."""

    def __init__(
        self,
        session: SessionContext,
        transport: Optional[Transport] = None,
        spool: Optional[BaseSpool] = None
    ):
        self.session = session
        self.queue = ReportQueue(max_size=session.max_queue_size)
        self.classifier = ErrorClassifier(session)
        self.transport = transport or HttpTransport(session.endpoint, timeout=session.request_timeout)
        self.delivery = DeliveryClient(session, self.queue, self.transport)
        if spool is None and session.spool_url:
            spool = SQLAlchemySpool(session.spool_url)
        self.spool = spool
        self._started = False
        self._closed = False

    def boundary(
        self,
        boundary_id: str,
        fallback: Fallback,
        recoverable: bool = False,
        on_reset: Optional[Callable[[], None]] = None
    ) -> ContainmentBoundary:
        """Create a boundary reporting into this session's queue."""
        return ContainmentBoundary(
            boundary_id=boundary_id,
            classifier=self.classifier,
            queue=self.queue,
            fallback=fallback,
            recoverable=recoverable,
            on_reset=on_reset
        )

    async def start(self) -> 'TelemetryHandle':
        """Restore spooled reports and start background delivery."""
        if self._started:
            return self

        if self.spool is not None:
            try:
                self.queue.restore(await self.spool.take())
            except Exception as e:
                logger.error(f"Could not restore spooled telemetry reports: {e}")

        self.delivery.start()
        self._started = True
        logger.info(f"Telemetry initialized for {self.session.environment} ({self.session.release})")
        return self

    async def close(self) -> None:
        """Stop delivery, flush once, spool leftovers. Never raises."""
        if self._closed:
            return
        self._closed = True

        try:
            await self.delivery.close()
        except Exception as e:
            logger.error(f"Telemetry shutdown flush failed: {e}")

        if self.spool is not None:
            leftovers = self.queue.drain(len(self.queue))
            try:
                if leftovers:
                    await self.spool.save(leftovers)
                    logger.info(f"Spooled {len(leftovers)} undelivered telemetry report(s)")
                await self.spool.close()
            except Exception as e:
                logger.error(f"Could not spool {len(leftovers)} telemetry report(s): {e}")

        try:
            await self.transport.close()
        except Exception as e:
            logger.error(f"Could not close telemetry transport: {e}")

    async def __aenter__(self) -> 'TelemetryHandle':
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


async def init(
    session: SessionContext,
    transport: Optional[Transport] = None,
    spool: Optional[BaseSpool] = None
) -> TelemetryHandle:
    """Initialize telemetry for ``session`` and start delivery."""
    handle = TelemetryHandle(session, transport=transport, spool=spool)
    return await handle.start()
