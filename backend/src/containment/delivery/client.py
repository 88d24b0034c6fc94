"""Background delivery of queued reports."""
import asyncio
import logging
from typing import Optional

from ..queue import ReportQueue
from ..session import SessionContext
from ..strategies import ExponentialBackoffStrategy
from ..types import QueueEntry, Transport
from .circuit import CircuitBreaker

logger = logging.getLogger(__name__)


class DeliveryClient:
    """Drains the report queue to the aggregator on a fixed interval.

    Ticks are driven by a timer, not by enqueues, so the outbound request
    rate stays bounded however many faults occur. Failed batches go back
    into the queue and count towards the circuit breaker.
    """

    def __init__(
        self,
        session: SessionContext,
        queue: ReportQueue,
        transport: Transport,
        circuit: Optional[CircuitBreaker] = None
    ):
        self.session = session
        self.queue = queue
        self.transport = transport
        self.circuit = circuit or CircuitBreaker(
            threshold=session.failure_threshold,
            strategy=ExponentialBackoffStrategy(
                initial_delay=session.backoff_initial,
                backoff_factor=session.backoff_factor,
                max_delay=session.backoff_max
            )
        )
        self.batch_size = session.batch_size
        self.interval = session.delivery_interval

        self.sent_batches = 0
        self.failed_batches = 0
        self.retry_count = 0
        self.delivered_reports = 0

        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the periodic delivery task on the running event loop."""
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="telemetry-delivery")
        logger.info(f"Telemetry delivery started (every {self.interval}s, batch={self.batch_size})")

    async def tick(self) -> int:
        """Run one delivery cycle. Returns the number of entries delivered."""
        allowed, remaining = self.circuit.can_execute()
        if not allowed:
            if remaining is not None:
                logger.debug(f"Telemetry circuit open; {remaining:.1f}s until next probe")
            return 0

        batch = self.queue.drain(self.batch_size)
        if not batch:
            self.circuit.release_probe()
            return 0

        if await self._send(batch, self.session.request_timeout):
            return len(batch)
        return 0

    async def flush(self, timeout: float) -> int:
        """Best-effort send of everything pending within ``timeout`` seconds.

        Never raises; whatever is not delivered stays in the queue.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        delivered = 0
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                batch = self.queue.drain(self.batch_size)
                if not batch:
                    break
                if not await self._send(batch, remaining):
                    break
                delivered += len(batch)
        except Exception as e:
            logger.error(f"Final telemetry flush failed: {e}")

        pending = len(self.queue)
        if pending:
            logger.warning(f"{pending} telemetry report(s) still pending after flush")
        return delivered

    async def close(self) -> int:
        """Stop the periodic task, then flush once; both share the shutdown timeout."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.session.shutdown_timeout
        if self._task is not None:
            self._stopping.set()
            try:
                await asyncio.wait_for(self._task, timeout=self.session.shutdown_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Abandoned in-flight telemetry send after {self.session.shutdown_timeout}s"
                )
            except Exception as e:
                logger.error(f"Telemetry delivery task failed: {e}")
            self._task = None

        delivered = await self.flush(deadline - loop.time())
        logger.info(f"Telemetry delivery stopped ({delivered} report(s) flushed on shutdown)")
        return delivered

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Telemetry delivery tick failed: {e}")

    async def _send(self, batch: list[QueueEntry], timeout: float) -> bool:
        payload = [entry.to_dict() for entry in batch]
        try:
            await asyncio.wait_for(self.transport.send(payload), timeout=timeout)
        except asyncio.CancelledError:
            self.queue.requeue(batch)
            self.circuit.release_probe()
            raise
        except Exception as e:
            self.queue.requeue(batch)
            self.failed_batches += 1
            self.retry_count += 1
            self.circuit.record_failure()
            logger.warning(f"Telemetry batch of {len(batch)} failed, requeued: {e}")
            return False

        self.sent_batches += 1
        self.delivered_reports += len(batch)
        self.circuit.record_success()
        logger.debug(f"Telemetry batch of {len(batch)} delivered")
        return True

    def get_statistics(self) -> dict:
        return {
            "sent_batches": self.sent_batches,
            "failed_batches": self.failed_batches,
            "retry_count": self.retry_count,
            "delivered_reports": self.delivered_reports,
            "pending": len(self.queue),
            "dropped": self.queue.dropped_count,
            "circuit": self.circuit.state,
        }
