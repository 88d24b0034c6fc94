"""HTTP transport to the telemetry aggregator."""
import asyncio
import logging
from typing import Optional, Sequence

import aiohttp

from ..exceptions import DeliveryError

logger = logging.getLogger(__name__)


class HttpTransport:
    """POSTs batches as JSON to the aggregator endpoint.

    Any 2xx response counts as delivered; the body is ignored.
    """

    def __init__(self, endpoint: str, timeout: float = 10.0, headers: Optional[dict] = None):
        self.endpoint = endpoint
        self.timeout = timeout
        self.headers = headers or {}
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=self.headers
            )
        return self._session

    async def send(self, payload: Sequence[dict]) -> None:
        """Send one batch; raises DeliveryError on any failure."""
        session = self._get_session()
        try:
            async with session.post(self.endpoint, json={"reports": list(payload)}) as response:
                if not 200 <= response.status < 300:
                    raise DeliveryError(
                        f"Aggregator rejected batch with HTTP {response.status}",
                        status=response.status
                    )
        except aiohttp.ClientError as e:
            raise DeliveryError(f"Could not reach aggregator: {e}") from e
        except asyncio.TimeoutError as e:
            raise DeliveryError(f"Aggregator timed out after {self.timeout}s") from e

        logger.debug(f"Delivered {len(payload)} report(s) to {self.endpoint}")

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
