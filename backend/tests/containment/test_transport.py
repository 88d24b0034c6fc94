"""
Tests for the HTTP transport against a local aggregator.
"""
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from containment.delivery import HttpTransport
from containment.exceptions import DeliveryError


class Aggregator:
    """Minimal aggregator that records posted batches."""

    def __init__(self, status: int = 202):
        self.status = status
        self.received: list[dict] = []

    async def ingest(self, request: web.Request) -> web.Response:
        self.received.append(await request.json())
        return web.Response(status=self.status)

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/ingest", self.ingest)
        return app


async def start(aggregator: Aggregator) -> TestServer:
    server = TestServer(aggregator.app())
    await server.start_server()
    return server


class TestHttpTransport:
    """Test cases for HttpTransport."""

    @pytest.mark.asyncio
    async def test_posts_batch_as_json(self):
        aggregator = Aggregator()
        server = await start(aggregator)
        transport = HttpTransport(str(server.make_url("/ingest")))
        try:
            await transport.send([{"fingerprint": "a", "count": 2}, {"fingerprint": "b", "count": 1}])
        finally:
            await transport.close()
            await server.close()

        assert aggregator.received == [
            {"reports": [{"fingerprint": "a", "count": 2}, {"fingerprint": "b", "count": 1}]}
        ]

    @pytest.mark.asyncio
    async def test_non_success_status_raises(self):
        server = await start(Aggregator(status=503))
        transport = HttpTransport(str(server.make_url("/ingest")))
        try:
            with pytest.raises(DeliveryError) as exc_info:
                await transport.send([{"fingerprint": "a"}])
        finally:
            await transport.close()
            await server.close()

        assert exc_info.value.status == 503

    @pytest.mark.asyncio
    async def test_unreachable_aggregator_raises(self):
        server = await start(Aggregator())
        url = str(server.make_url("/ingest"))
        await server.close()

        transport = HttpTransport(url, timeout=2.0)
        try:
            with pytest.raises(DeliveryError) as exc_info:
                await transport.send([{"fingerprint": "a"}])
        finally:
            await transport.close()

        assert exc_info.value.status is None

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        transport = HttpTransport("http://127.0.0.1:9/ingest")

        await transport.close()
        await transport.close()
