"""Shared fixtures for containment tests."""
import pytest

from containment.session import SessionContext

from fakes import FakeClock, FakeTransport


@pytest.fixture
def session():
    return SessionContext(
        endpoint="https://telemetry.example.com/ingest",
        environment="test",
        release="1.0.0",
        sample_rate=1.0,
        max_queue_size=10,
        delivery_interval=0.05,
        batch_size=5,
        failure_threshold=5,
        backoff_initial=10.0,
        backoff_factor=2.0,
        backoff_max=60.0,
        request_timeout=1.0,
        shutdown_timeout=0.5
    )


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def clock():
    return FakeClock()
