"""
Tests for session configuration.
"""
import dataclasses

import pytest

from containment.exceptions import ConfigurationError
from containment.session import SessionContext


VALID_ENV = {
    "TELEMETRY_ENDPOINT": "https://telemetry.example.com/ingest",
    "TELEMETRY_ENVIRONMENT": "production",
    "TELEMETRY_RELEASE": "2024.06.1",
    "TELEMETRY_SAMPLE_RATE": "0.25",
}


class TestSessionFromEnv:
    """Test cases for SessionContext.from_env."""

    def test_required_values(self):
        """Test resolving the required values with defaults for the rest."""
        session = SessionContext.from_env(VALID_ENV)

        assert session.endpoint == "https://telemetry.example.com/ingest"
        assert session.environment == "production"
        assert session.release == "2024.06.1"
        assert session.sample_rate == 0.25
        assert session.max_queue_size == 100
        assert session.spool_url is None

    def test_optional_values_are_converted(self):
        """Test numeric optional values are parsed."""
        env = dict(VALID_ENV,
                   TELEMETRY_MAX_QUEUE_SIZE="7",
                   TELEMETRY_DELIVERY_INTERVAL="2.5",
                   TELEMETRY_BATCH_SIZE="3",
                   TELEMETRY_SPOOL_URL="sqlite+aiosqlite:///spool.db")

        session = SessionContext.from_env(env)

        assert session.max_queue_size == 7
        assert session.delivery_interval == 2.5
        assert session.batch_size == 3
        assert session.spool_url == "sqlite+aiosqlite:///spool.db"

    def test_missing_required_values_fail_loudly(self):
        """Test that every missing required value is named."""
        with pytest.raises(ConfigurationError) as exc_info:
            SessionContext.from_env({"TELEMETRY_ENDPOINT": "https://telemetry.example.com"})

        problems = " ".join(exc_info.value.problems)
        assert "TELEMETRY_ENVIRONMENT" in problems
        assert "TELEMETRY_RELEASE" in problems
        assert "TELEMETRY_SAMPLE_RATE" in problems

    def test_blank_value_counts_as_missing(self):
        """Test that an empty string is not accepted as a value."""
        env = dict(VALID_ENV, TELEMETRY_RELEASE="  ")

        with pytest.raises(ConfigurationError):
            SessionContext.from_env(env)

    def test_unparseable_number(self):
        """Test malformed numbers are rejected instead of defaulted."""
        env = dict(VALID_ENV, TELEMETRY_SAMPLE_RATE="often")

        with pytest.raises(ConfigurationError) as exc_info:
            SessionContext.from_env(env)

        assert "TELEMETRY_SAMPLE_RATE" in str(exc_info.value)


class TestSessionValidation:
    """Test cases for value validation."""

    @pytest.mark.parametrize("rate", [-0.1, 1.5, float("nan")])
    def test_sample_rate_out_of_range(self, rate):
        env = dict(VALID_ENV, TELEMETRY_SAMPLE_RATE=str(rate))

        with pytest.raises(ConfigurationError):
            SessionContext.from_env(env)

    @pytest.mark.parametrize("variable, value", [
        ("TELEMETRY_DELIVERY_INTERVAL", "inf"),
        ("TELEMETRY_DELIVERY_INTERVAL", "nan"),
        ("TELEMETRY_BACKOFF_INITIAL", "nan"),
        ("TELEMETRY_BACKOFF_MAX", "inf"),
        ("TELEMETRY_SHUTDOWN_TIMEOUT", "nan"),
        ("TELEMETRY_REQUEST_TIMEOUT", "-inf"),
    ])
    def test_non_finite_durations_fail_loudly(self, variable, value):
        env = dict(VALID_ENV, **{variable: value})

        with pytest.raises(ConfigurationError) as exc_info:
            SessionContext.from_env(env)

        field = variable.removeprefix("TELEMETRY_").lower()
        assert f"{field} must be a finite number" in exc_info.value.problems

    @pytest.mark.parametrize("endpoint",["telemetry.example.com", "ftp://example.com", "https://"])
    def test_endpoint_must_be_http_url(self, endpoint):
        env = dict(VALID_ENV, TELEMETRY_ENDPOINT=endpoint)

        with pytest.raises(ConfigurationError):
            SessionContext.from_env(env)

    def test_direct_construction_is_validated(self, session):
        """Test constructor validation matches from_env."""
        with pytest.raises(ConfigurationError):
            dataclasses.replace(session, max_queue_size=0)

        with pytest.raises(ConfigurationError):
            dataclasses.replace(session, backoff_max=1.0, backoff_initial=5.0)

    def test_session_is_read_only(self, session):
        with pytest.raises(dataclasses.FrozenInstanceError):
            session.sample_rate = 0.5
