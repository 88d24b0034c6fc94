"""
Session configuration for telemetry, resolved once at startup.
"""
import logging
import math
import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional
from urllib.parse import urlparse

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "TELEMETRY_"

REQUIRED_KEYS = ("endpoint", "environment", "release", "sample_rate")


@dataclass(frozen=True)
class SessionContext:
    """Read-only telemetry configuration.

    Built once and handed to the classifier and delivery client. Every
    value is validated on construction; a bad value raises
    ConfigurationError instead of falling back to a default, since a
    misconfigured reporter silently loses every future error.
    """
    endpoint: str
    environment: str
    release: str
    sample_rate: float
    max_queue_size: int = 100
    delivery_interval: float = 5.0
    batch_size: int = 20
    failure_threshold: int = 5
    backoff_initial: float = 10.0
    backoff_factor: float = 2.0
    backoff_max: float = 600.0
    request_timeout: float = 10.0
    shutdown_timeout: float = 2.0
    spool_url: Optional[str] = None

    def __post_init__(self):
        problems = _validate(self)
        if problems:
            raise ConfigurationError(problems)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'SessionContext':
        """Resolve the configuration from ``TELEMETRY_*`` variables."""
        environ = os.environ if environ is None else environ
        values = {}
        problems = []

        for f in fields(cls):
            key = ENV_PREFIX + f.name.upper()
            raw = environ.get(key)
            if raw is None or raw.strip() == "":
                if f.name in REQUIRED_KEYS:
                    problems.append(f"{key} is not set")
                continue
            raw = raw.strip()
            converter = _CONVERTERS.get(f.name, str)
            try:
                values[f.name] = converter(raw)
            except ValueError:
                problems.append(f"{key}={raw!r} is not a valid {converter.__name__}")

        if problems:
            raise ConfigurationError(problems)

        session = cls(**values)
        logger.info(
            f"Telemetry session resolved for {session.environment} "
            f"(release={session.release}, sample_rate={session.sample_rate})"
        )
        return session


_CONVERTERS = {
    "sample_rate": float,
    "max_queue_size": int,
    "delivery_interval": float,
    "batch_size": int,
    "failure_threshold": int,
    "backoff_initial": float,
    "backoff_factor": float,
    "backoff_max": float,
    "request_timeout": float,
    "shutdown_timeout": float,
}

_FLOAT_FIELDS = [name for name, convert in _CONVERTERS.items() if convert is float]


def _validate(session: SessionContext) -> list[str]:
    problems = []

    parsed = urlparse(session.endpoint or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        problems.append(f"endpoint {session.endpoint!r} must be an http(s) URL")

    if not session.environment:
        problems.append("environment must not be empty")
    if not session.release:
        problems.append("release must not be empty")

    if not 0.0 <= session.sample_rate <= 1.0:
        problems.append(f"sample_rate {session.sample_rate} must be between 0.0 and 1.0")

    for name in _FLOAT_FIELDS:
        if not math.isfinite(getattr(session, name)):
            problems.append(f"{name} must be a finite number")

    for name in ("max_queue_size", "batch_size", "failure_threshold"):
        if getattr(session, name) < 1:
            problems.append(f"{name} must be at least 1")

    for name in ("delivery_interval", "backoff_initial", "request_timeout", "shutdown_timeout"):
        if getattr(session, name) <= 0:
            problems.append(f"{name} must be positive")

    if session.backoff_factor < 1.0:
        problems.append("backoff_factor must be at least 1.0")
    if session.backoff_max < session.backoff_initial:
        problems.append("backoff_max must not be smaller than backoff_initial")

    return problems
