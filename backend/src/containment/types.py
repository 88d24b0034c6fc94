"""
Shared type definitions for the containment system.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Protocol, Sequence, Tuple


class Severity(Enum):
    """Severity attached to a report."""
    FATAL = "fatal"
    RECOVERABLE = "recoverable"


class ErrorCategory(Enum):
    """Coarse categories for classifying faults."""
    NETWORK = "network"
    TIMEOUT = "timeout"
    VALIDATION = "validation"
    PERMISSION = "permission"
    RESOURCE = "resource"
    UNKNOWN = "unknown"


class BoundaryStatus(Enum):
    """States of a containment boundary."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    RECOVERING = "recovering"


@dataclass(frozen=True)
class BoundaryState:
    """Current state of a boundary; ``fingerprint`` is only set when degraded."""
    status: BoundaryStatus
    fingerprint: Optional[str] = None

    @property
    def is_healthy(self) -> bool:
        return self.status is BoundaryStatus.HEALTHY

    @property
    def is_degraded(self) -> bool:
        return self.status is BoundaryStatus.DEGRADED


HEALTHY = BoundaryState(BoundaryStatus.HEALTHY)
RECOVERING = BoundaryState(BoundaryStatus.RECOVERING)


def degraded(fingerprint: str) -> BoundaryState:
    return BoundaryState(BoundaryStatus.DEGRADED, fingerprint)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FaultRecord:
    """A fault as captured by a boundary, before classification."""
    fault: BaseException
    boundary_id: str
    timestamp: datetime = field(default_factory=utcnow)
    component_stack: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ReportRecord:
    """Classified, transmittable unit of telemetry."""
    fingerprint: str
    severity: Severity
    message: str
    fault_type: str
    category: ErrorCategory
    environment: str
    release: str
    boundary_id: str
    timestamp: datetime
    component_stack: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Dropped:
    """Classifier result for a fault that was sampled out."""
    fingerprint: str


@dataclass
class QueueEntry:
    """A report waiting for delivery, merged across identical faults."""
    report: ReportRecord
    count: int = 1
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    attempts: int = 0

    def __post_init__(self):
        if self.first_seen is None:
            self.first_seen = self.report.timestamp
        if self.last_seen is None:
            self.last_seen = self.report.timestamp

    @property
    def fingerprint(self) -> str:
        return self.report.fingerprint

    def merge(self, other: 'QueueEntry') -> None:
        """Fold another entry for the same fingerprint into this one."""
        self.count += other.count
        self.first_seen = min(self.first_seen, other.first_seen)
        self.last_seen = max(self.last_seen, other.last_seen)
        self.attempts = max(self.attempts, other.attempts)

    def copy(self) -> 'QueueEntry':
        return QueueEntry(
            report=self.report,
            count=self.count,
            first_seen=self.first_seen,
            last_seen=self.last_seen,
            attempts=self.attempts
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for the wire and for the spool."""
        report = self.report
        return {
            "fingerprint": report.fingerprint,
            "message": report.message,
            "severity": report.severity.value,
            "fault_type": report.fault_type,
            "category": report.category.value,
            "count": self.count,
            "first_seen": self.first_seen.isoformat(),
            "last_seen": self.last_seen.isoformat(),
            "environment": report.environment,
            "release": report.release,
            "boundary_id": report.boundary_id,
            "component_stack": list(report.component_stack),
            "attempts": self.attempts
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'QueueEntry':
        """Create from dictionary."""
        first_seen = datetime.fromisoformat(data['first_seen'])
        last_seen = datetime.fromisoformat(data['last_seen'])
        report = ReportRecord(
            fingerprint=data['fingerprint'],
            severity=Severity(data['severity']),
            message=data['message'],
            fault_type=data['fault_type'],
            category=ErrorCategory(data.get('category', ErrorCategory.UNKNOWN.value)),
            environment=data['environment'],
            release=data['release'],
            boundary_id=data['boundary_id'],
            timestamp=last_seen,
            component_stack=tuple(data.get('component_stack') or ())
        )
        return cls(
            report=report,
            count=data.get('count', 1),
            first_seen=first_seen,
            last_seen=last_seen,
            attempts=data.get('attempts', 0)
        )


class Transport(Protocol):
    """Protocol for sending batches to the aggregator."""

    async def send(self, payload: Sequence[dict]) -> None:
        """Send one batch. Raises DeliveryError on failure."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...


@dataclass(frozen=True)
class FallbackProps:
    """What a fallback renderer gets to work with."""
    fault: BaseException
    fingerprint: str
    boundary_id: str
    reset: Any  # zero-argument callable exposed as the "retry" action
