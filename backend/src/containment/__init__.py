"""
Error containment and telemetry reporting for render passes.
"""
from .boundary import ContainmentBoundary
from .classification import ErrorClassifier
from .delivery import CircuitBreaker, DeliveryClient, HttpTransport
from .exceptions import (
    ConfigurationError,
    ContainmentError,
    DeliveryError,
    SpoolError
)
from .integration import TelemetryHandle, init
from .persistence import MemorySpool, SQLAlchemySpool
from .queue import ReportQueue
from .render import component, current_component_stack, rendering
from .session import SessionContext
from .types import (
    BoundaryState,
    BoundaryStatus,
    Dropped,
    ErrorCategory,
    FallbackProps,
    FaultRecord,
    QueueEntry,
    ReportRecord,
    Severity
)


__all__ = [
    # Entry point
    'init',
    'TelemetryHandle',
    'SessionContext',

    # Components
    'ContainmentBoundary',
    'ErrorClassifier',
    'ReportQueue',
    'DeliveryClient',
    'CircuitBreaker',
    'HttpTransport',
    'MemorySpool',
    'SQLAlchemySpool',

    # Render context
    'rendering',
    'component',
    'current_component_stack',

    # Types
    'BoundaryState',
    'BoundaryStatus',
    'Dropped',
    'ErrorCategory',
    'FallbackProps',
    'FaultRecord',
    'QueueEntry',
    'ReportRecord',
    'Severity',

    # Exceptions
    'ContainmentError',
    'ConfigurationError',
    'DeliveryError',
    'SpoolError'
]
