"""
Containment boundary around the render of a subtree.
"""
import logging
from typing import Any, Callable, Optional, Sequence

from .classification import ErrorClassifier, fallback_fingerprint
from .queue import ReportQueue
from .render import fault_component_stack, rendering
from .types import (
    HEALTHY,
    RECOVERING,
    BoundaryState,
    BoundaryStatus,
    Dropped,
    ErrorCategory,
    FallbackProps,
    FaultRecord,
    ReportRecord,
    Severity,
    degraded,
    utcnow,
)

logger = logging.getLogger(__name__)

Fallback = Callable[[FallbackProps], Any]


class ContainmentBoundary:
    """Isolates faults raised while rendering one subtree.

    Healthy: the subtree is rendered inside a try. A fault is reported and
    the boundary turns Degraded, rendering ``fallback`` instead of the
    subtree until it is explicitly reset (``reset()`` or a change of
    ``reset_keys``). After a reset the boundary is Recovering until the
    next render either succeeds (Healthy) or faults again (Degraded).

    The fallback is rendered outside the try, so a fault raised by the
    fallback itself reaches the enclosing boundary instead of looping here.
    Only ``Exception`` subclasses are contained; ``KeyboardInterrupt`` and
    ``SystemExit`` pass through.
    """

    def __init__(
        self,
        boundary_id: str,
        classifier: ErrorClassifier,
        queue: ReportQueue,
        fallback: Fallback,
        recoverable: bool = False,
        on_reset: Optional[Callable[[], None]] = None
    ):
        self.boundary_id = boundary_id
        self.classifier = classifier
        self.queue = queue
        self.fallback = fallback
        self.severity = Severity.RECOVERABLE if recoverable else Severity.FATAL
        self.on_reset = on_reset
        self._state: BoundaryState = HEALTHY
        self._fault: Optional[BaseException] = None
        self._reset_keys: Optional[tuple] = None

    def current_state(self) -> BoundaryState:
        return self._state

    def render(self, subtree: Callable[[], Any], reset_keys: Optional[Sequence[Any]] = None) -> Any:
        """Render ``subtree``, or the fallback while degraded."""
        if reset_keys is not None:
            keys = tuple(reset_keys)
            if self._state.is_degraded and self._reset_keys is not None and keys != self._reset_keys:
                logger.info(f"Reset keys changed for boundary {self.boundary_id}")
                self.reset()
            self._reset_keys = keys

        if self._state.is_degraded:
            return self._render_fallback()

        try:
            with rendering(self.boundary_id):
                view = subtree()
        except Exception as e:
            self.on_fault(e)
            return self._render_fallback()

        if self._state.status is BoundaryStatus.RECOVERING:
            self._state = HEALTHY
            logger.info(f"Boundary {self.boundary_id} recovered")
        return view

    def on_fault(self, fault: BaseException, stack: Optional[Sequence[str]] = None) -> BoundaryState:
        """Report a fault caught in this boundary's subtree and degrade."""
        component_stack = tuple(stack) if stack is not None else fault_component_stack(fault)
        record = FaultRecord(
            fault=fault,
            boundary_id=self.boundary_id,
            timestamp=utcnow(),
            component_stack=component_stack
        )
        fingerprint = self._report(record)

        self._fault = fault
        self._state = degraded(fingerprint)
        logger.warning(
            f"Boundary {self.boundary_id} caught {type(fault).__name__} ({fingerprint[:12]})"
        )
        return self._state

    def reset(self) -> BoundaryState:
        """Leave the degraded state; the next render retries the subtree."""
        if not self._state.is_degraded:
            return self._state

        self._state = RECOVERING
        self._fault = None
        if self.on_reset is not None:
            self.on_reset()
        logger.info(f"Boundary {self.boundary_id} reset")
        return self._state

    def _report(self, record: FaultRecord) -> str:
        # Reporting must never break the render path.
        try:
            result = self.classifier.classify(record, self.severity)
            if not isinstance(result, Dropped):
                self.queue.enqueue(result)
            return result.fingerprint
        except Exception as e:
            logger.error(f"Could not report fault from boundary {self.boundary_id}: {e}")

        fingerprint = fallback_fingerprint(self.boundary_id)
        try:
            self.queue.enqueue(self._minimal_report(record, fingerprint))
        except Exception as e:
            logger.error(f"Could not queue fallback report for boundary {self.boundary_id}: {e}")
        return fingerprint

    def _minimal_report(self, record: FaultRecord, fingerprint: str) -> ReportRecord:
        session = self.classifier.session
        fault_type = type(record.fault).__name__
        return ReportRecord(
            fingerprint=fingerprint,
            severity=self.severity,
            message=fault_type,
            fault_type=fault_type,
            category=ErrorCategory.UNKNOWN,
            environment=session.environment,
            release=session.release,
            boundary_id=self.boundary_id,
            timestamp=record.timestamp,
            component_stack=tuple(record.component_stack)
        )

    def _render_fallback(self) -> Any:
        props = FallbackProps(
            fault=self._fault,
            fingerprint=self._state.fingerprint,
            boundary_id=self.boundary_id,
            reset=self.reset
        )
        return self.fallback(props)
