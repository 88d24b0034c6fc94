"""Main error classifier implementation."""
import logging
from typing import Any, Union

from ..session import SessionContext
from ..types import Dropped, ErrorCategory, FaultRecord, ReportRecord, Severity
from .categories import categorize
from .fingerprint import fallback_fingerprint, fault_type_name, fingerprint_fault, sample_value

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1024


class ErrorClassifier:
    """Turns captured faults into report records."""

    def __init__(self, session: SessionContext):
        """Initialize classifier with the session it reports for.

        Args:
            session: Read-only session supplying environment, release and
                sampling rate

        """
        self.session = session
        self._classified = 0
        self._dropped = 0
        self._fallbacks = 0

    def classify(
        self,
        fault: FaultRecord,
        severity: Severity = Severity.FATAL
    ) -> Union[ReportRecord, Dropped]:
        """Classify a fault.

        Args:
            fault: The captured fault
            severity: FATAL unless the catching boundary is configured as
                recoverable

        Returns:
            A report record, or Dropped when the fingerprint is sampled out

        """
        try:
            fingerprint = fingerprint_fault(fault.fault, fault.boundary_id)
        except Exception as e:
            self._fallbacks += 1
            logger.error(f"Could not fingerprint fault from {fault.boundary_id}: {e}")
            fingerprint = fallback_fingerprint(fault.boundary_id)

        if not self.is_sampled(fingerprint):
            self._dropped += 1
            logger.debug(f"Fault {fingerprint[:12]} sampled out")
            return Dropped(fingerprint)

        try:
            category = categorize(fault.fault)
        except Exception as e:
            logger.error(f"Could not categorize fault {fingerprint[:12]}: {e}")
            category = ErrorCategory.UNKNOWN

        report = ReportRecord(
            fingerprint=fingerprint,
            severity=severity,
            message=_describe(fault.fault),
            fault_type=_safe_type_name(fault.fault),
            category=category,
            environment=self.session.environment,
            release=self.session.release,
            boundary_id=fault.boundary_id,
            timestamp=fault.timestamp,
            component_stack=tuple(fault.component_stack)
        )
        self._classified += 1

        logger.debug(
            f"Classified {report.fault_type} in {report.boundary_id} as "
            f"{report.category.value}/{report.severity.value} ({fingerprint[:12]})"
        )
        return report

    def is_sampled(self, fingerprint: str) -> bool:
        """Whether reports with this fingerprint are kept.

        Derived from the fingerprint itself, so a recurring fault is either
        always reported or never reported within a session.
        """
        return sample_value(fingerprint) < self.session.sample_rate

    def get_statistics(self) -> dict[str, Any]:
        """Get classification statistics."""
        return {
            "classified": self._classified,
            "dropped": self._dropped,
            "fallback_fingerprints": self._fallbacks,
            "sample_rate": self.session.sample_rate,
        }


def _describe(error: BaseException) -> str:
    try:
        message = str(error)
    except Exception:
        message = ""
    if not message:
        message = _safe_type_name(error)
    return message[:MAX_MESSAGE_LENGTH]


def _safe_type_name(error: BaseException) -> str:
    try:
        return fault_type_name(error)
    except Exception:
        return type(error).__name__
