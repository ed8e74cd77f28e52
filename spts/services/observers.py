"""
Grade-change handlers and the default notification pipeline.

The GPA recalculator must run before the risk detector, which reads the GPA
it has just written; priorities 0 and 10 encode that order.
"""

import logging
from typing import TYPE_CHECKING, Optional

from ..core.entities import AlertRequest, Enrollment, Student
from ..core.enums import AlertLevel, AlertType
from ..core.grade_tree import GradeNode
from ..core.interfaces import AlertSink, GradeObserver
from ..core.standing import AT_RISK_THRESHOLD, NORMAL_THRESHOLD
from ..logging_utils import log_alert_emitted, log_alert_skipped
from .notification_bus import NotificationBus

if TYPE_CHECKING:
    from ..config import PlatformConfig
    from .student_service import StudentService

logger = logging.getLogger(__name__)

AUTO_RESOLVER = "System_AutoResolve"
GPA_HANDLER_PRIORITY = 0
RISK_HANDLER_PRIORITY = 10


class GpaRecalculationHandler(GradeObserver):
    """Recomputes the student's cumulative GPA, credits and standing."""

    name = "GPA Recalculator"

    def __init__(self, student_service: 'StudentService'):
        self._student_service = student_service

    def on_grade_updated(self, student: Student, enrollment: Enrollment,
                         grade_node: Optional[GradeNode]) -> None:
        logger.debug("Recalculating GPA for %s after update to enrollment %s",
                     student.student_number, enrollment.id)
        self._student_service.recalculate_and_update_gpa(student)


class RiskDetectionHandler(GradeObserver):
    """Raises alerts for students whose cumulative GPA has fallen below the standing thresholds."""

    name = "Risk Detector"

    def __init__(self, alert_sink: AlertSink):
        self._alerts = alert_sink

    def on_grade_updated(self, student: Student, enrollment: Enrollment,
                         grade_node: Optional[GradeNode]) -> None:
        gpa = student.gpa
        if gpa is None:
            logger.debug("Student %s has no GPA yet, skipping risk detection",
                         student.student_number)
            return

        if gpa < AT_RISK_THRESHOLD:
            self._emit(student, AlertLevel.CRITICAL, AlertType.PROBATION,
                       f"Student GPA ({gpa:.2f}) is below probation threshold ({AT_RISK_THRESHOLD:.1f})")
        elif gpa < NORMAL_THRESHOLD:
            self._emit(student, AlertLevel.HIGH, AlertType.LOW_GPA,
                       f"Student GPA ({gpa:.2f}) is below at-risk threshold ({NORMAL_THRESHOLD:.1f})")
        else:
            resolved = (
                self._alerts.resolve_alerts_by_type(student.id, AlertType.PROBATION, AUTO_RESOLVER)
                + self._alerts.resolve_alerts_by_type(student.id, AlertType.LOW_GPA, AUTO_RESOLVER)
            )
            if resolved:
                logger.info("Auto-resolved %d risk alert(s) for student %s, GPA now %.2f",
                            resolved, student.student_number, gpa)

    def _emit(self, student: Student, level: AlertLevel, alert_type: AlertType, message: str) -> None:
        # One open alert per type
        if self._alerts.has_unresolved_alert(student.id, alert_type):
            log_alert_skipped(logger, student.student_number, alert_type.value)
            return
        self._alerts.create_alert(AlertRequest(student.id, level, alert_type, message))
        log_alert_emitted(logger, student.student_number, level.value, alert_type.value)


def build_default_bus(student_service: 'StudentService', alert_sink: AlertSink,
                      config: Optional['PlatformConfig'] = None) -> NotificationBus:
    """Assemble the canonical pipeline: GPA recalculation, then risk detection."""
    gpa_priority = config.gpa_handler_priority if config is not None else GPA_HANDLER_PRIORITY
    risk_priority = config.risk_handler_priority if config is not None else RISK_HANDLER_PRIORITY

    bus = NotificationBus()
    bus.attach(GpaRecalculationHandler(student_service), gpa_priority)
    bus.attach(RiskDetectionHandler(alert_sink), risk_priority)
    logger.info("Notification bus ready: %s", ", ".join(bus.handler_names))
    return bus
