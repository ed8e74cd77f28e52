"""
Services module: grade evaluation, notification pipeline, students, grade entries and alerts.
"""

from .alert_service import AlertService
from .concurrency_manager import ConcurrencyManager, student_resource
from .evaluation_service import EvaluationResult, GradeEvaluationService
from .grade_entry_service import GradeEntryService
from .notification_bus import NotificationBus
from .observers import GpaRecalculationHandler, RiskDetectionHandler, build_default_bus
from .student_service import StudentService

__all__ = [
    "AlertService",
    "ConcurrencyManager",
    "student_resource",
    "EvaluationResult",
    "GradeEvaluationService",
    "GradeEntryService",
    "NotificationBus",
    "GpaRecalculationHandler",
    "RiskDetectionHandler",
    "build_default_bus",
    "StudentService",
]
