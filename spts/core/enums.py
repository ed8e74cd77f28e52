"""
Enumerations and constants for the SPTS platform.
"""

from enum import Enum


class AcademicStanding(Enum):
    """Academic standing of a student."""
    NORMAL = "NORMAL"
    AT_RISK = "AT_RISK"
    PROBATION = "PROBATION"
    GRADUATED = "GRADUATED"


class GradingScale(Enum):
    """Grading scales an enrollment can be evaluated under."""
    SCALE_10 = "SCALE_10"
    SCALE_4 = "SCALE_4"
    PASS_FAIL = "PASS_FAIL"


class EnrollmentStatus(Enum):
    """Status of an enrollment."""
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    WITHDRAWN = "WITHDRAWN"


class GradeEntryType(Enum):
    """Kinds of grade entries."""
    COMPONENT = "COMPONENT"  # Midterm, assignment, lab...
    FINAL = "FINAL"


class AlertLevel(Enum):
    """Severity of an alert."""
    INFO = "INFO"
    WARNING = "WARNING"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class AlertType(Enum):
    """Types of alerts raised for a student."""
    LOW_GPA = "LOW_GPA"
    GPA_DROP = "GPA_DROP"
    STATUS_CHANGE = "STATUS_CHANGE"
    PROBATION = "PROBATION"
    IMPROVEMENT = "IMPROVEMENT"
