"""
Core entities for the SPTS platform.
"""

import uuid
from abc import ABC
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .enums import AcademicStanding, AlertLevel, AlertType, EnrollmentStatus, GradingScale
from .exceptions import StateConflictError, ValidationError


MAX_GPA = 4.0


class AbstractEntity(ABC):
    """Base abstract entity with universal ID, lifecycle, and versioning."""

    def __init__(self, entity_id: Optional[str] = None):
        self._id = entity_id or str(uuid.uuid4())
        self._created_at = datetime.now(timezone.utc)
        self._updated_at = self._created_at
        self._version = 1

    @property
    def id(self) -> str:
        """Get the entity ID."""
        return self._id

    @property
    def created_at(self) -> datetime:
        """Get creation timestamp."""
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        """Get last update timestamp."""
        return self._updated_at

    @property
    def version(self) -> int:
        """Get current version."""
        return self._version

    def touch(self) -> None:
        """Record a modification."""
        self._updated_at = datetime.now(timezone.utc)
        self._version += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert entity to dictionary."""
        return {
            'id': self._id,
            'created_at': self._created_at.isoformat(),
            'updated_at': self._updated_at.isoformat(),
            'version': self._version,
        }

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id}, version={self._version})"


class Student(AbstractEntity):
    """Student record with cumulative GPA and academic standing."""

    def __init__(self, student_number: str, full_name: str, email: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        if not student_number:
            raise ValidationError("Student number is required")
        self._student_number = student_number
        self._full_name = full_name
        self._email = email
        self._gpa: Optional[float] = None
        self._total_credits = 0
        self._standing = AcademicStanding.NORMAL

    @property
    def student_number(self) -> str:
        return self._student_number

    @property
    def full_name(self) -> str:
        return self._full_name

    @property
    def email(self) -> Optional[str]:
        return self._email

    @property
    def gpa(self) -> Optional[float]:
        return self._gpa

    @property
    def total_credits(self) -> int:
        return self._total_credits

    @property
    def standing(self) -> AcademicStanding:
        return self._standing

    def update_gpa(self, gpa: Optional[float], total_credits: int) -> None:
        """Set cumulative GPA and earned credits."""
        if gpa is not None and not 0.0 <= gpa <= MAX_GPA:
            raise ValidationError(f"GPA must be between 0.0 and {MAX_GPA}")
        if total_credits < 0:
            raise ValidationError("Total credits cannot be negative")
        self._gpa = gpa
        self._total_credits = total_credits
        self.touch()

    def apply_standing(self, standing: AcademicStanding) -> None:
        """Store a standing produced by the standing rules."""
        if standing is not self._standing:
            self._standing = standing
            self.touch()

    def to_dict(self) -> Dict[str, Any]:
        """Convert student to dictionary."""
        base_dict = super().to_dict()
        base_dict.update({
            'student_number': self._student_number,
            'full_name': self._full_name,
            'email': self._email,
            'gpa': self._gpa,
            'total_credits': self._total_credits,
            'standing': self._standing.value,
        })
        return base_dict


class Enrollment(AbstractEntity):
    """A student's enrollment in one course offering."""

    def __init__(self, student_id: str, credits: int, grading_scale: GradingScale,
                 course_code: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        if credits is None or credits < 0:
            raise ValidationError("Credits cannot be negative")
        self._student_id = student_id
        self._course_code = course_code
        self._credits = credits
        self._grading_scale = grading_scale
        self._status = EnrollmentStatus.IN_PROGRESS
        self._final_score: Optional[float] = None
        self._letter_grade: Optional[str] = None
        self._gpa_value: Optional[float] = None
        self._enrolled_at = self._created_at
        self._completed_at: Optional[datetime] = None

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def course_code(self) -> Optional[str]:
        return self._course_code

    @property
    def credits(self) -> int:
        return self._credits

    @property
    def grading_scale(self) -> GradingScale:
        return self._grading_scale

    @property
    def status(self) -> EnrollmentStatus:
        return self._status

    @property
    def final_score(self) -> Optional[float]:
        return self._final_score

    @property
    def letter_grade(self) -> Optional[str]:
        return self._letter_grade

    @property
    def gpa_value(self) -> Optional[float]:
        return self._gpa_value

    @property
    def enrolled_at(self) -> datetime:
        return self._enrolled_at

    @property
    def completed_at(self) -> Optional[datetime]:
        return self._completed_at

    def is_open(self) -> bool:
        return self._status is EnrollmentStatus.IN_PROGRESS

    def complete(self, final_score: float, letter_grade: str, gpa_value: float) -> None:
        """Mark enrollment as completed with its evaluated grade."""
        if not self.is_open():
            raise StateConflictError(
                f"Enrollment {self._id} is already {self._status.value}",
                details={'enrollment_id': self._id, 'status': self._status.value}
            )
        self._record_grade(final_score, letter_grade, gpa_value)
        self._status = EnrollmentStatus.COMPLETED
        self._completed_at = datetime.now(timezone.utc)
        self.touch()

    def regrade(self, final_score: float, letter_grade: str, gpa_value: float) -> None:
        """Replace the grade of a completed enrollment."""
        if self._status is not EnrollmentStatus.COMPLETED:
            raise StateConflictError(
                f"Enrollment {self._id} is not completed",
                details={'enrollment_id': self._id, 'status': self._status.value}
            )
        self._record_grade(final_score, letter_grade, gpa_value)
        self.touch()

    def withdraw(self) -> None:
        """Mark enrollment as withdrawn."""
        if not self.is_open():
            raise StateConflictError(
                f"Enrollment {self._id} is already {self._status.value}",
                details={'enrollment_id': self._id, 'status': self._status.value}
            )
        self._status = EnrollmentStatus.WITHDRAWN
        self._completed_at = datetime.now(timezone.utc)
        self.touch()

    def _record_grade(self, final_score: float, letter_grade: str, gpa_value: float) -> None:
        self._final_score = final_score
        self._letter_grade = letter_grade
        self._gpa_value = gpa_value

    def to_dict(self) -> Dict[str, Any]:
        """Convert enrollment to dictionary."""
        base_dict = super().to_dict()
        base_dict.update({
            'student_id': self._student_id,
            'course_code': self._course_code,
            'credits': self._credits,
            'grading_scale': self._grading_scale.value,
            'status': self._status.value,
            'final_score': self._final_score,
            'letter_grade': self._letter_grade,
            'gpa_value': self._gpa_value,
            'enrolled_at': self._enrolled_at.isoformat(),
            'completed_at': self._completed_at.isoformat() if self._completed_at else None,
        })
        return base_dict


@dataclass(frozen=True)
class AlertRequest:
    """What the risk detector asks the alerting collaborator to record."""
    student_id: str
    level: AlertLevel
    type: AlertType
    message: str


class Alert(AbstractEntity):
    """An alert recorded for a student."""

    def __init__(self, student_id: str, level: AlertLevel, alert_type: AlertType, message: str, **kwargs):
        super().__init__(**kwargs)
        self._student_id = student_id
        self._level = level
        self._type = alert_type
        self._message = message
        self._is_read = False
        self._is_resolved = False
        self._resolved_by: Optional[str] = None
        self._resolved_at: Optional[datetime] = None

    @classmethod
    def from_request(cls, request: AlertRequest) -> 'Alert':
        return cls(request.student_id, request.level, request.type, request.message)

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def level(self) -> AlertLevel:
        return self._level

    @property
    def type(self) -> AlertType:
        return self._type

    @property
    def message(self) -> str:
        return self._message

    @property
    def is_read(self) -> bool:
        return self._is_read

    @property
    def is_resolved(self) -> bool:
        return self._is_resolved

    @property
    def resolved_by(self) -> Optional[str]:
        return self._resolved_by

    @property
    def resolved_at(self) -> Optional[datetime]:
        return self._resolved_at

    def mark_read(self) -> None:
        if not self._is_read:
            self._is_read = True
            self.touch()

    def resolve(self, resolved_by: str) -> None:
        if not self._is_resolved:
            self._is_resolved = True
            self._resolved_by = resolved_by
            self._resolved_at = datetime.now(timezone.utc)
            self.touch()

    def to_dict(self) -> Dict[str, Any]:
        """Convert alert to dictionary."""
        base_dict = super().to_dict()
        base_dict.update({
            'student_id': self._student_id,
            'level': self._level.value,
            'type': self._type.value,
            'message': self._message,
            'is_read': self._is_read,
            'is_resolved': self._is_resolved,
            'resolved_by': self._resolved_by,
            'resolved_at': self._resolved_at.isoformat() if self._resolved_at else None,
        })
        return base_dict
