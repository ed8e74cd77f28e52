"""
Grade evaluation service.

Owns the enrollment lifecycle: an enrollment is opened, then either completed
with an evaluated grade or withdrawn. Completing one converts the course score
under the enrollment's grading scale and notifies the grade-change handlers,
which in turn update the student's GPA, standing and alerts.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from ..core.entities import Enrollment, Student
from ..core.enums import AcademicStanding, EnrollmentStatus, GradeEntryType, GradingScale
from ..core.exceptions import RangeError, StateConflictError, ValidationError
from ..core.grade_tree import MAX_SCORE, MIN_SCORE, GradeNode, final_score
from ..core.grading import GradeOutcome, GradingStrategy, GradingStrategyFactory
from ..core.standing import can_register
from ..logging_utils import log_enrollment_completed
from ..persistence.repositories import EnrollmentRepository, GradeNodeRepository, StudentRepository
from .concurrency_manager import ConcurrencyManager, student_resource
from .notification_bus import NotificationBus

logger = logging.getLogger(__name__)


@dataclass
class EvaluationResult:
    """Outcome of evaluating one enrollment."""
    enrollment_id: str
    student_id: str
    grading_scale: GradingScale
    score: float
    gpa_value: float
    letter_grade: str
    passing: bool
    student_gpa: Optional[float] = None
    standing: Optional[AcademicStanding] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'enrollment_id': self.enrollment_id,
            'student_id': self.student_id,
            'grading_scale': self.grading_scale.value,
            'score': self.score,
            'gpa_value': self.gpa_value,
            'letter_grade': self.letter_grade,
            'passing': self.passing,
            'student_gpa': self.student_gpa,
            'standing': self.standing.value if self.standing else None,
        }


class GradeEvaluationService:
    """Completes enrollments and fans the resulting grade out to the handlers."""

    def __init__(self, enrollment_repository: EnrollmentRepository, student_repository: StudentRepository,
                 node_repository: GradeNodeRepository, notification_bus: NotificationBus,
                 concurrency_manager: ConcurrencyManager):
        self._enrollments = enrollment_repository
        self._students = student_repository
        self._nodes = node_repository
        self._bus = notification_bus
        self._concurrency = concurrency_manager

    # Enrollment lifecycle

    def enroll(self, student_id: str, credits: int, grading_scale: Union[str, GradingScale],
               course_code: Optional[str] = None) -> Enrollment:
        """Open an enrollment, within the credit limit of the student's standing."""
        student = self._students.get(student_id)
        scale = GradingStrategyFactory.resolve_scale(grading_scale)
        in_progress = sum(
            e.credits for e in self._enrollments.find_by_student_and_status(student_id, EnrollmentStatus.IN_PROGRESS)
        )
        if not can_register(student.standing, in_progress + credits):
            raise StateConflictError(
                f"Student {student.student_number} in standing {student.standing.value} "
                f"cannot register for {in_progress + credits} credits",
                details={'student_id': student_id, 'standing': student.standing.value,
                         'requested_credits': in_progress + credits}
            )
        enrollment = Enrollment(student_id, credits, scale, course_code=course_code)
        self._enrollments.save(enrollment)
        logger.info("Enrolled student %s in %s (%s, %d credits)",
                    student.student_number, course_code or enrollment.id, scale.value, credits)
        return enrollment

    def get_enrollment(self, enrollment_id: str) -> Enrollment:
        return self._enrollments.get(enrollment_id)

    def get_enrollments_by_student(self, student_id: str) -> List[Enrollment]:
        self._students.get(student_id)
        return self._enrollments.find_by_student(student_id)

    def withdraw_enrollment(self, enrollment_id: str) -> Enrollment:
        enrollment = self._enrollments.get(enrollment_id)
        with self._concurrency.lock(student_resource(enrollment.student_id)):
            enrollment.withdraw()
            self._enrollments.save(enrollment)
        logger.info("Withdrew enrollment %s", enrollment_id)
        return enrollment

    # Evaluation

    def complete_enrollment(self, enrollment_id: str, raw_score: Optional[float] = None) -> EvaluationResult:
        """Finalize an enrollment's grade and notify the grade-change handlers.

        Without ``raw_score`` the course score is taken from the enrollment's
        grade tree. A handler failure surfaces as ``NotificationError``; the
        enrollment stays completed.
        """
        enrollment = self._enrollments.get(enrollment_id)
        self._ensure_open(enrollment)
        strategy = GradingStrategyFactory.get_strategy(enrollment.grading_scale)

        with self._concurrency.lock(student_resource(enrollment.student_id)):
            self._ensure_open(enrollment)
            score = self._resolve_score(enrollment, raw_score)
            outcome = strategy.evaluate(score)
            enrollment.complete(outcome.score, outcome.letter_grade, outcome.gpa_value)
            self._enrollments.save(enrollment)
            log_enrollment_completed(logger, enrollment.id, outcome.score, outcome.gpa_value,
                                     outcome.letter_grade)

            student = self._students.get(enrollment.student_id)
            self._bus.notify(student, enrollment, self._final_entry(enrollment))

        return self._result(enrollment, strategy, outcome, student)

    def preview(self, enrollment_id: str, raw_score: Optional[float] = None) -> EvaluationResult:
        """Evaluate an enrollment's current score without recording anything."""
        enrollment = self._enrollments.get(enrollment_id)
        strategy = GradingStrategyFactory.get_strategy(enrollment.grading_scale)
        outcome = strategy.evaluate(self._resolve_score(enrollment, raw_score))
        return self._result(enrollment, strategy, outcome)

    def evaluate_components(self, scale_id: Union[str, GradingScale], scores: Sequence[float],
                            weights: Sequence[float]) -> float:
        """Combine component scores under a grading scale."""
        return GradingStrategyFactory.get_strategy(scale_id).calculate(scores, weights)

    def _ensure_open(self, enrollment: Enrollment) -> None:
        if not enrollment.is_open():
            raise StateConflictError(
                f"Enrollment {enrollment.id} is already {enrollment.status.value}",
                details={'enrollment_id': enrollment.id, 'status': enrollment.status.value}
            )

    def _resolve_score(self, enrollment: Enrollment, raw_score: Optional[float]) -> float:
        score = raw_score
        if score is None:
            score = final_score(self._nodes.find_roots_by_enrollment(enrollment.id))
        if score is None:
            raise ValidationError(
                f"No score given and no graded entries recorded for enrollment {enrollment.id}",
                details={'enrollment_id': enrollment.id}
            )
        if not MIN_SCORE <= score <= MAX_SCORE:
            raise RangeError(
                f"Score must be between {MIN_SCORE} and {MAX_SCORE}, got {score}",
                details={'enrollment_id': enrollment.id, 'value': score}
            )
        return float(score)

    def _final_entry(self, enrollment: Enrollment) -> Optional[GradeNode]:
        roots = self._nodes.find_roots_by_enrollment(enrollment.id)
        for node in roots:
            if node.entry_type is GradeEntryType.FINAL:
                return node
        return roots[-1] if roots else None

    def _result(self, enrollment: Enrollment, strategy: GradingStrategy, outcome: GradeOutcome,
                student: Optional[Student] = None) -> EvaluationResult:
        return EvaluationResult(
            enrollment_id=enrollment.id,
            student_id=enrollment.student_id,
            grading_scale=strategy.scale,
            score=outcome.score,
            gpa_value=outcome.gpa_value,
            letter_grade=outcome.letter_grade,
            passing=outcome.passing,
            student_gpa=student.gpa if student else None,
            standing=student.standing if student else None,
        )
