"""
Student service: registration, cumulative GPA, standing and graduation.
"""

import logging
from typing import List, Optional

from ..core.entities import Enrollment, Student
from ..core.enums import AcademicStanding, EnrollmentStatus
from ..core.exceptions import StateConflictError, ValidationError
from ..core.standing import StandingPolicy, is_transition, next_standing, policy_for
from ..logging_utils import log_standing_transition
from ..persistence.repositories import EnrollmentRepository, StudentRepository
from .concurrency_manager import ConcurrencyManager, student_resource

logger = logging.getLogger(__name__)

# Credits only count towards the degree at a passing GPA value
MIN_EARNED_GPA_VALUE = 1.0


class StudentService:
    """Keeps each student's GPA, earned credits and standing in step with their enrollments."""

    def __init__(self, student_repository: StudentRepository, enrollment_repository: EnrollmentRepository,
                 concurrency_manager: ConcurrencyManager, graduation_min_credits: int = 120,
                 graduation_min_gpa: float = 2.0):
        self._students = student_repository
        self._enrollments = enrollment_repository
        self._concurrency = concurrency_manager
        self._graduation_min_credits = graduation_min_credits
        self._graduation_min_gpa = graduation_min_gpa

    def register_student(self, student_number: str, full_name: str, email: Optional[str] = None) -> Student:
        """Register a new student; student numbers are unique."""
        if self._students.find_by_student_number(student_number) is not None:
            raise ValidationError(
                f"Student number already registered: {student_number}",
                details={'student_number': student_number}
            )
        student = Student(student_number, full_name, email)
        self._students.save(student)
        logger.info("Registered student %s (%s)", student.student_number, student.id)
        return student

    def get_student(self, student_id: str) -> Student:
        return self._students.get(student_id)

    def list_students(self) -> List[Student]:
        return self._students.find_all()

    def _completed_enrollments(self, student_id: str) -> List[Enrollment]:
        return self._enrollments.find_by_student_and_status(student_id, EnrollmentStatus.COMPLETED)

    def calculate_gpa(self, student_id: str) -> Optional[float]:
        """Credit-weighted mean GPA value over completed, graded enrollments."""
        total_points = 0.0
        total_credits = 0
        for enrollment in self._completed_enrollments(student_id):
            if enrollment.gpa_value is None:
                continue
            total_points += enrollment.gpa_value * enrollment.credits
            total_credits += enrollment.credits
        if total_credits == 0:
            return None
        return total_points / total_credits

    def calculate_total_credits(self, student_id: str) -> int:
        """Credits earned from completed enrollments with a passing GPA value."""
        return sum(
            enrollment.credits
            for enrollment in self._completed_enrollments(student_id)
            if enrollment.gpa_value is not None and enrollment.gpa_value >= MIN_EARNED_GPA_VALUE
        )

    def recalculate_and_update_gpa(self, student: Student) -> Student:
        """Recompute GPA and credits, then move the student through the standing machine."""
        with self._concurrency.lock(student_resource(student.id)):
            gpa = self.calculate_gpa(student.id)
            total_credits = self.calculate_total_credits(student.id)
            student.update_gpa(gpa, total_credits)

            old_standing = student.standing
            new_standing = next_standing(old_standing, gpa)
            if is_transition(old_standing, new_standing):
                student.apply_standing(new_standing)
                log_standing_transition(
                    logger, student.student_number, old_standing.value, new_standing.value, gpa
                )
            self._students.save(student)

        logger.debug(
            "Recalculated GPA for %s: gpa=%s credits=%d", student.student_number, gpa, total_credits
        )
        return student

    def graduate_student(self, student_id: str) -> Student:
        """Move a student who meets the degree requirements to GRADUATED."""
        student = self._students.get(student_id)
        with self._concurrency.lock(student_resource(student.id)):
            if student.standing is AcademicStanding.GRADUATED:
                raise StateConflictError(
                    f"Student {student.student_number} has already graduated",
                    details={'student_id': student.id}
                )
            gpa = self.calculate_gpa(student.id)
            total_credits = self.calculate_total_credits(student.id)
            if total_credits < self._graduation_min_credits:
                raise StateConflictError(
                    f"Insufficient credits for graduation: {total_credits} < {self._graduation_min_credits}",
                    details={'student_id': student.id, 'total_credits': total_credits,
                             'required_credits': self._graduation_min_credits}
                )
            if gpa is None or gpa < self._graduation_min_gpa:
                raise StateConflictError(
                    f"GPA too low for graduation: {gpa} < {self._graduation_min_gpa}",
                    details={'student_id': student.id, 'gpa': gpa,
                             'required_gpa': self._graduation_min_gpa}
                )

            old_standing = student.standing
            student.update_gpa(gpa, total_credits)
            student.apply_standing(AcademicStanding.GRADUATED)
            self._students.save(student)

        log_standing_transition(
            logger, student.student_number, old_standing.value, AcademicStanding.GRADUATED.value, gpa
        )
        return student

    def standing_policy(self, student_id: str) -> StandingPolicy:
        return policy_for(self._students.get(student_id).standing)
