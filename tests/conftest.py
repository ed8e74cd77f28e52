import pytest

from spts.core.grade_tree import GradeNode
from spts.main import SptsPlatform


@pytest.fixture
def platform():
    return SptsPlatform({'log_level': 'DEBUG', 'lock_timeout': 1.0})


@pytest.fixture
def student(platform):
    return platform.student_service.register_student("S001", "Alice Johnson", "alice@university.edu")


@pytest.fixture
def enroll(platform):
    """Open an enrollment for a student."""

    def _enroll(student, credits=3, scale="SCALE_10", course_code=None):
        return platform.evaluation_service.enroll(student.id, credits, scale, course_code=course_code)

    return _enroll


@pytest.fixture
def course_tree():
    """Midterm 8.0 (0.3), final 9.0 (0.5), lab 8.0 (0.2) -> 8.5."""
    course = GradeNode("Course")
    course.add_child(GradeNode("Midterm", 0.3, 8.0))
    course.add_child(GradeNode("Final", 0.5, 9.0))
    course.add_child(GradeNode("Lab", 0.2, 8.0))
    return course
