import pytest

from spts.core.enums import AcademicStanding, AlertLevel, AlertType, EnrollmentStatus, GradingScale
from spts.core.exceptions import (
    NotFoundError, NotificationError, RangeError, StateConflictError, UnknownScaleError, ValidationError
)


class TestEnroll:
    def test_enroll(self, platform, student, enroll):
        enrollment = enroll(student, credits=4, scale="scale_4", course_code="CS101")
        assert enrollment.grading_scale is GradingScale.SCALE_4
        assert enrollment.status is EnrollmentStatus.IN_PROGRESS
        assert platform.evaluation_service.get_enrollment(enrollment.id) is enrollment
        assert platform.evaluation_service.get_enrollments_by_student(student.id) == [enrollment]

    def test_unknown_scale(self, student, enroll):
        with pytest.raises(UnknownScaleError):
            enroll(student, scale="SCALE_7")

    def test_unknown_student(self, platform):
        with pytest.raises(NotFoundError):
            platform.evaluation_service.enroll("missing", 3, "SCALE_10")

    def test_credit_limit_of_standing(self, student, enroll):
        enroll(student, credits=12)
        enroll(student, credits=6)
        with pytest.raises(StateConflictError):
            enroll(student, credits=1)


class TestComplete:
    def test_scale10_end_to_end(self, platform, student, enroll):
        enrollment = enroll(student, credits=3, scale="SCALE_10")

        result = platform.evaluation_service.complete_enrollment(enrollment.id, 9.5)

        assert result.gpa_value == 4.0
        assert result.letter_grade == "A"
        assert result.passing
        assert enrollment.status is EnrollmentStatus.COMPLETED
        assert enrollment.gpa_value == 4.0
        assert student.gpa == 4.0
        assert student.total_credits == 3
        assert student.standing is AcademicStanding.NORMAL
        assert result.student_gpa == 4.0
        assert result.standing is AcademicStanding.NORMAL

    def test_failing_course_puts_student_on_probation(self, platform, student, enroll):
        enrollment = enroll(student, credits=4)

        result = platform.evaluation_service.complete_enrollment(enrollment.id, 4.2)

        assert result.gpa_value == 1.0
        assert result.standing is AcademicStanding.PROBATION
        alerts = platform.alert_service.get_alerts_by_student(student.id)
        assert [(a.level, a.type) for a in alerts] == [(AlertLevel.CRITICAL, AlertType.PROBATION)]

    def test_all_courses_failed_raises_probation_alert(self, platform, student, enroll):
        enrollment = enroll(student, credits=4)

        result = platform.evaluation_service.complete_enrollment(enrollment.id, 3.0)

        assert result.student_gpa == 0.0
        assert student.total_credits == 0
        assert result.standing is AcademicStanding.PROBATION
        alerts = platform.alert_service.get_alerts_by_student(student.id)
        assert [(a.level, a.type) for a in alerts] == [(AlertLevel.CRITICAL, AlertType.PROBATION)]

    def test_pass_fail(self, platform, student, enroll):
        enrollment = enroll(student, scale="PASS_FAIL")
        result = platform.evaluation_service.complete_enrollment(enrollment.id, 5.0)
        assert (result.gpa_value, result.letter_grade) == (1.0, "P")

    def test_score_from_grade_tree(self, platform, student, enroll):
        enrollment = enroll(student)
        grades = platform.grade_entry_service
        grades.create_entry(enrollment.id, "Coursework", weight=0.4, raw_score=8.5)
        grades.create_entry(enrollment.id, "Final exam", weight=0.6, raw_score=9.5)

        result = platform.evaluation_service.complete_enrollment(enrollment.id)

        assert result.score == pytest.approx(9.1)
        assert result.letter_grade == "A"

    def test_no_score_anywhere(self, platform, student, enroll):
        enrollment = enroll(student)
        with pytest.raises(ValidationError):
            platform.evaluation_service.complete_enrollment(enrollment.id)
        assert enrollment.is_open()

    @pytest.mark.parametrize("score", [-1.0, 10.5])
    def test_score_out_of_range(self, platform, student, enroll, score):
        enrollment = enroll(student)
        with pytest.raises(RangeError):
            platform.evaluation_service.complete_enrollment(enrollment.id, score)
        assert enrollment.is_open()

    def test_already_completed(self, platform, student, enroll):
        enrollment = enroll(student)
        platform.evaluation_service.complete_enrollment(enrollment.id, 8.0)
        with pytest.raises(StateConflictError):
            platform.evaluation_service.complete_enrollment(enrollment.id, 9.0)
        assert enrollment.final_score == 8.0

    def test_withdrawn(self, platform, student, enroll):
        enrollment = enroll(student)
        platform.evaluation_service.withdraw_enrollment(enrollment.id)
        with pytest.raises(StateConflictError):
            platform.evaluation_service.complete_enrollment(enrollment.id, 9.0)
        with pytest.raises(StateConflictError):
            platform.evaluation_service.withdraw_enrollment(enrollment.id)

    def test_unknown_enrollment(self, platform):
        with pytest.raises(NotFoundError):
            platform.evaluation_service.complete_enrollment("missing", 9.0)

    def test_handler_failure_surfaces(self, platform, student, enroll):
        def broken(s, e, node):
            raise RuntimeError("alerting is down")

        platform.notification_bus.attach(broken, 5)
        enrollment = enroll(student)

        with pytest.raises(NotificationError):
            platform.evaluation_service.complete_enrollment(enrollment.id, 9.5)

        # GPA ran before the failing handler
        assert student.gpa == 4.0
        assert enrollment.status is EnrollmentStatus.COMPLETED
        assert not platform.concurrency_manager.is_locked(f"student:{student.id}")


class TestPreview:
    def test_preview_has_no_side_effects(self, platform, student, enroll):
        enrollment = enroll(student)
        platform.grade_entry_service.create_entry(enrollment.id, "Exam", weight=1.0, raw_score=7.0)

        result = platform.evaluation_service.preview(enrollment.id)

        assert (result.score, result.letter_grade) == (7.0, "B")
        assert result.standing is None
        assert enrollment.is_open()
        assert student.gpa is None


class TestEvaluateComponents:
    def test_scales(self, platform):
        evaluations = platform.evaluation_service
        assert evaluations.evaluate_components("SCALE_10", [8, 7, 9], [0.3, 0.4, 0.3]) == pytest.approx(7.9)
        assert evaluations.evaluate_components("SCALE_4", [9, 8], [0.5, 0.5]) == pytest.approx(3.7)
        assert evaluations.evaluate_components("PASS_FAIL", [4, 4], [0.5, 0.5]) == 0.0

    def test_bad_weights(self, platform):
        with pytest.raises(ValidationError):
            platform.evaluation_service.evaluate_components("SCALE_10", [8, 9], [0.3, 0.3])
