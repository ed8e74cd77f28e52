import pytest

from spts.core.enums import AcademicStanding, AlertLevel, AlertType, GradingScale
from spts.core.entities import AlertRequest, Enrollment
from spts.services.observers import AUTO_RESOLVER, RiskDetectionHandler, build_default_bus


def completed_enrollment(platform, student, gpa_value, credits, letter="D"):
    """Record a completed enrollment carrying an arbitrary GPA value."""
    enrollment = Enrollment(student.id, credits, GradingScale.SCALE_10)
    enrollment.complete(5.0, letter, gpa_value)
    platform.repositories['enrollment'].save(enrollment)
    return enrollment


class TestDefaultBus:
    def test_pipeline_order(self, platform):
        assert platform.notification_bus.handler_names == ["GPA Recalculator", "Risk Detector"]

    def test_priorities_from_config(self, platform):
        from spts.config import PlatformConfig

        config = PlatformConfig(gpa_handler_priority=20, risk_handler_priority=10)
        bus = build_default_bus(platform.student_service, platform.alert_service, config)
        assert bus.handler_names == ["Risk Detector", "GPA Recalculator"]

    def test_probation_from_low_gpa(self, platform, student):
        enrollment = completed_enrollment(platform, student, 1.2, 4)

        platform.notification_bus.notify(student, enrollment)

        assert student.gpa == pytest.approx(1.2)
        assert student.total_credits == 4
        assert student.standing is AcademicStanding.PROBATION
        alerts = platform.alert_service.get_alerts_by_student(student.id)
        assert [(a.level, a.type) for a in alerts] == [(AlertLevel.CRITICAL, AlertType.PROBATION)]

    def test_healthy_gpa_emits_nothing(self, platform, student):
        enrollment = completed_enrollment(platform, student, 4.0, 3, letter="A")

        platform.notification_bus.notify(student, enrollment)

        assert student.standing is AcademicStanding.NORMAL
        assert platform.alert_service.get_alerts_by_student(student.id) == []


class TestRiskDetection:
    @pytest.fixture
    def detector(self, platform):
        return RiskDetectionHandler(platform.alert_service)

    def prepare(self, platform, student, gpa, credits=3):
        enrollment = completed_enrollment(platform, student, gpa, credits)
        student.update_gpa(gpa, credits)
        return enrollment

    def test_low_gpa_alert(self, platform, student, detector):
        enrollment = self.prepare(platform, student, 1.7)
        detector(student, enrollment)
        alerts = platform.alert_service.get_unresolved_alerts(student.id)
        assert [(a.level, a.type) for a in alerts] == [(AlertLevel.HIGH, AlertType.LOW_GPA)]

    def test_boundaries(self, platform, student, detector):
        enrollment = self.prepare(platform, student, 1.5)
        detector(student, enrollment)
        assert platform.alert_service.has_unresolved_alert(student.id, AlertType.LOW_GPA)
        assert not platform.alert_service.has_unresolved_alert(student.id, AlertType.PROBATION)

        student.update_gpa(2.0, 3)
        detector(student, enrollment)
        assert platform.alert_service.get_unresolved_alerts(student.id) == []

    def test_skips_student_without_gpa(self, platform, student, detector):
        enrollment = completed_enrollment(platform, student, 0.0, 3)
        detector(student, enrollment)
        assert platform.alert_service.get_alerts_by_student(student.id) == []

    def test_alert_without_earned_credits(self, platform, student, detector):
        enrollment = completed_enrollment(platform, student, 0.0, 3)
        student.update_gpa(0.0, 0)
        detector(student, enrollment)
        alerts = platform.alert_service.get_alerts_by_student(student.id)
        assert [(a.level, a.type) for a in alerts] == [(AlertLevel.CRITICAL, AlertType.PROBATION)]

    def test_no_duplicate_while_unresolved(self, platform, student, detector):
        enrollment = self.prepare(platform, student, 1.0)
        detector(student, enrollment)
        detector(student, enrollment)
        assert len(platform.alert_service.get_alerts_by_student(student.id)) == 1

    def test_recovery_resolves_open_alerts(self, platform, student, detector):
        platform.alert_service.create_alert(
            AlertRequest(student.id, AlertLevel.CRITICAL, AlertType.PROBATION, "old"))
        platform.alert_service.create_alert(
            AlertRequest(student.id, AlertLevel.HIGH, AlertType.LOW_GPA, "old"))
        enrollment = self.prepare(platform, student, 3.0)

        detector(student, enrollment)

        alerts = platform.alert_service.get_alerts_by_student(student.id)
        assert len(alerts) == 2
        assert all(a.is_resolved and a.resolved_by == AUTO_RESOLVER for a in alerts)
