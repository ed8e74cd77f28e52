"""
Alert service: stores, de-duplicates and resolves student alerts.
"""

import logging
from typing import Any, Dict, List, Optional

from ..core.entities import Alert, AlertRequest
from ..core.enums import AlertLevel, AlertType
from ..core.interfaces import AlertSink
from ..persistence.repositories import AlertRepository

logger = logging.getLogger(__name__)


class AlertService(AlertSink):
    """In-memory alerting collaborator."""

    def __init__(self, alert_repository: AlertRepository):
        self._alerts = alert_repository

    def create_alert(self, request: AlertRequest) -> Alert:
        """Record an alert."""
        alert = Alert.from_request(request)
        self._alerts.save(alert)
        logger.info(
            "Created %s alert %s for student %s",
            alert.level.value, alert.type.value, alert.student_id
        )
        return alert

    def has_unresolved_alert(self, student_id: str, alert_type: AlertType) -> bool:
        return bool(self._alerts.find_unresolved(student_id, alert_type))

    def resolve_alerts_by_type(self, student_id: str, alert_type: AlertType, resolved_by: str) -> int:
        """Resolve every open alert of one type for a student."""
        open_alerts = self._alerts.find_unresolved(student_id, alert_type)
        for alert in open_alerts:
            alert.resolve(resolved_by)
            self._alerts.save(alert)
        if open_alerts:
            logger.info(
                "Resolved %d %s alert(s) for student %s (by %s)",
                len(open_alerts), alert_type.value, student_id, resolved_by
            )
        return len(open_alerts)

    def get_alert(self, alert_id: str) -> Alert:
        return self._alerts.get(alert_id)

    def get_alerts_by_student(self, student_id: str, unresolved_only: bool = False) -> List[Alert]:
        if unresolved_only:
            return self._alerts.find_unresolved(student_id)
        return self._alerts.find_by_student(student_id)

    def get_unresolved_alerts(self, student_id: Optional[str] = None) -> List[Alert]:
        """Open alerts for one student, or for everyone."""
        if student_id is not None:
            return self._alerts.find_unresolved(student_id)
        return self._alerts.find_all(lambda a: not a.is_resolved)

    def mark_as_read(self, alert_id: str) -> Alert:
        alert = self._alerts.get(alert_id)
        alert.mark_read()
        return self._alerts.save(alert)

    def mark_as_resolved(self, alert_id: str, resolved_by: str) -> Alert:
        alert = self._alerts.get(alert_id)
        alert.resolve(resolved_by)
        return self._alerts.save(alert)

    def get_alert_summary(self, student_id: str) -> Dict[str, Any]:
        """Counts of a student's alerts by state and level."""
        alerts = self._alerts.find_by_student(student_id)
        by_level = {level.value: 0 for level in AlertLevel}
        for alert in alerts:
            if not alert.is_resolved:
                by_level[alert.level.value] += 1
        return {
            'student_id': student_id,
            'total': len(alerts),
            'unread': sum(1 for a in alerts if not a.is_read),
            'unresolved': sum(1 for a in alerts if not a.is_resolved),
            'unresolved_by_level': by_level,
        }
