"""
Grade entry service: builds and scores the grade tree of each enrollment.
"""

import logging
from typing import Any, Dict, List, Optional

from ..core.entities import Enrollment
from ..core.enums import EnrollmentStatus, GradeEntryType
from ..core.exceptions import StateConflictError
from ..core.grade_tree import GradeNode, final_score, root_weights_sum_to_one
from ..core.grading import get_strategy
from ..persistence.repositories import EnrollmentRepository, GradeNodeRepository, StudentRepository
from .concurrency_manager import ConcurrencyManager, student_resource
from .notification_bus import NotificationBus

logger = logging.getLogger(__name__)


class GradeEntryService:
    """Records component scores and aggregates them per enrollment."""

    def __init__(self, node_repository: GradeNodeRepository, enrollment_repository: EnrollmentRepository,
                 student_repository: StudentRepository, notification_bus: NotificationBus,
                 concurrency_manager: ConcurrencyManager):
        self._nodes = node_repository
        self._enrollments = enrollment_repository
        self._students = student_repository
        self._bus = notification_bus
        self._concurrency = concurrency_manager

    def _open_for_entries(self, enrollment_id: str) -> Enrollment:
        enrollment = self._enrollments.get(enrollment_id)
        if enrollment.status is EnrollmentStatus.WITHDRAWN:
            raise StateConflictError(
                f"Cannot record grades for withdrawn enrollment {enrollment_id}",
                details={'enrollment_id': enrollment_id, 'status': enrollment.status.value}
            )
        return enrollment

    def create_entry(self, enrollment_id: str, name: str, weight: float = 1.0,
                     raw_score: Optional[float] = None, parent_id: Optional[str] = None,
                     entry_type: GradeEntryType = GradeEntryType.COMPONENT,
                     recorded_by: Optional[str] = None, notes: Optional[str] = None) -> GradeNode:
        """Create a grade entry, as a root or under ``parent_id``.

        Adding to a completed enrollment regrades it like a score update.
        """
        enrollment = self._open_for_entries(enrollment_id)
        node = GradeNode(name, weight, raw_score, entry_type=entry_type, enrollment_id=enrollment_id,
                         recorded_by=recorded_by, notes=notes)
        parent = None
        if parent_id is not None:
            parent = self._nodes.get(parent_id)
            if parent.enrollment_id != enrollment_id:
                raise StateConflictError(
                    f"Grade entry {parent_id} belongs to another enrollment",
                    details={'parent_id': parent_id, 'enrollment_id': enrollment_id}
                )
        with self._concurrency.lock(student_resource(enrollment.student_id)):
            if parent is not None:
                parent.add_child(node)
            self._nodes.save(node)
            logger.info("Created grade entry '%s' (%s) for enrollment %s", name, node.id, enrollment_id)

            if enrollment.status is EnrollmentStatus.COMPLETED:
                self._regrade(enrollment, node)
        return node

    def add_child_entry(self, parent_id: str, name: str, weight: float = 1.0,
                        raw_score: Optional[float] = None, recorded_by: Optional[str] = None,
                        notes: Optional[str] = None) -> GradeNode:
        parent = self._nodes.get(parent_id)
        return self.create_entry(parent.enrollment_id, name, weight, raw_score, parent_id=parent_id,
                                 recorded_by=recorded_by, notes=notes)

    def get_entry(self, entry_id: str) -> GradeNode:
        return self._nodes.get(entry_id)

    def update_score(self, entry_id: str, score: Optional[float], recorded_by: Optional[str] = None) -> GradeNode:
        """Record a new raw score.

        For a completed enrollment the course grade is re-derived from the
        tree and the change is pushed through the notification bus.
        """
        node = self._nodes.get(entry_id)
        enrollment = self._open_for_entries(node.enrollment_id)
        with self._concurrency.lock(student_resource(enrollment.student_id)):
            node.raw_score = score
            if recorded_by is not None:
                node.recorded_by = recorded_by
            self._nodes.save(node)
            logger.info("Updated score of grade entry %s to %s", entry_id, score)

            if enrollment.status is EnrollmentStatus.COMPLETED:
                self._regrade(enrollment, node)
        return node

    def _regrade(self, enrollment: Enrollment, node: Optional[GradeNode]) -> None:
        # A tree that no longer resolves leaves the recorded grade in place
        score = self.calculate_final_grade(enrollment.id)
        if score is not None:
            outcome = get_strategy(enrollment.grading_scale).evaluate(score)
            enrollment.regrade(outcome.score, outcome.letter_grade, outcome.gpa_value)
            self._enrollments.save(enrollment)
            logger.info("Regraded enrollment %s: score=%.2f letter=%s",
                        enrollment.id, outcome.score, outcome.letter_grade)
        student = self._students.get(enrollment.student_id)
        self._bus.notify(student, enrollment, node)

    def delete_entry(self, entry_id: str) -> int:
        """Delete an entry and everything beneath it. Returns the number of entries removed.

        Deleting from a completed enrollment regrades it like a score update.
        """
        node = self._nodes.get(entry_id)
        enrollment = self._enrollments.get(node.enrollment_id)
        with self._concurrency.lock(student_resource(enrollment.student_id)):
            parent = node.parent
            removed = self._nodes.delete_subtree(node)
            logger.info("Deleted grade entry %s and %d descendant(s)", entry_id, removed - 1)

            if enrollment.status is EnrollmentStatus.COMPLETED:
                self._regrade(enrollment, parent)
        return removed

    def get_children(self, entry_id: str) -> List[GradeNode]:
        return self._nodes.get(entry_id).children

    def get_root_entries(self, enrollment_id: str) -> List[GradeNode]:
        self._enrollments.get(enrollment_id)
        return self._nodes.find_roots_by_enrollment(enrollment_id)

    def get_hierarchy(self, enrollment_id: str) -> List[Dict[str, Any]]:
        """Root entries with their nested children, as dictionaries."""
        return [root.to_dict() for root in self.get_root_entries(enrollment_id)]

    def get_entries_by_enrollment(self, enrollment_id: str) -> List[GradeNode]:
        self._enrollments.get(enrollment_id)
        return self._nodes.find_by_enrollment(enrollment_id)

    def get_leaf_entries(self, enrollment_id: str) -> List[GradeNode]:
        return [node for node in self.get_entries_by_enrollment(enrollment_id) if node.is_leaf()]

    def calculate_composite_score(self, entry_id: str) -> Optional[float]:
        return self._nodes.get(entry_id).calculated_score()

    def calculate_weighted_score(self, entry_id: str) -> Optional[float]:
        return self._nodes.get(entry_id).weighted_value()

    def calculate_final_grade(self, enrollment_id: str) -> Optional[float]:
        """Course score aggregated over the enrollment's root entries."""
        return final_score(self.get_root_entries(enrollment_id))

    def validate_weights(self, enrollment_id: str) -> bool:
        """Check that the root entries' weights sum to 1.0."""
        return root_weights_sum_to_one(self.get_root_entries(enrollment_id))
