"""
Repository pattern implementations for data access.

The stores are in-memory and keyed by entity id; any durable store can be
swapped in by implementing ``Repository``.
"""

import threading
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from ..core.entities import Alert, Enrollment, Student
from ..core.enums import AlertType, EnrollmentStatus
from ..core.exceptions import NotFoundError, PersistenceError
from ..core.grade_tree import GradeNode
from ..core.interfaces import Repository

T = TypeVar('T')


class InMemoryRepository(Repository[T], Generic[T]):
    """Base repository implementation with common functionality."""

    def __init__(self, entity_type: str):
        self._entity_type = entity_type
        self._entities: Dict[str, T] = {}
        self._lock = threading.RLock()

    @property
    def entity_type(self) -> str:
        return self._entity_type

    def save(self, entity: T) -> T:
        """Save an entity."""
        entity_id = getattr(entity, 'id', None)
        if not entity_id:
            raise PersistenceError(f"Cannot save {self._entity_type} without an id")
        with self._lock:
            self._entities[entity_id] = entity
            return entity

    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Find entity by ID."""
        with self._lock:
            return self._entities.get(entity_id)

    def get(self, entity_id: str) -> T:
        """Find entity by ID or raise ``NotFoundError``."""
        entity = self.find_by_id(entity_id)
        if entity is None:
            raise NotFoundError(
                f"{self._entity_type} not found with id: {entity_id}",
                details={'entity_type': self._entity_type, 'id': entity_id}
            )
        return entity

    def find_all(self, predicate: Optional[Callable[[T], bool]] = None) -> List[T]:
        """Find all entities matching a predicate, in insertion order."""
        with self._lock:
            entities = list(self._entities.values())
        if predicate is None:
            return entities
        return [entity for entity in entities if predicate(entity)]

    def delete(self, entity_id: str) -> bool:
        """Delete an entity by ID."""
        with self._lock:
            return self._entities.pop(entity_id, None) is not None

    def exists(self, entity_id: str) -> bool:
        with self._lock:
            return entity_id in self._entities

    def count(self) -> int:
        with self._lock:
            return len(self._entities)


class StudentRepository(InMemoryRepository[Student]):
    """Repository for students."""

    def __init__(self):
        super().__init__("Student")

    def find_by_student_number(self, student_number: str) -> Optional[Student]:
        matches = self.find_all(lambda s: s.student_number == student_number)
        return matches[0] if matches else None

    def find_with_gpa_below(self, threshold: float) -> List[Student]:
        return self.find_all(lambda s: s.gpa is not None and s.gpa < threshold)


class EnrollmentRepository(InMemoryRepository[Enrollment]):
    """Repository for enrollments."""

    def __init__(self):
        super().__init__("Enrollment")

    def find_by_student(self, student_id: str) -> List[Enrollment]:
        return self.find_all(lambda e: e.student_id == student_id)

    def find_by_student_and_status(self, student_id: str, status: EnrollmentStatus) -> List[Enrollment]:
        return self.find_all(lambda e: e.student_id == student_id and e.status is status)


class GradeNodeRepository(InMemoryRepository[GradeNode]):
    """Repository for grade entries; parents own their subtrees."""

    def __init__(self):
        super().__init__("GradeEntry")

    def find_by_enrollment(self, enrollment_id: str) -> List[GradeNode]:
        return self.find_all(lambda n: n.enrollment_id == enrollment_id)

    def find_roots_by_enrollment(self, enrollment_id: str) -> List[GradeNode]:
        return self.find_all(lambda n: n.enrollment_id == enrollment_id and n.is_root())

    def save_subtree(self, node: GradeNode) -> GradeNode:
        for member in node.iter_subtree():
            self.save(member)
        return node

    def delete_subtree(self, node: GradeNode) -> int:
        """Release a node and its descendants and drop them from the store."""
        with self._lock:
            released = node.delete_subtree()
            for member in released:
                self._entities.pop(member.id, None)
            return len(released)


class AlertRepository(InMemoryRepository[Alert]):
    """Repository for alerts."""

    def __init__(self):
        super().__init__("Alert")

    def find_by_student(self, student_id: str) -> List[Alert]:
        return self.find_all(lambda a: a.student_id == student_id)

    def find_unresolved(self, student_id: str, alert_type: Optional[AlertType] = None) -> List[Alert]:
        return self.find_all(
            lambda a: a.student_id == student_id
            and not a.is_resolved
            and (alert_type is None or a.type is alert_type)
        )
