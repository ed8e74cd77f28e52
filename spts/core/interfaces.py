"""
Core interfaces and abstract base classes for the SPTS platform.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Generic, List, Optional, TypeVar

from .enums import AlertType

if TYPE_CHECKING:
    from .entities import Alert, AlertRequest, Enrollment, Student
    from .grade_tree import GradeNode


T = TypeVar('T')


class Repository(ABC, Generic[T]):
    """Abstract base class for repositories."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Save an entity."""
        pass

    @abstractmethod
    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Find entity by ID."""
        pass

    @abstractmethod
    def find_all(self, predicate: Optional[Callable[[T], bool]] = None) -> List[T]:
        """Find all entities matching a predicate."""
        pass

    @abstractmethod
    def delete(self, entity_id: str) -> bool:
        """Delete an entity by ID."""
        pass


class GradeObserver(ABC):
    """Abstract base class for handlers notified when a grade is finalized."""

    name: str = "grade observer"

    @abstractmethod
    def on_grade_updated(self, student: 'Student', enrollment: 'Enrollment',
                         grade_node: Optional['GradeNode']) -> None:
        """Handle a grade change for a student's enrollment."""
        pass

    def __call__(self, student: 'Student', enrollment: 'Enrollment',
                 grade_node: Optional['GradeNode'] = None) -> None:
        self.on_grade_updated(student, enrollment, grade_node)


class AlertSink(ABC):
    """Alerting collaborator the risk detector talks to."""

    @abstractmethod
    def create_alert(self, request: 'AlertRequest') -> 'Alert':
        """Record an alert."""
        pass

    @abstractmethod
    def has_unresolved_alert(self, student_id: str, alert_type: AlertType) -> bool:
        """Check for an open alert of a given type."""
        pass

    @abstractmethod
    def resolve_alerts_by_type(self, student_id: str, alert_type: AlertType, resolved_by: str) -> int:
        """Resolve open alerts of a given type and return how many were resolved."""
        pass
