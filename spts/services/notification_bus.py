"""
Grade-change notification bus.

Handlers are registered once at start-up and run synchronously, in ascending
priority order, every time an enrollment's grade is finalized or revised.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..core.entities import Enrollment, Student
from ..core.exceptions import NotificationError
from ..core.grade_tree import GradeNode

logger = logging.getLogger(__name__)

GradeHandler = Callable[[Student, Enrollment, Optional[GradeNode]], None]


def handler_name(handler: GradeHandler) -> str:
    """Human readable name of a handler."""
    name = getattr(handler, 'name', None)
    if isinstance(name, str) and name:
        return name
    return getattr(handler, '__name__', handler.__class__.__name__)


@dataclass
class HandlerRegistration:
    """A handler and the position it runs at."""
    handler: GradeHandler
    priority: int
    sequence: int

    @property
    def name(self) -> str:
        return handler_name(self.handler)


class NotificationBus:
    """Ordered fan-out of grade changes to registered handlers."""

    def __init__(self):
        self._registrations: List[HandlerRegistration] = []
        self._sequence = 0
        self._lock = threading.RLock()

    def attach(self, handler: GradeHandler, priority: int = 0) -> None:
        """Register a handler. Lower priorities run first; ties keep attach order."""
        if not callable(handler):
            raise TypeError(f"Handler must be callable, got {handler!r}")
        with self._lock:
            if any(reg.handler is handler for reg in self._registrations):
                return
            self._sequence += 1
            self._registrations.append(HandlerRegistration(handler, priority, self._sequence))
            self._registrations.sort(key=lambda reg: (reg.priority, reg.sequence))
        logger.debug("Attached handler %s at priority %d", handler_name(handler), priority)

    def detach(self, handler: GradeHandler) -> bool:
        """Unregister a handler. Returns False if it was not attached."""
        with self._lock:
            for index, reg in enumerate(self._registrations):
                if reg.handler is handler:
                    del self._registrations[index]
                    logger.debug("Detached handler %s", reg.name)
                    return True
        return False

    @property
    def handler_names(self) -> List[str]:
        with self._lock:
            return [reg.name for reg in self._registrations]

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._registrations)

    def notify(self, student: Student, enrollment: Enrollment,
               grade_node: Optional[GradeNode] = None) -> None:
        """Run every handler in priority order on the caller's thread.

        The first handler that raises stops the fan-out; its error is
        re-raised as ``NotificationError``.
        """
        with self._lock:
            registrations = list(self._registrations)

        for reg in registrations:
            try:
                reg.handler(student, enrollment, grade_node)
            except Exception as e:
                logger.error(
                    "Handler %s failed for student %s, enrollment %s: %s",
                    reg.name, student.id, enrollment.id, e
                )
                raise NotificationError(
                    f"Grade handler '{reg.name}' failed: {e}",
                    details={
                        'handler': reg.name,
                        'student_id': student.id,
                        'enrollment_id': enrollment.id,
                    }
                ) from e
