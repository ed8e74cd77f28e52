"""
Core module containing the grade tree, grading strategies, standing rules and entities.
"""

from .entities import AbstractEntity, Alert, AlertRequest, Enrollment, Student
from .enums import (
    AcademicStanding, AlertLevel, AlertType, EnrollmentStatus, GradeEntryType, GradingScale
)
from .exceptions import (
    ConcurrencyError, ConfigurationError, NotFoundError, NotificationError, PersistenceError,
    RangeError, SptsException, StateConflictError, UnknownScaleError, ValidationError
)
from .grade_tree import GradeNode, final_score, root_weights_sum_to_one
from .grading import (
    GradeOutcome, GradingStrategy, GradingStrategyFactory, PassFailStrategy,
    Scale10Strategy, Scale4Strategy, get_strategy
)
from .interfaces import AlertSink, GradeObserver, Repository
from .standing import (
    STANDING_POLICIES, StandingPolicy, next_standing, policy_for, standing_from_gpa
)

__all__ = [
    # Entities
    "AbstractEntity",
    "Alert",
    "AlertRequest",
    "Enrollment",
    "Student",
    "GradeNode",

    # Grade tree helpers
    "final_score",
    "root_weights_sum_to_one",

    # Grading
    "GradeOutcome",
    "GradingStrategy",
    "GradingStrategyFactory",
    "PassFailStrategy",
    "Scale10Strategy",
    "Scale4Strategy",
    "get_strategy",

    # Standing
    "STANDING_POLICIES",
    "StandingPolicy",
    "next_standing",
    "policy_for",
    "standing_from_gpa",

    # Interfaces
    "AlertSink",
    "GradeObserver",
    "Repository",

    # Enums
    "AcademicStanding",
    "AlertLevel",
    "AlertType",
    "EnrollmentStatus",
    "GradeEntryType",
    "GradingScale",

    # Exceptions
    "SptsException",
    "RangeError",
    "ValidationError",
    "UnknownScaleError",
    "NotFoundError",
    "StateConflictError",
    "ConcurrencyError",
    "NotificationError",
    "PersistenceError",
    "ConfigurationError",
]
