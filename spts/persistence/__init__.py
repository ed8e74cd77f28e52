"""
Persistence module for data storage.
"""

from .repositories import (
    AlertRepository, EnrollmentRepository, GradeNodeRepository, InMemoryRepository, StudentRepository
)

__all__ = [
    "InMemoryRepository",
    "StudentRepository",
    "EnrollmentRepository",
    "GradeNodeRepository",
    "AlertRepository",
]
