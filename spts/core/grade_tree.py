"""
Hierarchical grade entries.

A grade tree mirrors how a course is assessed: the course is made of weighted
components (midterm, final, lab), a component may be made of weighted
sub-components (quizzes, assignments), and so on. Leaves carry the raw score
recorded by an evaluator; composites derive theirs from their children.

Scores are always on the 10-point scale and weights on [0, 1].
"""

import uuid
import weakref
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .enums import GradeEntryType
from .exceptions import RangeError, ValidationError


MIN_SCORE = 0.0
MAX_SCORE = 10.0
MIN_WEIGHT = 0.0
MAX_WEIGHT = 1.0
WEIGHT_TOLERANCE = 0.001


def _check_score(score: Optional[float]) -> Optional[float]:
    if score is None:
        return None
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise RangeError(
            f"Score must be between {MIN_SCORE} and {MAX_SCORE}, got {score}",
            details={'field': 'raw_score', 'value': score}
        )
    return float(score)


def _check_weight(weight: float) -> float:
    if weight is None or not MIN_WEIGHT <= weight <= MAX_WEIGHT:
        raise RangeError(
            f"Weight must be between {MIN_WEIGHT} and {MAX_WEIGHT}, got {weight}",
            details={'field': 'weight', 'value': weight}
        )
    return float(weight)


def _weighted_mean(nodes: Iterable['GradeNode']) -> Optional[float]:
    """Weighted mean over the nodes that resolve to a score.

    Nodes without a score contribute neither to the numerator nor to the
    denominator, so partial data yields a result scaled over what is known.
    """
    total_score = 0.0
    total_weight = 0.0
    for node in nodes:
        score = node.calculated_score()
        if score is None:
            continue
        total_score += score * node.weight
        total_weight += node.weight
    if total_weight > 0:
        return total_score / total_weight
    return None


class GradeNode:
    """A node in a weighted scoring tree."""

    def __init__(self, name: str, weight: float = 1.0, raw_score: Optional[float] = None,
                 entry_type: GradeEntryType = GradeEntryType.COMPONENT,
                 enrollment_id: Optional[str] = None, recorded_by: Optional[str] = None,
                 notes: Optional[str] = None, node_id: Optional[str] = None):
        if not name or not name.strip():
            raise ValidationError("Grade entry name cannot be empty")
        self._id = node_id or str(uuid.uuid4())
        self._name = name
        self._weight = _check_weight(weight)
        self._raw_score = _check_score(raw_score)
        self._entry_type = entry_type
        self._enrollment_id = enrollment_id
        self._recorded_by = recorded_by
        self._recorded_at = datetime.now(timezone.utc)
        self._notes = notes
        self._children: List['GradeNode'] = []
        self._parent_ref: Optional[weakref.ref] = None

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if not value or not value.strip():
            raise ValidationError("Grade entry name cannot be empty")
        self._name = value

    @property
    def weight(self) -> float:
        return self._weight

    @weight.setter
    def weight(self, value: float) -> None:
        self._weight = _check_weight(value)

    @property
    def raw_score(self) -> Optional[float]:
        return self._raw_score

    @raw_score.setter
    def raw_score(self, value: Optional[float]) -> None:
        self._raw_score = _check_score(value)
        self._recorded_at = datetime.now(timezone.utc)

    @property
    def entry_type(self) -> GradeEntryType:
        return self._entry_type

    @property
    def enrollment_id(self) -> Optional[str]:
        return self._enrollment_id

    @enrollment_id.setter
    def enrollment_id(self, value: Optional[str]) -> None:
        self._enrollment_id = value

    @property
    def recorded_by(self) -> Optional[str]:
        return self._recorded_by

    @recorded_by.setter
    def recorded_by(self, value: Optional[str]) -> None:
        self._recorded_by = value

    @property
    def recorded_at(self) -> datetime:
        return self._recorded_at

    @property
    def notes(self) -> Optional[str]:
        return self._notes

    @notes.setter
    def notes(self, value: Optional[str]) -> None:
        self._notes = value

    @property
    def children(self) -> List['GradeNode']:
        """Children in insertion order (a copy)."""
        return list(self._children)

    @property
    def parent(self) -> Optional['GradeNode']:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def is_leaf(self) -> bool:
        return not self._children

    def is_root(self) -> bool:
        return self.parent is None

    @property
    def depth(self) -> int:
        """Number of ancestors above this node."""
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def ancestors(self) -> Iterator['GradeNode']:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    # Composite structure

    def add_child(self, node: 'GradeNode') -> None:
        """Attach ``node`` as the last child of this node.

        A node has exactly one owner: if it is attached elsewhere it is moved.
        Attaching this node or one of its ancestors is rejected.
        """
        if node is self or any(ancestor is node for ancestor in self.ancestors()):
            raise ValidationError(
                f"Cannot add '{node.name}' under '{self.name}': it would create a cycle",
                details={'parent_id': self._id, 'child_id': node.id}
            )
        current_parent = node.parent
        if current_parent is self:
            return
        if current_parent is not None:
            current_parent.remove_child(node)
        self._children.append(node)
        node._parent_ref = weakref.ref(self)
        if node.enrollment_id is None:
            node.enrollment_id = self._enrollment_id

    def remove_child(self, node: 'GradeNode') -> None:
        """Detach a direct child and clear its parent reference."""
        for index, child in enumerate(self._children):
            if child is node:
                del self._children[index]
                node._parent_ref = None
                return
        raise ValidationError(
            f"'{node.name}' is not a child of '{self.name}'",
            details={'parent_id': self._id, 'child_id': node.id}
        )

    def delete_subtree(self) -> List['GradeNode']:
        """Detach this node and release every node beneath it.

        Returns the released nodes in pre-order, starting with this one.
        """
        parent = self.parent
        if parent is not None:
            parent.remove_child(self)
        released = []
        stack = [self]
        while stack:
            node = stack.pop()
            released.append(node)
            children = node._children
            node._children = []
            for child in children:
                child._parent_ref = None
            stack.extend(reversed(children))
        return released

    def iter_subtree(self) -> Iterator['GradeNode']:
        """Pre-order walk starting at this node."""
        yield self
        for child in self._children:
            yield from child.iter_subtree()

    def leaves(self) -> List['GradeNode']:
        return [node for node in self.iter_subtree() if node.is_leaf()]

    # Evaluation

    def calculated_score(self) -> Optional[float]:
        """Score of this node on the 10-point scale.

        Leaves return their raw score (possibly ``None``); composites return
        the weighted mean of the children that have a score.
        """
        if self.is_leaf():
            return self._raw_score
        return _weighted_mean(self._children)

    def weighted_value(self) -> Optional[float]:
        score = self.calculated_score()
        if score is None:
            return None
        return score * self._weight

    def to_dict(self, include_children: bool = True) -> Dict[str, Any]:
        """Convert node to dictionary."""
        parent = self.parent
        data = {
            'id': self._id,
            'name': self._name,
            'weight': self._weight,
            'raw_score': self._raw_score,
            'calculated_score': self.calculated_score(),
            'weighted_value': self.weighted_value(),
            'entry_type': self._entry_type.value,
            'enrollment_id': self._enrollment_id,
            'parent_id': parent.id if parent is not None else None,
            'recorded_by': self._recorded_by,
            'recorded_at': self._recorded_at.isoformat(),
            'notes': self._notes,
            'is_leaf': self.is_leaf(),
        }
        if include_children:
            data['children'] = [child.to_dict() for child in self._children]
        return data

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(name={self._name})"

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(id={self._id}, name={self._name!r}, "
                f"weight={self._weight}, raw_score={self._raw_score})")


def root_weights_sum_to_one(roots: Iterable[GradeNode]) -> bool:
    """Check that the root components of one enrollment sum to 1.0."""
    total = sum(node.weight for node in roots)
    return abs(total - 1.0) <= WEIGHT_TOLERANCE


def final_score(roots: Iterable[GradeNode]) -> Optional[float]:
    """Aggregate the root components of one enrollment into a course score."""
    return _weighted_mean(roots)
