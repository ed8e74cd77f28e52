"""
Grading strategies.

Every strategy takes scores on the 10-point scale and converts them under its
own rule. The set of scales is closed (see ``GradingScale``); the factory maps
each member to a shared, stateless instance.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .enums import GradingScale
from .exceptions import UnknownScaleError, ValidationError


WEIGHT_SUM_TOLERANCE = 0.001
MIN_SCORE = 0.0
MAX_SCORE = 10.0

# (minimum 10-point score, GPA value, letter grade), highest first
GRADE_BREAKPOINTS: Tuple[Tuple[float, float, str], ...] = (
    (9.0, 4.0, "A"),
    (8.5, 3.7, "A-"),
    (8.0, 3.5, "B+"),
    (7.0, 3.0, "B"),
    (6.5, 2.5, "C+"),
    (5.5, 2.0, "C"),
    (5.0, 1.5, "D+"),
    (4.0, 1.0, "D"),
)
FAILING_GPA = 0.0
FAILING_LETTER = "F"


def lookup_breakpoint(score: float) -> Tuple[float, str]:
    """Return the (GPA, letter) pair for a 10-point score."""
    for threshold, gpa, letter in GRADE_BREAKPOINTS:
        if score >= threshold:
            return gpa, letter
    return FAILING_GPA, FAILING_LETTER


@dataclass(frozen=True)
class GradeOutcome:
    """Result of converting one course score under a strategy."""
    score: float
    gpa_value: float
    letter_grade: str
    passing: bool


class GradingStrategy(ABC):
    """Abstract base class for grading strategies."""

    scale: GradingScale
    name: str
    max_grade: float
    passing_grade: float

    def calculate(self, scores: Sequence[float], weights: Sequence[float]) -> float:
        """Combine component scores and convert the weighted sum."""
        self._validate_input(scores, weights)
        weighted_sum = sum(score * weight for score, weight in zip(scores, weights))
        return self._convert(weighted_sum)

    @abstractmethod
    def _convert(self, weighted_sum: float) -> float:
        """Convert a weighted 10-point sum to this strategy's result."""
        pass

    @abstractmethod
    def calculate_gpa(self, score: Optional[float]) -> float:
        """GPA value for a 10-point score."""
        pass

    @abstractmethod
    def calculate_letter_grade(self, score: Optional[float]) -> str:
        """Letter grade for a 10-point score."""
        pass

    @abstractmethod
    def is_passing(self, score: Optional[float]) -> bool:
        """Check whether a 10-point score passes."""
        pass

    def evaluate(self, score: float) -> GradeOutcome:
        """Convert a single course score into all of its derived values."""
        return GradeOutcome(
            score=score,
            gpa_value=self.calculate_gpa(score),
            letter_grade=self.calculate_letter_grade(score),
            passing=self.is_passing(score)
        )

    def _validate_input(self, scores: Sequence[float], weights: Sequence[float]) -> None:
        if scores is None or weights is None:
            raise ValidationError("Scores and weights cannot be None")
        if len(scores) != len(weights):
            raise ValidationError(
                "Scores and weights must have the same length",
                details={'scores': len(scores), 'weights': len(weights)}
            )
        if not scores:
            raise ValidationError("Scores cannot be empty")

        for weight in weights:
            if weight is None or not math.isfinite(weight) or not 0.0 <= weight <= 1.0:
                raise ValidationError(
                    f"Weight must be between 0.0 and 1.0, got {weight}",
                    details={'weight': weight}
                )

        weight_sum = sum(weights)
        if abs(weight_sum - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValidationError(
                f"Weights must sum to 1.0, but got: {weight_sum}",
                details={'weight_sum': weight_sum}
            )

        for score in scores:
            if score is None or not MIN_SCORE <= score <= MAX_SCORE:
                raise ValidationError(
                    f"Score must be between {MIN_SCORE} and {MAX_SCORE}, got {score}",
                    details={'score': score}
                )

    def to_dict(self) -> Dict[str, object]:
        return {
            'scale': self.scale.value,
            'name': self.name,
            'max_grade': self.max_grade,
            'passing_grade': self.passing_grade,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class _BreakpointStrategy(GradingStrategy):
    """Shared behaviour of the scales that use the breakpoint table."""

    passing_score = 4.0

    def calculate_gpa(self, score: Optional[float]) -> float:
        if score is None:
            return FAILING_GPA
        return lookup_breakpoint(score)[0]

    def calculate_letter_grade(self, score: Optional[float]) -> str:
        if score is None:
            return FAILING_LETTER
        return lookup_breakpoint(score)[1]

    def is_passing(self, score: Optional[float]) -> bool:
        return score is not None and score >= self.passing_score


class Scale10Strategy(_BreakpointStrategy):
    """10-point scale; the course score stays on the 10-point scale."""

    scale = GradingScale.SCALE_10
    name = "Scale 10"
    max_grade = 10.0
    passing_grade = 4.0

    def _convert(self, weighted_sum: float) -> float:
        return round(weighted_sum, 2)


class Scale4Strategy(_BreakpointStrategy):
    """US 4-point scale; the weighted 10-point sum is mapped to a GPA value."""

    scale = GradingScale.SCALE_4
    name = "Scale 4"
    max_grade = 4.0
    passing_grade = 1.0

    def _convert(self, weighted_sum: float) -> float:
        return lookup_breakpoint(weighted_sum)[0]


class PassFailStrategy(GradingStrategy):
    """Binary grading: 5.0 and above passes."""

    scale = GradingScale.PASS_FAIL
    name = "Pass/Fail"
    max_grade = 1.0
    passing_grade = 1.0
    pass_threshold = 5.0

    def _convert(self, weighted_sum: float) -> float:
        return 1.0 if weighted_sum >= self.pass_threshold else 0.0

    def calculate_gpa(self, score: Optional[float]) -> float:
        return 1.0 if self.is_passing(score) else 0.0

    def calculate_letter_grade(self, score: Optional[float]) -> str:
        return "P" if self.is_passing(score) else "F"

    def is_passing(self, score: Optional[float]) -> bool:
        return score is not None and score >= self.pass_threshold


class GradingStrategyFactory:
    """Resolves a grading-scale identifier to its shared strategy."""

    _STRATEGIES: Dict[GradingScale, GradingStrategy] = {
        GradingScale.SCALE_10: Scale10Strategy(),
        GradingScale.SCALE_4: Scale4Strategy(),
        GradingScale.PASS_FAIL: PassFailStrategy(),
    }

    @classmethod
    def supported_scales(cls) -> List[str]:
        return [scale.value for scale in cls._STRATEGIES]

    @classmethod
    def resolve_scale(cls, scale_id: Union[str, GradingScale, None]) -> GradingScale:
        """Case-insensitive lookup of a scale identifier."""
        if isinstance(scale_id, GradingScale):
            return scale_id
        supported = cls.supported_scales()
        if scale_id is None or not str(scale_id).strip():
            raise UnknownScaleError(
                f"Grading scale cannot be empty. Supported scales: {', '.join(supported)}",
                details={'scale': scale_id, 'supported': supported}
            )
        try:
            return GradingScale(str(scale_id).strip().upper())
        except ValueError:
            raise UnknownScaleError(
                f"Unknown grading scale: {scale_id}. Supported scales: {', '.join(supported)}",
                details={'scale': scale_id, 'supported': supported}
            )

    @classmethod
    def get_strategy(cls, scale_id: Union[str, GradingScale, None]) -> GradingStrategy:
        return cls._STRATEGIES[cls.resolve_scale(scale_id)]


def get_strategy(scale_id: Union[str, GradingScale, None]) -> GradingStrategy:
    """Module-level shortcut for ``GradingStrategyFactory.get_strategy``."""
    return GradingStrategyFactory.get_strategy(scale_id)
