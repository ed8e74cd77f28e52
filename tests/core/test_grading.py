import pytest

from spts.core.enums import GradingScale
from spts.core.exceptions import UnknownScaleError, ValidationError
from spts.core.grading import (
    GradingStrategyFactory, PassFailStrategy, Scale4Strategy, Scale10Strategy, get_strategy, lookup_breakpoint
)


class TestBreakpoints:
    @pytest.mark.parametrize("score, gpa, letter", [
        (10.0, 4.0, "A"),
        (9.0, 4.0, "A"),
        (8.99, 3.7, "A-"),
        (8.5, 3.7, "A-"),
        (8.0, 3.5, "B+"),
        (7.0, 3.0, "B"),
        (6.5, 2.5, "C+"),
        (5.5, 2.0, "C"),
        (5.0, 1.5, "D+"),
        (4.0, 1.0, "D"),
        (3.99, 0.0, "F"),
        (0.0, 0.0, "F"),
    ])
    def test_lookup(self, score, gpa, letter):
        assert lookup_breakpoint(score) == (gpa, letter)


class TestScale10:
    strategy = Scale10Strategy()

    def test_calculate(self):
        assert self.strategy.calculate([8, 7, 9], [0.3, 0.4, 0.3]) == pytest.approx(7.9, abs=0.01)

    def test_rounds_to_two_decimals(self):
        assert self.strategy.calculate([8.333, 7.111], [0.5, 0.5]) == 7.72

    def test_conversions(self):
        assert self.strategy.calculate_gpa(9.5) == 4.0
        assert self.strategy.calculate_letter_grade(9.5) == "A"
        assert self.strategy.is_passing(4.0)
        assert not self.strategy.is_passing(3.9)

    def test_metadata(self):
        assert self.strategy.name == "Scale 10"
        assert self.strategy.max_grade == 10.0
        assert self.strategy.passing_grade == 4.0


class TestScale4:
    strategy = Scale4Strategy()

    def test_calculate(self):
        assert self.strategy.calculate([9, 8], [0.5, 0.5]) == pytest.approx(3.7)

    def test_metadata(self):
        assert self.strategy.name == "Scale 4"
        assert self.strategy.max_grade == 4.0
        assert self.strategy.passing_grade == 1.0


class TestPassFail:
    strategy = PassFailStrategy()

    def test_pass_at_threshold(self):
        assert self.strategy.calculate([6, 4], [0.5, 0.5]) == 1.0

    def test_fail_below_threshold(self):
        assert self.strategy.calculate([4, 4], [0.5, 0.5]) == 0.0

    def test_conversions(self):
        assert self.strategy.calculate_gpa(5.0) == 1.0
        assert self.strategy.calculate_gpa(4.99) == 0.0
        assert self.strategy.calculate_letter_grade(7.0) == "P"
        assert self.strategy.calculate_letter_grade(2.0) == "F"

    def test_metadata(self):
        assert self.strategy.name == "Pass/Fail"
        assert self.strategy.max_grade == 1.0
        assert self.strategy.passing_grade == 1.0


@pytest.mark.parametrize("strategy", [Scale10Strategy(), Scale4Strategy(), PassFailStrategy()])
class TestAllStrategies:
    def test_missing_score(self, strategy):
        assert strategy.calculate_gpa(None) == 0.0
        assert strategy.calculate_letter_grade(None) == "F"
        assert not strategy.is_passing(None)

    def test_weights_must_sum_to_one(self, strategy):
        with pytest.raises(ValidationError):
            strategy.calculate([8.0, 9.0], [0.3, 0.3])

    @pytest.mark.parametrize("weights", [[float("nan"), 0.5], [1.5, -0.5], [float("inf"), 0.0]])
    def test_invalid_weight(self, strategy, weights):
        with pytest.raises(ValidationError):
            strategy.calculate([8.0, 9.0], weights)

    def test_length_mismatch(self, strategy):
        with pytest.raises(ValidationError):
            strategy.calculate([8.0, 9.0], [1.0])

    def test_empty(self, strategy):
        with pytest.raises(ValidationError):
            strategy.calculate([], [])

    def test_none(self, strategy):
        with pytest.raises(ValidationError):
            strategy.calculate(None, [1.0])

    def test_score_out_of_range(self, strategy):
        with pytest.raises(ValidationError):
            strategy.calculate([11.0], [1.0])

    def test_evaluate(self, strategy):
        outcome = strategy.evaluate(9.5)
        assert outcome.score == 9.5
        assert outcome.passing
        assert outcome.gpa_value == strategy.calculate_gpa(9.5)
        assert outcome.letter_grade == strategy.calculate_letter_grade(9.5)


class TestFactory:
    @pytest.mark.parametrize("scale_id, expected", [
        ("SCALE_10", Scale10Strategy),
        ("scale_4", Scale4Strategy),
        (" Pass_Fail ", PassFailStrategy),
        (GradingScale.SCALE_4, Scale4Strategy),
    ])
    def test_lookup(self, scale_id, expected):
        assert isinstance(GradingStrategyFactory.get_strategy(scale_id), expected)

    def test_instances_are_shared(self):
        assert get_strategy("SCALE_10") is get_strategy(GradingScale.SCALE_10)

    @pytest.mark.parametrize("scale_id", [None, "", "   ", "SCALE_100"])
    def test_unknown_scale(self, scale_id):
        with pytest.raises(UnknownScaleError) as exc_info:
            get_strategy(scale_id)
        assert exc_info.value.details['supported'] == ["SCALE_10", "SCALE_4", "PASS_FAIL"]
        assert "SCALE_10" in exc_info.value.message

    def test_unknown_scale_is_validation_error(self):
        with pytest.raises(ValidationError):
            get_strategy("GPA_5")
