"""Tests for the goal evaluator: formulas and ceiling rounding"""
import pytest

from nest.domain.errors import ValidationError
from nest.domain.goal import (
    TaskAggregate,
    ceil_percent,
    evaluate_goal,
)


def agg(task_id, count=0, duration=0, multiple=False, list_id=1, periods=None):
    return TaskAggregate(
        task_id=task_id,
        list_id=list_id,
        duration_minutes=duration,
        allow_multiple_completions=multiple,
        completion_count=count,
        completed_periods=periods,
    )


class TestCeilPercent:
    def test_rounds_up(self):
        assert ceil_percent(2, 3) == 67

    def test_just_above_integer(self):
        """66.01% -> 67, not 66"""
        assert ceil_percent(6601, 10000) == 67

    def test_exact_values_stay_exact(self):
        assert ceil_percent(7, 100) == 7
        assert ceil_percent(45, 60) == 75
        assert ceil_percent(3, 3) == 100

    def test_zero_denominator(self):
        assert ceil_percent(5, 0) == 0


class TestPercentageTaskCount:
    def test_two_of_three(self):
        progress = evaluate_goal("percentage_task_count", 100, [agg(1, 1), agg(2, 1), agg(3, 0)])
        assert (progress.completed, progress.required, progress.percentage) == (2, 3, 67)
        assert progress.is_achieved is False

    def test_repeated_completions_count_once(self):
        progress = evaluate_goal("percentage_task_count", 100, [agg(1, 4, multiple=True), agg(2, 0)])
        assert progress.completed == 1
        assert progress.percentage == 50

    def test_no_tasks(self):
        progress = evaluate_goal("percentage_task_count", 80, [])
        assert (progress.completed, progress.required, progress.percentage) == (0, 0, 0)
        assert progress.is_achieved is False

    def test_all_done_is_achieved(self):
        progress = evaluate_goal("percentage_task_count", 100, [agg(1, 1), agg(2, 1)])
        assert progress.percentage == 100
        assert progress.is_achieved is True


class TestPercentageTime:
    def test_percent_of_target_percent(self):
        # 20 of 30 minutes done -> 67% of time; target 80% -> ceil(67 / 80 * 100) = 84
        aggregates = [agg(1, 1, duration=20), agg(2, 0, duration=10)]
        progress = evaluate_goal("percentage_time", 80, aggregates)
        assert progress.completed == 67
        assert progress.required == 80
        assert progress.percentage == 84
        assert progress.is_achieved is False

    def test_done_task_counts_its_duration_once(self):
        aggregates = [agg(1, 3, duration=30, multiple=True), agg(2, 0, duration=70)]
        progress = evaluate_goal("percentage_time", 30, aggregates)
        assert progress.completed == 30
        assert progress.percentage == 100
        assert progress.is_achieved is True

    def test_no_duration_available(self):
        progress = evaluate_goal("percentage_time", 50, [agg(1, 1, duration=0)])
        assert progress.completed == 0
        assert progress.percentage == 0


class TestFixedTaskCount:
    def test_multiplicities(self):
        # multi task done 3 times counts 3, single task completed twice counts once
        aggregates = [agg(1, 3, multiple=True), agg(2, 2, multiple=False), agg(3, 0)]
        progress = evaluate_goal("fixed_task_count", 5, aggregates)
        assert progress.completed == 4
        assert progress.required == 5
        assert progress.percentage == 80

    def test_exactly_100_is_achieved(self):
        progress = evaluate_goal("fixed_task_count", 5, [agg(1, 5, multiple=True)])
        assert progress.percentage == 100
        assert progress.is_achieved is True

    def test_99_is_not_achieved(self):
        progress = evaluate_goal("fixed_task_count", 100, [agg(1, 99, multiple=True)])
        assert progress.percentage == 99
        assert progress.is_achieved is False

    def test_single_task_counts_once_per_list_period(self):
        """Done on 10 separate days of a daily list inside a monthly goal"""
        progress = evaluate_goal("fixed_task_count", 10, [agg(1, 10, periods=10)])
        assert progress.completed == 10
        assert progress.is_achieved is True

    def test_repeats_within_one_list_period_count_once(self):
        progress = evaluate_goal("fixed_task_count", 4, [agg(1, 3, periods=2)])
        assert progress.completed == 2

    def test_overachievement_is_not_capped(self):
        progress = evaluate_goal("fixed_task_count", 2, [agg(1, 3, multiple=True)])
        assert progress.percentage == 150
        assert progress.is_achieved is True


class TestFixedTime:
    def test_two_completions_of_20_and_25_minutes(self):
        aggregates = [agg(1, 1, duration=20), agg(2, 1, duration=25), agg(3, 0, duration=40)]
        progress = evaluate_goal("fixed_time", 60, aggregates)
        assert progress.completed == 45
        assert progress.required == 60
        assert progress.percentage == 75
        assert progress.is_achieved is False

    def test_repeated_task_adds_duration_each_time(self):
        progress = evaluate_goal("fixed_time", 30, [agg(1, 3, duration=10, multiple=True)])
        assert progress.completed == 30
        assert progress.is_achieved is True


def test_unknown_calculation_type():
    with pytest.raises(ValidationError):
        evaluate_goal("streak", 1, [])


def test_to_dict_shape():
    progress = evaluate_goal("fixed_task_count", 3, [agg(1, 2, multiple=True)])
    assert progress.to_dict() == {
        "completed": 2, "required": 3, "percentage": 67, "is_achieved": False,
    }
