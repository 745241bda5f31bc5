"""
Goal evaluator: turns per-task completion aggregates into goal progress.

Calculation types:
- percentage_task_count: distinct tasks done / all tasks in the goal's lists
- percentage_time:       minutes of tasks done / minutes of all tasks, then
                         measured against target_value (a percent)
- fixed_task_count:      completions (with multiplicities, single tasks once per
                         list reset period) / target_value
- fixed_time:            minutes completed (with multiplicities) / target_value

Every displayed number is rounded up (ceiling). Integer arithmetic keeps
boundaries exact: 2/3 -> 67, 7/100 -> 7.
"""
from dataclasses import dataclass, asdict

from nest.domain.errors import ValidationError

PERCENTAGE_TASK_COUNT = "percentage_task_count"
PERCENTAGE_TIME = "percentage_time"
FIXED_TASK_COUNT = "fixed_task_count"
FIXED_TIME = "fixed_time"

CALCULATION_TYPES = (PERCENTAGE_TASK_COUNT, PERCENTAGE_TIME, FIXED_TASK_COUNT, FIXED_TIME)


@dataclass(frozen=True)
class TaskAggregate:
    """Completions of one task inside one period"""
    task_id: int
    list_id: int
    duration_minutes: int
    allow_multiple_completions: bool
    completion_count: int
    # distinct list reset periods with a completion; None: the window is one period
    completed_periods: int | None = None

    @property
    def counted_completions(self) -> int:
        """Single-completion tasks count at most once per list reset period"""
        if self.allow_multiple_completions:
            return self.completion_count
        if self.completed_periods is None:
            return min(self.completion_count, 1)
        return min(self.completion_count, self.completed_periods)

    @property
    def is_done(self) -> bool:
        return self.completion_count > 0


@dataclass(frozen=True)
class GoalProgress:
    completed: int
    required: int
    percentage: int
    is_achieved: bool

    def to_dict(self) -> dict:
        return asdict(self)


def ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def ceil_percent(part: int, whole: int) -> int:
    """ceil(part / whole * 100); 0 when whole is 0"""
    if whole <= 0:
        return 0
    return ceil_div(part * 100, whole)


def _progress(completed: int, required: int) -> GoalProgress:
    percentage = ceil_percent(completed, required)
    return GoalProgress(
        completed=completed,
        required=required,
        percentage=percentage,
        is_achieved=percentage >= 100,
    )


def evaluate_goal(
    calculation_type: str,
    target_value: int,
    aggregates: list[TaskAggregate],
) -> GoalProgress:
    """
    Evaluate a goal against the aggregates of its lists for one period.

    Raises:
        ValidationError: unknown calculation type
    """
    if calculation_type == PERCENTAGE_TASK_COUNT:
        done = sum(1 for a in aggregates if a.is_done)
        return _progress(done, len(aggregates))

    if calculation_type == PERCENTAGE_TIME:
        total_minutes = sum(a.duration_minutes for a in aggregates)
        done_minutes = sum(a.duration_minutes for a in aggregates if a.is_done)
        return _progress(ceil_percent(done_minutes, total_minutes), target_value)

    if calculation_type == FIXED_TASK_COUNT:
        return _progress(sum(a.counted_completions for a in aggregates), target_value)

    if calculation_type == FIXED_TIME:
        minutes = sum(a.counted_completions * a.duration_minutes for a in aggregates)
        return _progress(minutes, target_value)

    raise ValidationError(
        f"Invalid calculation type: {calculation_type}", fields=["calculation_type"]
    )
