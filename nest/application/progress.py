"""
Completion aggregation and goal progress.

aggregate_completions() is the only place that turns task_completions rows
into per-task counts; both list views and goal progress go through it.
"""
import logging
from collections import defaultdict
from datetime import date

from sqlalchemy.orm import Session

from nest.domain.goal import TaskAggregate, GoalProgress, evaluate_goal
from nest.domain.period import Period, resolve_period
from nest.infrastructure.db.models import Goal, Task, TaskCompletion, TaskList
from nest.utils.clock import local_today

logger = logging.getLogger(__name__)


def aggregate_completions(
    db: Session,
    list_ids: list[int],
    period: Period | None,
    user_id: int | None = None,
) -> list[TaskAggregate]:
    """
    Per-task completion counts for every task in list_ids.

    Args:
        list_ids: lists to aggregate; ids of deleted lists simply match nothing
        period: inclusive [start 00:00:00, end 23:59:59] window, None = all-time
        user_id: count only this user's completions, None = any user

    Returns:
        One TaskAggregate per task (tasks without completions have count 0),
        ordered by list, sort order, id. completed_periods is the number of
        distinct list reset periods inside the window that hold a completion.
    """
    if not list_ids:
        return []

    tasks = (
        db.query(
            Task.id,
            Task.list_id,
            Task.duration_minutes,
            Task.allow_multiple_completions,
            TaskList.reset_period,
        )
        .join(TaskList, TaskList.id == Task.list_id)
        .filter(Task.list_id.in_(list_ids))
        .order_by(Task.list_id, Task.sort_order, Task.id)
        .all()
    )
    if not tasks:
        return []
    reset_periods = {task_id: reset_period for task_id, _, _, _, reset_period in tasks}

    query = (
        db.query(TaskCompletion.task_id, TaskCompletion.completed_at)
        .join(Task, Task.id == TaskCompletion.task_id)
        .filter(Task.list_id.in_(list_ids))
    )
    if period is not None:
        start, end = period.bounds()
        query = query.filter(
            TaskCompletion.completed_at >= start,
            TaskCompletion.completed_at <= end,
        )
    if user_id is not None:
        query = query.filter(TaskCompletion.completed_by == user_id)

    counts: dict[int, int] = defaultdict(int)
    periods: dict[int, set] = defaultdict(set)
    for task_id, completed_at in query:
        counts[task_id] += 1
        periods[task_id].add(resolve_period(reset_periods[task_id], completed_at.date()))

    return [
        TaskAggregate(
            task_id=task_id,
            list_id=list_id,
            duration_minutes=duration or 0,
            allow_multiple_completions=bool(allow_multiple),
            completion_count=counts[task_id],
            completed_periods=len(periods[task_id]),
        )
        for task_id, list_id, duration, allow_multiple, _ in tasks
    ]


def goal_period(period_type: str, reference_date: date, today: date) -> Period:
    """Goal period for reference_date; a future period is clamped to the current one"""
    period = resolve_period(period_type, reference_date)
    if period.start > today:
        period = resolve_period(period_type, today)
    return period


class GoalProgressService:
    """Progress of a goal for the period containing a reference date (today by default)"""

    def __init__(self, db: Session):
        self.db = db

    def evaluate(self, goal: Goal, reference_date: date | None = None) -> tuple[GoalProgress, Period]:
        today = local_today()
        period = goal_period(goal.period_type, reference_date or today, today)
        aggregates = aggregate_completions(
            self.db, goal.list_ids, period, user_id=goal.user_id
        )
        progress = evaluate_goal(goal.calculation_type, goal.target_value, aggregates)
        logger.debug(
            "Goal %d progress %s..%s: %d/%d (%d%%)",
            goal.id, period.start, period.end,
            progress.completed, progress.required, progress.percentage,
        )
        return progress, period

    def progress_dict(self, goal: Goal, reference_date: date | None = None) -> dict:
        progress, period = self.evaluate(goal, reference_date)
        return {
            "completed": progress.completed,
            "required": progress.required,
            "percentage": progress.percentage,
            "isAchieved": progress.is_achieved,
            "periodStart": period.start.isoformat(),
            "periodEnd": period.end.isoformat(),
        }
