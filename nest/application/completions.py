"""
Completion use cases: mark a task done, undo the last completion.

Completions are never edited: done appends a row, undo deletes one.
"""
import logging

from sqlalchemy.orm import Session

from nest.application.lists import list_period
from nest.application.permissions import PermissionGate, user_role
from nest.application.tasks import get_task
from nest.domain import permissions as rules
from nest.domain.errors import ConflictError, NothingToUndoError, NotYourCompletionError
from nest.domain.period import Period
from nest.infrastructure.db.models import Task, TaskCompletion, TaskList, User
from nest.utils.clock import local_now, format_timestamp

logger = logging.getLogger(__name__)


def _current_period(db: Session, task: Task) -> Period | None:
    now = local_now()
    task_list = db.get(TaskList, task.list_id)
    return list_period(task_list, now.date())


def _completions_in_period(db: Session, task_id: int, period: Period | None):
    query = db.query(TaskCompletion).filter(TaskCompletion.task_id == task_id)
    if period is not None:
        start, end = period.bounds()
        query = query.filter(
            TaskCompletion.completed_at >= start,
            TaskCompletion.completed_at <= end,
        )
    return query


class CompleteTaskUseCase:
    """Record a completion; any list permission is enough"""

    def __init__(self, db: Session):
        self.db = db
        self.gate = PermissionGate(db)

    def execute(self, task_id: int, actor_user_id: int) -> int:
        task = get_task(self.db, task_id)
        self.gate.require_completion_rights(actor_user_id, task.list_id)

        period = _current_period(self.db, task)
        if not task.allow_multiple_completions:
            already = _completions_in_period(self.db, task.id, period).first()
            if already is not None:
                raise ConflictError("Task is already completed for this period")

        completion = TaskCompletion(
            task_id=task.id,
            completed_by=actor_user_id,
            completed_at=local_now(),
        )
        self.db.add(completion)
        self.db.commit()
        logger.info("Task %d completed by user %d", task.id, actor_user_id)
        return completion.id


class UndoCompletionUseCase:
    """
    Remove the most recent completion of a task in its current period.

    Allowed when the actor authored it, or when it has no author (legacy row)
    and the actor is owner/admin.
    """

    def __init__(self, db: Session):
        self.db = db
        self.gate = PermissionGate(db)

    def execute(self, task_id: int, actor: User) -> int:
        task = get_task(self.db, task_id)
        level = self.gate.require_completion_rights(actor.id, task.list_id)

        period = _current_period(self.db, task)
        last = (
            _completions_in_period(self.db, task.id, period)
            .order_by(TaskCompletion.completed_at.desc(), TaskCompletion.id.desc())
            .first()
        )
        if last is None:
            raise NothingToUndoError()

        if not rules.can_undo_completion(
            level, actor.id, last.completed_by, actor_is_admin=user_role(actor).is_admin
        ):
            raise NotYourCompletionError()

        completion_id = last.id
        self.db.delete(last)
        self.db.commit()
        logger.info("Completion %d of task %d undone by user %d", completion_id, task.id, actor.id)
        return completion_id


def get_task_completions(db: Session, task_id: int, actor_user_id: int) -> list[dict]:
    """Full completion history of a task, newest first"""
    task = get_task(db, task_id)
    PermissionGate(db).require_access(actor_user_id, task.list_id)

    rows = (
        db.query(TaskCompletion, User.username)
        .outerjoin(User, User.id == TaskCompletion.completed_by)
        .filter(TaskCompletion.task_id == task_id)
        .order_by(TaskCompletion.completed_at.desc(), TaskCompletion.id.desc())
        .all()
    )
    return [
        {
            "id": c.id,
            "task_id": c.task_id,
            "completed_by": c.completed_by,
            "username": username,
            "completed_at": format_timestamp(c.completed_at),
        }
        for c, username in rows
    ]
