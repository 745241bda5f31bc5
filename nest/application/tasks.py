"""Task use cases: create, edit, delete, reorder (list owners and admins)"""
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from nest.application.permissions import PermissionGate
from nest.domain.errors import NotFoundError, ValidationError
from nest.infrastructure.db.models import Task
from nest.utils.validation import clean_text, validate_non_negative_int

logger = logging.getLogger(__name__)

TITLE_MAX = 200
DESCRIPTION_MAX = 1000


def get_task(db: Session, task_id: int) -> Task:
    task = db.get(Task, task_id)
    if task is None:
        raise NotFoundError(f"Task #{task_id} not found")
    return task


class CreateTaskUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.gate = PermissionGate(db)

    def execute(
        self,
        actor_user_id: int,
        list_id: int,
        title: str,
        description: str | None = None,
        duration_minutes: int | None = 0,
        allow_multiple_completions: bool = False,
    ) -> int:
        self.gate.require_task_manager(actor_user_id, list_id)

        title = clean_text(title, "title", TITLE_MAX)
        description = clean_text(description, "description", DESCRIPTION_MAX, required=False)
        duration_minutes = validate_non_negative_int(duration_minutes, "duration_minutes")

        max_order = self.db.query(func.max(Task.sort_order)).filter(
            Task.list_id == list_id
        ).scalar()

        task = Task(
            list_id=list_id,
            title=title,
            description=description,
            duration_minutes=duration_minutes,
            allow_multiple_completions=bool(allow_multiple_completions),
            sort_order=(max_order + 1) if max_order is not None else 0,
            created_by=actor_user_id,
        )
        self.db.add(task)
        self.db.commit()
        logger.info("Task %d created in list %d by user %d", task.id, list_id, actor_user_id)
        return task.id


class UpdateTaskUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.gate = PermissionGate(db)

    def execute(self, task_id: int, actor_user_id: int, **changes) -> None:
        task = get_task(self.db, task_id)
        self.gate.require_task_manager(actor_user_id, task.list_id)

        if changes.get("title") is not None:
            task.title = clean_text(changes["title"], "title", TITLE_MAX)
        if "description" in changes:
            task.description = clean_text(
                changes["description"], "description", DESCRIPTION_MAX, required=False
            )
        if changes.get("duration_minutes") is not None:
            task.duration_minutes = validate_non_negative_int(
                changes["duration_minutes"], "duration_minutes"
            )
        if changes.get("allow_multiple_completions") is not None:
            task.allow_multiple_completions = bool(changes["allow_multiple_completions"])
        self.db.commit()


class DeleteTaskUseCase:
    """Hard delete; completions cascade"""

    def __init__(self, db: Session):
        self.db = db
        self.gate = PermissionGate(db)

    def execute(self, task_id: int, actor_user_id: int) -> None:
        task = get_task(self.db, task_id)
        self.gate.require_task_manager(actor_user_id, task.list_id)
        self.db.delete(task)
        self.db.commit()
        logger.info("Task %d deleted by user %d", task_id, actor_user_id)


class ReorderTasksUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.gate = PermissionGate(db)

    def execute(self, actor_user_id: int, list_id: int, task_ids: list[int]) -> None:
        self.gate.require_task_manager(actor_user_id, list_id)
        if len(set(task_ids)) != len(task_ids):
            raise ValidationError("taskIds must not contain duplicates", fields=["taskIds"])

        tasks = {
            t.id: t
            for t in self.db.query(Task).filter(Task.id.in_(task_ids)).all()
        }
        foreign = [tid for tid in task_ids if tid not in tasks or tasks[tid].list_id != list_id]
        if foreign:
            raise ValidationError(
                f"Tasks {foreign} do not belong to list #{list_id}", fields=["taskIds"]
            )

        for index, task_id in enumerate(task_ids):
            tasks[task_id].sort_order = index
        self.db.commit()
