"""
List use cases: CRUD, ordering, permissions, period views
"""
import logging
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from nest.application.permissions import PermissionGate, require_role
from nest.application.progress import aggregate_completions
from nest.domain.errors import NotFoundError, ValidationError, ConflictError
from nest.domain.period import RESET_PERIODS, Period, resolve_period, shift_period
from nest.domain.permissions import PermissionLevel, UserRole
from nest.infrastructure.db.models import ListPermission, Task, TaskCompletion, TaskList, User
from nest.utils.clock import local_today, format_timestamp
from nest.utils.validation import clean_text, validate_choice

logger = logging.getLogger(__name__)

NAME_MAX = 100
DESCRIPTION_MAX = 500


class CreateListUseCase:
    """Create a list; the creator becomes its owner"""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        actor: User,
        name: str,
        reset_period: str,
        description: str | None = None,
    ) -> int:
        require_role(actor, UserRole.ADMIN, "create lists")

        name = clean_text(name, "name", NAME_MAX)
        description = clean_text(description, "description", DESCRIPTION_MAX, required=False)
        validate_choice(reset_period, RESET_PERIODS, "reset_period")

        max_order = self.db.query(func.max(TaskList.sort_order)).scalar()
        task_list = TaskList(
            name=name,
            description=description,
            reset_period=reset_period,
            created_by=actor.id,
            sort_order=(max_order + 1) if max_order is not None else 0,
        )
        self.db.add(task_list)
        self.db.flush()

        self.db.add(ListPermission(
            user_id=actor.id,
            list_id=task_list.id,
            permission_level=PermissionLevel.OWNER.value,
        ))
        self.db.commit()

        logger.info("List %d %r created by user %d", task_list.id, name, actor.id)
        return task_list.id


class UpdateListUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.gate = PermissionGate(db)

    def execute(self, list_id: int, actor_user_id: int, **changes) -> None:
        self.gate.require_owner(actor_user_id, list_id)
        task_list = self.db.get(TaskList, list_id)

        if "name" in changes and changes["name"] is not None:
            task_list.name = clean_text(changes["name"], "name", NAME_MAX)
        if "description" in changes:
            task_list.description = clean_text(
                changes["description"], "description", DESCRIPTION_MAX, required=False
            )
        if "reset_period" in changes and changes["reset_period"] is not None:
            task_list.reset_period = validate_choice(
                changes["reset_period"], RESET_PERIODS, "reset_period"
            )
        self.db.commit()


class DeleteListUseCase:
    """Hard delete; tasks, completions and permissions go with the list"""

    def __init__(self, db: Session):
        self.db = db
        self.gate = PermissionGate(db)

    def execute(self, list_id: int, actor_user_id: int) -> None:
        self.gate.require_owner(actor_user_id, list_id)
        task_list = self.db.get(TaskList, list_id)
        self.db.delete(task_list)
        self.db.commit()
        logger.info("List %d deleted by user %d", list_id, actor_user_id)


class ReorderListsUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, actor: User, list_ids: list[int]) -> None:
        require_role(actor, UserRole.ADMIN, "reorder lists")
        if len(set(list_ids)) != len(list_ids):
            raise ValidationError("listIds must not contain duplicates", fields=["listIds"])

        lists = {
            tl.id: tl
            for tl in self.db.query(TaskList).filter(TaskList.id.in_(list_ids)).all()
        }
        missing = [lid for lid in list_ids if lid not in lists]
        if missing:
            raise NotFoundError(f"Lists not found: {missing}")

        for index, list_id in enumerate(list_ids):
            lists[list_id].sort_order = index
        self.db.commit()


# ── Permissions ──────────────────────────────────────────────────────────────

class SetListPermissionUseCase:
    """Grant or change a user's permission on a list (owners only)"""

    def __init__(self, db: Session):
        self.db = db
        self.gate = PermissionGate(db)

    def execute(self, list_id: int, actor_user_id: int, user_id: int, permission_level: str) -> None:
        self.gate.require_owner(actor_user_id, list_id)
        level = PermissionLevel.parse(permission_level)

        if self.db.get(User, user_id) is None:
            raise NotFoundError(f"User #{user_id} not found")

        row = self.db.get(ListPermission, (user_id, list_id))
        if row is None:
            self.db.add(ListPermission(
                user_id=user_id, list_id=list_id, permission_level=level.value
            ))
        else:
            if row.permission_level == PermissionLevel.OWNER.value and level is not PermissionLevel.OWNER:
                _ensure_other_owner(self.db, list_id, user_id)
            row.permission_level = level.value
        self.db.commit()
        logger.info(
            "User %d set permission %s for user %d on list %d",
            actor_user_id, level.value, user_id, list_id,
        )


class RevokeListPermissionUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.gate = PermissionGate(db)

    def execute(self, list_id: int, actor_user_id: int, user_id: int) -> None:
        self.gate.require_owner(actor_user_id, list_id)
        row = self.db.get(ListPermission, (user_id, list_id))
        if row is None:
            raise NotFoundError(f"User #{user_id} has no permission on list #{list_id}")
        if row.permission_level == PermissionLevel.OWNER.value:
            _ensure_other_owner(self.db, list_id, user_id)
        self.db.delete(row)
        self.db.commit()
        logger.info("User %d revoked access of user %d to list %d", actor_user_id, user_id, list_id)


def _ensure_other_owner(db: Session, list_id: int, user_id: int) -> None:
    """A list always keeps at least one owner"""
    others = db.query(func.count()).select_from(ListPermission).filter(
        ListPermission.list_id == list_id,
        ListPermission.permission_level == PermissionLevel.OWNER.value,
        ListPermission.user_id != user_id,
    ).scalar()
    if not others:
        raise ConflictError("A list must keep at least one owner")


def get_list_permissions(db: Session, list_id: int, actor_user_id: int) -> list[dict]:
    PermissionGate(db).require_owner(actor_user_id, list_id)
    rows = (
        db.query(ListPermission, User.username)
        .join(User, User.id == ListPermission.user_id)
        .filter(ListPermission.list_id == list_id)
        .order_by(User.username)
        .all()
    )
    return [
        {"user_id": p.user_id, "username": username, "permission_level": p.permission_level}
        for p, username in rows
    ]


# ── Queries ──────────────────────────────────────────────────────────────────

def get_user_lists(db: Session, user_id: int) -> list[tuple[TaskList, str]]:
    """Lists the user can see, with the user's permission level"""
    return (
        db.query(TaskList, ListPermission.permission_level)
        .join(ListPermission, ListPermission.list_id == TaskList.id)
        .filter(ListPermission.user_id == user_id)
        .order_by(TaskList.sort_order, TaskList.created_at, TaskList.id)
        .all()
    )


def list_period(task_list: TaskList, reference_date: date) -> Period | None:
    """Period of the list at reference_date, clamped to today; None for static lists"""
    today = local_today()
    period = resolve_period(task_list.reset_period, reference_date)
    if period is not None and period.start > today:
        period = resolve_period(task_list.reset_period, today)
    return period


def navigate_period(
    db: Session, list_id: int, actor_user_id: int, reference_date: date, steps: int
) -> Period | None:
    PermissionGate(db).require_access(actor_user_id, list_id)
    task_list = db.get(TaskList, list_id)
    return shift_period(task_list.reset_period, reference_date, steps, local_today())


def get_list_tasks(db: Session, task_list: TaskList, period: Period | None) -> list[dict]:
    """
    Tasks of a list with their completion status inside the period.

    Each task carries an ordered list of completion records (newest first).
    """
    aggregates = {a.task_id: a for a in aggregate_completions(db, [task_list.id], period)}

    query = (
        db.query(TaskCompletion, User.username)
        .join(Task, Task.id == TaskCompletion.task_id)
        .outerjoin(User, User.id == TaskCompletion.completed_by)
        .filter(Task.list_id == task_list.id)
    )
    if period is not None:
        start, end = period.bounds()
        query = query.filter(
            TaskCompletion.completed_at >= start,
            TaskCompletion.completed_at <= end,
        )
    completions: dict[int, list[dict]] = {}
    for completion, username in query.order_by(
        TaskCompletion.completed_at.desc(), TaskCompletion.id.desc()
    ):
        completions.setdefault(completion.task_id, []).append({
            "id": completion.id,
            "completed_by": completion.completed_by,
            "username": username,
            "completed_at": format_timestamp(completion.completed_at),
        })

    result = []
    for task in task_list.tasks:
        agg = aggregates.get(task.id)
        count = agg.completion_count if agg else 0
        result.append({
            "id": task.id,
            "list_id": task.list_id,
            "title": task.title,
            "description": task.description,
            "duration_minutes": task.duration_minutes,
            "allow_multiple_completions": task.allow_multiple_completions,
            "sort_order": task.sort_order,
            "is_completed": count > 0,
            "completion_count": count,
            "completions": completions.get(task.id, []),
        })
    return result


def get_list_view(db: Session, list_id: int, actor_user_id: int, reference_date: date) -> dict:
    level = PermissionGate(db).require_access(actor_user_id, list_id)
    task_list = db.get(TaskList, list_id)
    period = list_period(task_list, reference_date)
    return {
        "list": list_to_dict(task_list, level.value),
        "period": period_to_dict(period),
        "tasks": get_list_tasks(db, task_list, period),
    }


def list_to_dict(task_list: TaskList, permission_level: str | None = None) -> dict:
    return {
        "id": task_list.id,
        "name": task_list.name,
        "description": task_list.description,
        "reset_period": task_list.reset_period,
        "created_by": task_list.created_by,
        "sort_order": task_list.sort_order,
        "permission_level": permission_level,
    }


def period_to_dict(period: Period | None) -> dict | None:
    if period is None:
        return None
    return {"start": period.start.isoformat(), "end": period.end.isoformat()}
