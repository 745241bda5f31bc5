"""
Permission gate: the single place that resolves and enforces list access.

Endpoints never compare permission strings themselves; they call
PermissionGate.require_* and let AccessDeniedError propagate.
"""
from sqlalchemy.orm import Session

from nest.domain import permissions as rules
from nest.domain.errors import AccessDeniedError, NotFoundError
from nest.domain.permissions import PermissionLevel, UserRole
from nest.infrastructure.db.models import ListPermission, TaskList, User


def permission_for(db: Session, user_id: int, list_id: int) -> PermissionLevel | None:
    """Permission level of user on list, None when there is no row"""
    row = db.query(ListPermission).filter(
        ListPermission.user_id == user_id,
        ListPermission.list_id == list_id,
    ).first()
    if row is None:
        return None
    return PermissionLevel(row.permission_level)


def user_role(user: User) -> UserRole:
    return UserRole(user.role)


def require_role(user: User, minimum: UserRole, action: str) -> None:
    """Site-wide role check, e.g. require_role(user, UserRole.ADMIN, "create lists")"""
    if not user_role(user).at_least(minimum):
        raise AccessDeniedError(f"Only admins can {action}")


class PermissionGate:
    def __init__(self, db: Session):
        self.db = db

    def level(self, user_id: int, list_id: int) -> PermissionLevel | None:
        return permission_for(self.db, user_id, list_id)

    def _get_list(self, list_id: int) -> TaskList:
        task_list = self.db.get(TaskList, list_id)
        if task_list is None:
            raise NotFoundError(f"List #{list_id} not found")
        return task_list

    def require_access(self, user_id: int, list_id: int) -> PermissionLevel:
        """Any permission; used for reads"""
        self._get_list(list_id)
        level = self.level(user_id, list_id)
        if not rules.can_read_list(level):
            raise AccessDeniedError("Access denied")
        return level

    def require_completion_rights(self, user_id: int, list_id: int) -> PermissionLevel:
        self._get_list(list_id)
        level = self.level(user_id, list_id)
        if not rules.can_toggle_completion(level):
            raise AccessDeniedError("Access denied")
        return level

    def require_task_manager(self, user_id: int, list_id: int) -> PermissionLevel:
        self._get_list(list_id)
        level = self.level(user_id, list_id)
        if level is None:
            raise AccessDeniedError("Access denied")
        if not rules.can_manage_tasks(level):
            raise AccessDeniedError("Only list owners and admins can manage tasks")
        return level

    def require_owner(self, user_id: int, list_id: int) -> PermissionLevel:
        self._get_list(list_id)
        level = self.level(user_id, list_id)
        if level is None:
            raise AccessDeniedError("Access denied")
        if not rules.can_manage_list(level):
            raise AccessDeniedError("Only list owners can manage this list")
        return level
