"""
Permission model: flat role enums compared by explicit rank, no inheritance.

List permission levels (per user, per list):
    owner > admin > user
- owner: edit/delete the list and manage its permissions
- admin: create/edit/delete/reorder tasks
- user:  toggle task completion only

User roles (site-wide) use the same ordering and gate list creation,
goal management and user management.
"""
from enum import Enum

from nest.domain.errors import ValidationError


class PermissionLevel(str, Enum):
    USER = "user"
    ADMIN = "admin"
    OWNER = "owner"

    def rank(self) -> int:
        return _RANK[self.value]

    def at_least(self, other: "PermissionLevel") -> bool:
        return self.rank() >= other.rank()

    @classmethod
    def parse(cls, value: str) -> "PermissionLevel":
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f"Invalid permission level: {value!r}", fields=["permission_level"]
            )


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
    OWNER = "owner"

    def rank(self) -> int:
        return _RANK[self.value]

    def at_least(self, other: "UserRole") -> bool:
        return self.rank() >= other.rank()

    @property
    def is_admin(self) -> bool:
        return self.at_least(UserRole.ADMIN)

    @classmethod
    def parse(cls, value: str) -> "UserRole":
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Invalid role: {value!r}", fields=["role"])


_RANK = {"user": 1, "admin": 2, "owner": 3}


def rank(level: PermissionLevel | None) -> int:
    """0 for no access"""
    return level.rank() if level is not None else 0


# Checks. Each takes the caller's level for the list (None = no access).

def can_read_list(level: PermissionLevel | None) -> bool:
    return level is not None


def can_toggle_completion(level: PermissionLevel | None) -> bool:
    return level is not None


def can_manage_tasks(level: PermissionLevel | None) -> bool:
    return rank(level) >= PermissionLevel.ADMIN.rank()


def can_manage_list(level: PermissionLevel | None) -> bool:
    return level is PermissionLevel.OWNER


def can_undo_completion(
    level: PermissionLevel | None,
    actor_user_id: int,
    completed_by: int | None,
    actor_is_admin: bool = False,
) -> bool:
    """
    Undo rules for the most recent completion:
    - the actor authored it, or
    - it has no recorded author (legacy row) and the actor is owner/admin
      of the list or holds an admin role site-wide.
    """
    if level is None:
        return False
    if completed_by is not None:
        return completed_by == actor_user_id
    return can_manage_tasks(level) or actor_is_admin
