"""
User use cases: account self-service and admin user management
"""
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from nest.application.permissions import require_role, user_role
from nest.auth import hash_password, verify_password, get_user_by_username
from nest.config import Settings, get_settings
from nest.domain.errors import AccessDeniedError, ConflictError, NotFoundError, ValidationError
from nest.domain.permissions import UserRole
from nest.infrastructure.db.models import User
from nest.utils.validation import validate_email, validate_password, validate_username

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User #{user_id} not found")
    return user


def _ensure_unique(db: Session, username: str | None, email: str | None, exclude_id: int | None = None):
    conditions = []
    if username is not None:
        conditions.append(User.username == username)
    if email is not None:
        conditions.append(User.email == email)
    if not conditions:
        return
    query = db.query(User).filter(or_(*conditions))
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    existing = query.first()
    if existing is None:
        return
    if username is not None and existing.username == username:
        raise ConflictError("Username is already taken", fields=["username"])
    raise ConflictError("Email is already taken", fields=["email"])


def _check_current_password(user: User, current_password: str) -> None:
    if not current_password or not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect", fields=["currentPassword"])


# ── Self-service ─────────────────────────────────────────────────────────────

class ChangeUsernameUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user: User, new_username: str, current_password: str) -> None:
        new_username = validate_username(new_username)
        _check_current_password(user, current_password)
        _ensure_unique(self.db, new_username, None, exclude_id=user.id)
        user.username = new_username
        self.db.commit()


class ChangeEmailUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user: User, new_email: str, current_password: str) -> None:
        new_email = validate_email(new_email)
        _check_current_password(user, current_password)
        _ensure_unique(self.db, None, new_email, exclude_id=user.id)
        user.email = new_email
        self.db.commit()


class ChangePasswordUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user: User, current_password: str, new_password: str) -> None:
        _check_current_password(user, current_password)
        user.password_hash = hash_password(validate_password(new_password))
        self.db.commit()
        logger.info("User %d changed password", user.id)


class UpdatePreferencesUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user: User,
        hide_goals: bool | None = None,
        hide_completed_tasks: bool | None = None,
    ) -> None:
        if hide_goals is not None:
            user.hide_goals = hide_goals
        if hide_completed_tasks is not None:
            user.hide_completed_tasks = hide_completed_tasks
        self.db.commit()


# ── Admin user management ────────────────────────────────────────────────────

def _ensure_can_manage(actor: User, target_role: UserRole) -> None:
    """Admins manage plain users; only owners manage admins and owners"""
    if target_role.at_least(UserRole.ADMIN) and user_role(actor) is not UserRole.OWNER:
        raise AccessDeniedError("Only owners can manage admin accounts")


class CreateUserUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        actor: User,
        username: str,
        email: str,
        password: str,
        role: str = UserRole.USER.value,
    ) -> int:
        require_role(actor, UserRole.ADMIN, "create users")
        target_role = UserRole.parse(role)
        _ensure_can_manage(actor, target_role)

        username = validate_username(username)
        email = validate_email(email)
        password = validate_password(password)
        _ensure_unique(self.db, username, email)

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=target_role.value,
        )
        self.db.add(user)
        self.db.commit()
        logger.info("User %d %r created by user %d", user.id, username, actor.id)
        return user.id


class UpdateUserUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: int,
        actor: User,
        username: str | None = None,
        email: str | None = None,
        password: str | None = None,
        role: str | None = None,
    ) -> None:
        require_role(actor, UserRole.ADMIN, "edit users")
        user = get_user(self.db, user_id)
        _ensure_can_manage(actor, user_role(user))

        if username is not None:
            username = validate_username(username)
        if email is not None:
            email = validate_email(email)
        _ensure_unique(self.db, username, email, exclude_id=user.id)

        if username is not None:
            user.username = username
        if email is not None:
            user.email = email
        if password:
            user.password_hash = hash_password(validate_password(password))
        if role is not None:
            new_role = UserRole.parse(role)
            _ensure_can_manage(actor, new_role)
            if user.id == actor.id and new_role is not user_role(actor):
                raise AccessDeniedError("You cannot change your own role")
            user.role = new_role.value
        self.db.commit()


class DeleteUserUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, actor: User) -> None:
        require_role(actor, UserRole.ADMIN, "delete users")
        if user_id == actor.id:
            raise AccessDeniedError("You cannot delete your own account")
        user = get_user(self.db, user_id)
        _ensure_can_manage(actor, user_role(user))
        if user.username == get_settings().ADMIN_USERNAME:
            raise AccessDeniedError("The primary owner account cannot be deleted")
        self.db.delete(user)
        self.db.commit()
        logger.info("User %d deleted by user %d", user_id, actor.id)


def get_users(db: Session, actor: User) -> list[User]:
    require_role(actor, UserRole.ADMIN, "view users")
    return db.query(User).order_by(User.username).all()


class EnsureOwnerUseCase:
    """Create the bootstrap owner account on first startup"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def execute(self) -> int:
        existing = get_user_by_username(self.db, self.settings.ADMIN_USERNAME)
        if existing:
            if existing.role != UserRole.OWNER.value:
                existing.role = UserRole.OWNER.value
                self.db.commit()
            return existing.id

        user = User(
            username=self.settings.ADMIN_USERNAME,
            email=self.settings.ADMIN_EMAIL,
            password_hash=hash_password(self.settings.ADMIN_PASSWORD),
            role=UserRole.OWNER.value,
        )
        self.db.add(user)
        self.db.commit()
        logger.warning(
            "Created owner account %r; change its password after first login",
            user.username,
        )
        return user.id
