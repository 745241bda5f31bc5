"""
Goal use cases - managed by admins, evaluated per user
"""
import logging

from sqlalchemy.orm import Session

from nest.application.permissions import require_role, user_role
from nest.domain.errors import AccessDeniedError, NotFoundError, ValidationError
from nest.domain.goal import CALCULATION_TYPES
from nest.domain.period import GOAL_PERIODS
from nest.domain.permissions import UserRole
from nest.infrastructure.db.models import Goal, User
from nest.utils.validation import clean_text, validate_choice

logger = logging.getLogger(__name__)

NAME_MAX = 100
DESCRIPTION_MAX = 500


def _validate_target(value: int) -> int:
    if value is None or value <= 0:
        raise ValidationError("Target value must be greater than 0", fields=["targetValue"])
    return value


def _validate_list_ids(value: list[int]) -> list[int]:
    if not value:
        raise ValidationError("Select at least one list", fields=["listIds"])
    return value


class CreateGoalUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        actor: User,
        user_id: int,
        name: str,
        calculation_type: str,
        target_value: int,
        period_type: str,
        list_ids: list[int],
        description: str | None = None,
    ) -> int:
        """
        Create a goal for user_id

        Args:
            actor: admin or owner creating the goal
            user_id: whose completions the goal tracks
            list_ids: snapshot of lists the goal spans

        Returns:
            goal id
        """
        require_role(actor, UserRole.ADMIN, "create goals")

        if self.db.get(User, user_id) is None:
            raise NotFoundError(f"User #{user_id} not found")

        goal = Goal(
            user_id=user_id,
            name=clean_text(name, "name", NAME_MAX),
            description=clean_text(description, "description", DESCRIPTION_MAX, required=False),
            calculation_type=validate_choice(calculation_type, CALCULATION_TYPES, "calculationType"),
            target_value=_validate_target(target_value),
            period_type=validate_choice(period_type, GOAL_PERIODS, "periodType"),
            created_by=actor.id,
        )
        goal.list_ids = _validate_list_ids(list_ids)
        self.db.add(goal)
        self.db.commit()
        logger.info("Goal %d created for user %d by user %d", goal.id, user_id, actor.id)
        return goal.id


class UpdateGoalUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, goal_id: int, actor: User, **changes) -> None:
        require_role(actor, UserRole.ADMIN, "update goals")
        goal = get_active_goal(self.db, goal_id)

        if changes.get("name") is not None:
            goal.name = clean_text(changes["name"], "name", NAME_MAX)
        if "description" in changes:
            goal.description = clean_text(
                changes["description"], "description", DESCRIPTION_MAX, required=False
            )
        if changes.get("calculation_type") is not None:
            goal.calculation_type = validate_choice(
                changes["calculation_type"], CALCULATION_TYPES, "calculationType"
            )
        if changes.get("target_value") is not None:
            goal.target_value = _validate_target(changes["target_value"])
        if changes.get("period_type") is not None:
            goal.period_type = validate_choice(changes["period_type"], GOAL_PERIODS, "periodType")
        if changes.get("list_ids") is not None:
            goal.list_ids = _validate_list_ids(changes["list_ids"])
        self.db.commit()


class DeleteGoalUseCase:
    """Soft delete (is_active = False)"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, goal_id: int, actor: User) -> None:
        require_role(actor, UserRole.ADMIN, "delete goals")
        goal = get_active_goal(self.db, goal_id)
        goal.is_active = False
        self.db.commit()
        logger.info("Goal %d deleted by user %d", goal_id, actor.id)


def get_active_goal(db: Session, goal_id: int) -> Goal:
    goal = db.query(Goal).filter(Goal.id == goal_id, Goal.is_active == True).first()
    if goal is None:
        raise NotFoundError(f"Goal #{goal_id} not found")
    return goal


def get_goal_for_viewer(db: Session, goal_id: int, viewer: User) -> Goal:
    """The goal's own user and admins may see it"""
    goal = get_active_goal(db, goal_id)
    if goal.user_id != viewer.id and not user_role(viewer).is_admin:
        raise AccessDeniedError("Access denied")
    return goal


def get_user_goals(db: Session, user_id: int) -> list[Goal]:
    return (
        db.query(Goal)
        .filter(Goal.user_id == user_id, Goal.is_active == True)
        .order_by(Goal.created_at.desc(), Goal.id.desc())
        .all()
    )


def get_all_goals(db: Session, actor: User) -> list[Goal]:
    require_role(actor, UserRole.ADMIN, "view all goals")
    return (
        db.query(Goal)
        .join(User, User.id == Goal.user_id)
        .filter(Goal.is_active == True)
        .order_by(User.username, Goal.created_at.desc(), Goal.id.desc())
        .all()
    )
