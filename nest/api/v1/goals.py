"""
Goal API endpoints
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from nest.api.deps import get_db, get_current_user
from nest.application.goals import (
    CreateGoalUseCase,
    UpdateGoalUseCase,
    DeleteGoalUseCase,
    get_all_goals,
    get_goal_for_viewer,
    get_user_goals,
)
from nest.application.progress import GoalProgressService
from nest.domain.period import parse_reference_date
from nest.infrastructure.db.models import Goal, User


router = APIRouter(prefix="/api/goals", tags=["goals"])


# === Request models ===

class CreateGoalRequest(BaseModel):
    userId: int
    name: str
    description: str | None = None
    calculationType: str
    targetValue: int
    periodType: str
    listIds: list[int] = Field(min_length=1)


class UpdateGoalRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    calculationType: str | None = None
    targetValue: int | None = None
    periodType: str | None = None
    listIds: list[int] | None = None


# === Helpers ===

_CHANGE_FIELDS = {
    "name": "name",
    "description": "description",
    "calculationType": "calculation_type",
    "targetValue": "target_value",
    "periodType": "period_type",
    "listIds": "list_ids",
}


def goal_to_dict(goal: Goal, progress: dict | None = None) -> dict:
    data = {
        "id": goal.id,
        "user_id": goal.user_id,
        "user_username": goal.user.username if goal.user else None,
        "name": goal.name,
        "description": goal.description,
        "calculation_type": goal.calculation_type,
        "target_value": goal.target_value,
        "period_type": goal.period_type,
        "list_ids": goal.list_ids,
        "created_by": goal.created_by,
    }
    if progress is not None:
        data["progress"] = progress
    return data


# === Endpoints ===

@router.get("/my-goals")
def my_goals(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    service = GoalProgressService(db)
    return {
        "goals": [
            goal_to_dict(goal, service.progress_dict(goal))
            for goal in get_user_goals(db, user.id)
        ]
    }


@router.get("/all-goals")
def all_goals(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    goals = get_all_goals(db, user)
    service = GoalProgressService(db)
    return {"goals": [goal_to_dict(goal, service.progress_dict(goal)) for goal in goals]}


@router.post("", status_code=201)
def create_goal(
    req: CreateGoalRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    goal_id = CreateGoalUseCase(db).execute(
        actor=user,
        user_id=req.userId,
        name=req.name,
        description=req.description,
        calculation_type=req.calculationType,
        target_value=req.targetValue,
        period_type=req.periodType,
        list_ids=req.listIds,
    )
    return {"message": "Goal created successfully", "goalId": goal_id}


@router.patch("/{goal_id}")
def update_goal(
    goal_id: int,
    req: UpdateGoalRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = req.model_dump(exclude_unset=True)
    UpdateGoalUseCase(db).execute(
        goal_id,
        user,
        **{_CHANGE_FIELDS[key]: value for key, value in changes.items()},
    )
    return {"message": "Goal updated successfully"}


@router.delete("/{goal_id}")
def delete_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    DeleteGoalUseCase(db).execute(goal_id, user)
    return {"message": "Goal deleted successfully"}


@router.get("/{goal_id}/progress")
def goal_progress(
    goal_id: int,
    date: str | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Progress for the period containing ?date=YYYY-MM-DD (default: current period)"""
    goal = get_goal_for_viewer(db, goal_id, user)
    reference = parse_reference_date(date, default=None) if date else None
    return {
        "goal": goal_to_dict(goal),
        "progress": GoalProgressService(db).progress_dict(goal, reference),
    }
