"""
List API endpoints
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from nest.api.deps import get_db, get_current_user
from nest.application.lists import (
    CreateListUseCase,
    UpdateListUseCase,
    DeleteListUseCase,
    ReorderListsUseCase,
    SetListPermissionUseCase,
    RevokeListPermissionUseCase,
    get_list_permissions,
    get_list_view,
    get_user_lists,
    list_to_dict,
    navigate_period,
    period_to_dict,
)
from nest.domain.period import parse_reference_date
from nest.infrastructure.db.models import User
from nest.utils.clock import local_today


router = APIRouter(prefix="/api/lists", tags=["lists"])


# === Request models ===

class CreateListRequest(BaseModel):
    name: str
    description: str | None = None
    reset_period: str


class UpdateListRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    reset_period: str | None = None


class ReorderListsRequest(BaseModel):
    listIds: list[int]


class SetPermissionRequest(BaseModel):
    user_id: int
    permission_level: str


# === Endpoints ===

@router.get("")
def get_lists(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Lists the current user has access to"""
    return {
        "lists": [
            list_to_dict(task_list, level)
            for task_list, level in get_user_lists(db, user.id)
        ]
    }


@router.post("", status_code=201)
def create_list(
    req: CreateListRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    list_id = CreateListUseCase(db).execute(
        actor=user,
        name=req.name,
        description=req.description,
        reset_period=req.reset_period,
    )
    return {"message": "List created successfully", "listId": list_id}


@router.post("/reorder")
def reorder_lists(
    req: ReorderListsRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ReorderListsUseCase(db).execute(user, req.listIds)
    return {"message": "List order updated successfully"}


@router.get("/{list_id}")
def get_list(
    list_id: int,
    date: str | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List with its tasks; completion status is for the period containing ?date (default today)"""
    reference = parse_reference_date(date, default=local_today())
    return get_list_view(db, list_id, user.id, reference)


@router.get("/{list_id}/period")
def get_list_period(
    list_id: int,
    date: str | None = None,
    step: int = 0,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Previous (step<0) / next (step>0) period; never returns a future period"""
    reference = parse_reference_date(date, default=local_today())
    period = navigate_period(db, list_id, user.id, reference, step)
    return {"period": period_to_dict(period)}


@router.patch("/{list_id}")
def update_list(
    list_id: int,
    req: UpdateListRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    UpdateListUseCase(db).execute(list_id, user.id, **req.model_dump(exclude_unset=True))
    return {"message": "List updated successfully"}


@router.delete("/{list_id}")
def delete_list(
    list_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    DeleteListUseCase(db).execute(list_id, user.id)
    return {"message": "List deleted successfully"}


@router.get("/{list_id}/permissions")
def list_permissions(
    list_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"permissions": get_list_permissions(db, list_id, user.id)}


@router.put("/{list_id}/permissions")
def set_permission(
    list_id: int,
    req: SetPermissionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    SetListPermissionUseCase(db).execute(list_id, user.id, req.user_id, req.permission_level)
    return {"message": "Permission updated successfully"}


@router.delete("/{list_id}/permissions/{user_id}")
def revoke_permission(
    list_id: int,
    user_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    RevokeListPermissionUseCase(db).execute(list_id, user.id, user_id)
    return {"message": "Permission removed successfully"}
