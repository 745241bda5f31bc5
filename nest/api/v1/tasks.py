"""
Task API endpoints (CRUD, ordering, completion)
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from nest.api.deps import get_db, get_current_user
from nest.application.completions import (
    CompleteTaskUseCase,
    UndoCompletionUseCase,
    get_task_completions,
)
from nest.application.lists import get_list_view
from nest.application.tasks import (
    CreateTaskUseCase,
    UpdateTaskUseCase,
    DeleteTaskUseCase,
    ReorderTasksUseCase,
)
from nest.domain.period import parse_reference_date
from nest.infrastructure.db.models import User
from nest.utils.clock import local_today


router = APIRouter(prefix="/api/tasks", tags=["tasks"])


# === Request models ===

class CreateTaskRequest(BaseModel):
    list_id: int
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    duration_minutes: int = Field(default=0, ge=0)
    allow_multiple_completions: bool = False


class UpdateTaskRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    duration_minutes: int | None = Field(default=None, ge=0)
    allow_multiple_completions: bool | None = None


class ReorderTasksRequest(BaseModel):
    list_id: int
    taskIds: list[int]


# === Endpoints ===

@router.post("", status_code=201)
def create_task(
    req: CreateTaskRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    task_id = CreateTaskUseCase(db).execute(
        actor_user_id=user.id,
        list_id=req.list_id,
        title=req.title,
        description=req.description,
        duration_minutes=req.duration_minutes,
        allow_multiple_completions=req.allow_multiple_completions,
    )
    return {"message": "Task created successfully", "taskId": task_id}


@router.get("/list/{list_id}")
def get_tasks_for_list(
    list_id: int,
    date: str | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    reference = parse_reference_date(date, default=local_today())
    view = get_list_view(db, list_id, user.id, reference)
    return {"tasks": view["tasks"], "period": view["period"]}


@router.post("/reorder")
def reorder_tasks(
    req: ReorderTasksRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ReorderTasksUseCase(db).execute(user.id, req.list_id, req.taskIds)
    return {"message": "Task order updated successfully"}


@router.patch("/{task_id}")
def update_task(
    task_id: int,
    req: UpdateTaskRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    UpdateTaskUseCase(db).execute(task_id, user.id, **req.model_dump(exclude_unset=True))
    return {"message": "Task updated successfully"}


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    DeleteTaskUseCase(db).execute(task_id, user.id)
    return {"message": "Task deleted successfully"}


@router.post("/{task_id}/complete", status_code=201)
def complete_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    completion_id = CompleteTaskUseCase(db).execute(task_id, user.id)
    return {"message": "Task completed", "completionId": completion_id}


@router.post("/{task_id}/undo")
def undo_completion(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    completion_id = UndoCompletionUseCase(db).execute(task_id, user)
    return {"message": "Completion removed", "completionId": completion_id}


@router.get("/{task_id}/completions")
def task_completions(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"completions": get_task_completions(db, task_id, user.id)}
