"""
User management API (admins and owners)
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from nest.api.deps import get_db, get_current_user
from nest.application.users import (
    CreateUserUseCase,
    UpdateUserUseCase,
    DeleteUserUseCase,
    get_users,
)
from nest.infrastructure.db.models import User
from nest.utils.clock import format_timestamp


router = APIRouter(prefix="/api/users", tags=["users"])


class CreateUserRequest(BaseModel):
    username: str
    email: str
    password: str
    role: str = "user"


class UpdateUserRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None


@router.get("")
def list_users(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [
        {
            "id": u.id,
            "username": u.username,
            "email": u.email,
            "role": u.role,
            "created_at": format_timestamp(u.created_at),
        }
        for u in get_users(db, user)
    ]


@router.post("", status_code=201)
def create_user(
    req: CreateUserRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_id = CreateUserUseCase(db).execute(
        actor=user,
        username=req.username,
        email=req.email,
        password=req.password,
        role=req.role,
    )
    return {"message": "User created successfully", "userId": user_id}


@router.put("/{user_id}")
def update_user(
    user_id: int,
    req: UpdateUserRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    UpdateUserUseCase(db).execute(user_id, user, **req.model_dump(exclude_unset=True))
    return {"message": "User updated successfully"}


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    DeleteUserUseCase(db).execute(user_id, user)
    return {"message": "User deleted successfully"}
