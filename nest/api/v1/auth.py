"""
Authentication and account endpoints
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from nest.api.deps import get_db, get_current_user
from nest.application.users import (
    ChangeUsernameUseCase,
    ChangeEmailUseCase,
    ChangePasswordUseCase,
    UpdatePreferencesUseCase,
)
from nest.auth import authenticate, create_access_token
from nest.infrastructure.db.models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


# === Request/Response models ===

class LoginRequest(BaseModel):
    username: str = Field(min_length=3, max_length=30)
    password: str = Field(min_length=1)


class UserInfo(BaseModel):
    userId: int
    username: str
    email: str
    role: str
    is_admin: bool
    hide_goals: bool
    hide_completed_tasks: bool


class LoginResponse(BaseModel):
    message: str
    token: str
    user: UserInfo


class ChangeUsernameRequest(BaseModel):
    newUsername: str
    password: str


class ChangeEmailRequest(BaseModel):
    newEmail: str
    password: str


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword: str


class PreferencesRequest(BaseModel):
    hide_goals: bool | None = None
    hide_completed_tasks: bool | None = None


def user_info(user: User) -> UserInfo:
    return UserInfo(
        userId=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        is_admin=user.role in ("admin", "owner"),
        hide_goals=user.hide_goals,
        hide_completed_tasks=user.hide_completed_tasks,
    )


# === Endpoints ===

@router.post("/login", response_model=LoginResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    """Exchange username/password for a bearer token"""
    user = authenticate(db, req.username.strip(), req.password)
    if user is None:
        logger.info("Failed login for username %r", req.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return LoginResponse(
        message="Login successful",
        token=create_access_token(user),
        user=user_info(user),
    )


@router.get("/verify")
def verify(user: User = Depends(get_current_user)):
    return {"user": user_info(user)}


@router.post("/change-username")
def change_username(
    req: ChangeUsernameRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ChangeUsernameUseCase(db).execute(user, req.newUsername, req.password)
    # Token carries the username, hand out a fresh one
    return {
        "message": "Username updated successfully",
        "token": create_access_token(user),
        "user": user_info(user),
    }


@router.post("/change-email")
def change_email(
    req: ChangeEmailRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ChangeEmailUseCase(db).execute(user, req.newEmail, req.password)
    return {
        "message": "Email updated successfully",
        "token": create_access_token(user),
        "user": user_info(user),
    }


@router.post("/change-password")
def change_password(
    req: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ChangePasswordUseCase(db).execute(user, req.currentPassword, req.newPassword)
    return {"message": "Password updated successfully"}


@router.patch("/preferences")
def update_preferences(
    req: PreferencesRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    UpdatePreferencesUseCase(db).execute(
        user,
        hide_goals=req.hide_goals,
        hide_completed_tasks=req.hide_completed_tasks,
    )
    return {"user": user_info(user)}
