"""
SQLAlchemy ORM models
"""
import json
from datetime import datetime

from sqlalchemy import (
    String, Integer, Text, Boolean, DateTime, ForeignKey, CheckConstraint, Index, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nest.infrastructure.db.session import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # user | admin | owner, see nest.domain.permissions.UserRole
    role: Mapped[str] = mapped_column(String(16), nullable=False, server_default="user")

    # UI preferences
    hide_goals: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="0")
    hide_completed_tasks: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="0")

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin', 'owner')", name="ck_users_role"),
    )


class TaskList(Base):
    """
    A list of recurring or one-off tasks.

    reset_period defines when completion state resets; 'static' lists never reset.
    """
    __tablename__ = "lists"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    reset_period: Mapped[str] = mapped_column(String(16), nullable=False)
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    tasks: Mapped[list["Task"]] = relationship(
        back_populates="task_list",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [Task.sort_order, Task.id],
    )
    permissions: Mapped[list["ListPermission"]] = relationship(
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "reset_period IN ('daily', 'weekly', 'fortnightly', 'monthly', 'quarterly', 'annually', 'static')",
            name="ck_lists_reset_period",
        ),
    )


class ListPermission(Base):
    """One row per (user, list); the composite key enforces uniqueness"""
    __tablename__ = "user_list_permissions"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    list_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("lists.id", ondelete="CASCADE"), primary_key=True
    )
    permission_level: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "permission_level IN ('owner', 'admin', 'user')",
            name="ck_user_list_permissions_level",
        ),
        Index("ix_user_list_permissions_list_id", "list_id"),
    )


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(primary_key=True)
    list_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    # True: may be completed several times within one period ("drink water")
    allow_multiple_completions: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="0")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    task_list: Mapped[TaskList] = relationship(back_populates="tasks")

    __table_args__ = (
        CheckConstraint("duration_minutes >= 0", name="ck_tasks_duration_non_negative"),
    )


class TaskCompletion(Base):
    """
    Append-only completion log.

    completed_at is a naive local timestamp (settings.TIMEZONE), second precision.
    completed_by is NULL only for legacy rows.
    """
    __tablename__ = "task_completions"

    id: Mapped[int] = mapped_column(primary_key=True)
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    completed_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    completed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_task_completions_task_completed_at", "task_id", "completed_at"),
        Index("ix_task_completions_completed_by", "completed_by"),
    )


class Goal(Base):
    """
    Per-user progress goal.

    list_ids is a JSON snapshot of list ids, not a join: a deleted list
    simply stops contributing.
    """
    __tablename__ = "goals"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    calculation_type: Mapped[str] = mapped_column(String(32), nullable=False)
    target_value: Mapped[int] = mapped_column(Integer, nullable=False)
    period_type: Mapped[str] = mapped_column(String(16), nullable=False)
    list_ids_json: Mapped[str] = mapped_column("list_ids", Text, nullable=False, server_default="[]")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="1")
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    user: Mapped[User] = relationship(foreign_keys=[user_id])

    __table_args__ = (
        CheckConstraint(
            "calculation_type IN ('percentage_task_count', 'percentage_time', 'fixed_task_count', 'fixed_time')",
            name="ck_goals_calculation_type",
        ),
        CheckConstraint(
            "period_type IN ('daily', 'weekly', 'monthly', 'quarterly', 'annually')",
            name="ck_goals_period_type",
        ),
    )

    @property
    def list_ids(self) -> list[int]:
        return [int(x) for x in json.loads(self.list_ids_json or "[]")]

    @list_ids.setter
    def list_ids(self, value: list[int]) -> None:
        self.list_ids_json = json.dumps(sorted(set(int(x) for x in value)))
