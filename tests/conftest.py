"""
Pytest fixtures for testing
"""
import pytest
from datetime import datetime
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from nest.api.deps import get_db
from nest.auth import hash_password, create_access_token
from nest.domain.permissions import PermissionLevel
from nest.infrastructure.db.session import Base, enable_sqlite_foreign_keys
from nest.infrastructure.db.models import (
    User, TaskList, ListPermission, Task, TaskCompletion, Goal,
)
from nest.main import app


@pytest.fixture
def db_engine():
    """In-memory SQLite shared by every connection of the test, foreign keys on"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """Test client whose requests share the test session"""
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# --- Factories ---

@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make(username: str | None = None, role: str = "user", password: str = "secret123") -> User:
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(password),
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def make_list(db_session):
    def _make(owner: User, name: str = "Chores", reset_period: str = "weekly") -> TaskList:
        task_list = TaskList(name=name, reset_period=reset_period, created_by=owner.id)
        db_session.add(task_list)
        db_session.flush()
        db_session.add(ListPermission(
            user_id=owner.id, list_id=task_list.id,
            permission_level=PermissionLevel.OWNER.value,
        ))
        db_session.commit()
        return task_list

    return _make


@pytest.fixture
def grant(db_session):
    def _grant(user: User, task_list: TaskList, level: str) -> None:
        db_session.add(ListPermission(user_id=user.id, list_id=task_list.id, permission_level=level))
        db_session.commit()

    return _grant


@pytest.fixture
def make_task(db_session):
    def _make(
        task_list: TaskList,
        title: str = "Dishes",
        duration_minutes: int = 0,
        allow_multiple_completions: bool = False,
        sort_order: int = 0,
    ) -> Task:
        task = Task(
            list_id=task_list.id,
            title=title,
            duration_minutes=duration_minutes,
            allow_multiple_completions=allow_multiple_completions,
            sort_order=sort_order,
        )
        db_session.add(task)
        db_session.commit()
        return task

    return _make


@pytest.fixture
def complete(db_session):
    """Insert a completion at an explicit local timestamp"""
    def _complete(task: Task, user: User | None, at: str) -> TaskCompletion:
        completion = TaskCompletion(
            task_id=task.id,
            completed_by=user.id if user is not None else None,
            completed_at=datetime.strptime(at, "%Y-%m-%d %H:%M:%S"),
        )
        db_session.add(completion)
        db_session.commit()
        return completion

    return _complete


@pytest.fixture
def make_goal(db_session):
    def _make(
        user: User,
        list_ids: list[int],
        calculation_type: str = "fixed_task_count",
        target_value: int = 1,
        period_type: str = "weekly",
        name: str = "Weekly chores",
    ) -> Goal:
        goal = Goal(
            user_id=user.id,
            name=name,
            calculation_type=calculation_type,
            target_value=target_value,
            period_type=period_type,
            created_by=user.id,
        )
        goal.list_ids = list_ids
        db_session.add(goal)
        db_session.commit()
        return goal

    return _make


@pytest.fixture
def auth_headers():
    """Bearer header for a user"""
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers


@pytest.fixture
def freeze_now(monkeypatch):
    """Pin local time to 'YYYY-MM-DD HH:MM:SS'"""
    def _freeze(at: str) -> datetime:
        now = datetime.strptime(at, "%Y-%m-%d %H:%M:%S")
        monkeypatch.setattr("nest.utils.clock.local_now", lambda: now)
        monkeypatch.setattr("nest.application.completions.local_now", lambda: now)
        return now

    return _freeze
