"""
Database session management (SQLAlchemy)
"""
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from nest.config import get_settings


class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base for all ORM models
    """
    pass


# Singleton engine and session factory
_engine = None
_SessionLocal = None


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign_keys is switched on per connection"""
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_engine():
    """Get or create SQLAlchemy engine (singleton)"""
    global _engine
    if _engine is None:
        settings = get_settings()
        url = settings.get_sqlalchemy_url()
        if settings.is_sqlite():
            _engine = create_engine(url, connect_args={"check_same_thread": False})
            enable_sqlite_foreign_keys(_engine)
        else:
            _engine = create_engine(url, pool_pre_ping=True)
    return _engine


def get_session_factory():
    """Get or create session factory (singleton)"""
    global _SessionLocal
    if _SessionLocal is None:
        engine = get_engine()
        _SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    return _SessionLocal


def get_db() -> Session:
    """
    FastAPI dependency: one session per request, closed afterwards

    Usage:
        @router.get("/lists")
        def list_lists(db: Session = Depends(get_db)):
            ...
    """
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create missing tables (development / SQLite bootstrap; production uses alembic)"""
    # Models must be imported so they register on Base.metadata
    from nest.infrastructure.db import models  # noqa: F401
    Base.metadata.create_all(get_engine())


def check_db_connection() -> None:
    """
    Health check - database is reachable

    Raises:
        sqlalchemy.exc.OperationalError: if the database is unavailable
    """
    with get_engine().connect() as conn:
        conn.execute(text("SELECT 1"))
